import datetime
import json
import logging
import sys
from pathlib import Path

import yaml
from joblib import Parallel, delayed

from clarkevans.config import AnalysisConfig, get_batch_config, read_config
from clarkevans.exceptions import NearestNeighborAnalysisError
from clarkevans.analysis import analyze, annotate_study_area
from clarkevans.writers import ResultRow, ResultsWriter, write_feature

logger = logging.getLogger(__name__)


def load_dataset(path: Path):
    with open(path) as dataset_file:
        return json.load(dataset_file)


def run_analysis(output_path: Path, config: AnalysisConfig) -> ResultRow:
    """
    Runs the analysis of a single dataset.
    Writes the study area, annotated with the statistics, as <dataset_name>.geojson in the output directory.
    Analysis failures are returned as a row with an error rather than raised.
    """
    print(f'Starting analysis {config.dataset_name}')
    sys.stdout.flush()

    start_time = datetime.datetime.now()
    try:
        dataset = load_dataset(config.dataset_path)
        study_area_feature, result = analyze(
            dataset,
            config.study_area,
            metric=config.metric,
            method=config.method,
            n_jobs=config.n_jobs,
            allow_multipart=config.allow_multipart_study_area,
        )

        write_feature(
            annotate_study_area(study_area_feature, result),
            output_path / f"{config.dataset_name}.geojson"
        )

        duration = datetime.datetime.now() - start_time
        row = ResultRow.from_result(config.dataset_name, result, config.metric, duration.total_seconds())
    except (NearestNeighborAnalysisError, OSError, ValueError) as e:
        logger.exception("Analysis %s failed", config.dataset_name)
        duration = datetime.datetime.now() - start_time
        row = ResultRow.from_error(config.dataset_name, e, config.metric, duration.total_seconds())

    print(f'Finished analysis {config.dataset_name}, duration (seconds): {row.duration_seconds:.2f}')
    sys.stdout.flush()
    return row


def main(base_output_path: str, config_filename: str):
    config_path = Path(config_filename)
    batch_config = get_batch_config(read_config(config_path), config_path.parent)

    output_path = Path(base_output_path)
    output_path.mkdir(parents=True, exist_ok=True)

    # Write out the config file
    with open(output_path / "config.yaml", 'w') as config_output:
        yaml.dump(batch_config.to_dict(), config_output)

    if batch_config.n_workers > 1:
        rows = Parallel(n_jobs=batch_config.n_workers)(
            delayed(run_analysis)(output_path, analysis_config)
            for analysis_config in batch_config.analyses
        )
    else:
        rows = [
            run_analysis(output_path, analysis_config)
            for analysis_config in batch_config.analyses
        ]

    results_writer = ResultsWriter(output_path, batch_config.output_format)
    for row in rows:
        results_writer.write(row)
    results_writer.close()

    return rows


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    main(sys.argv[1], sys.argv[2])
