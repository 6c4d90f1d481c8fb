from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from clarkevans.exceptions import InvalidInputError
from clarkevans.geometry import GEODESIC, check_bbox, check_metric
from clarkevans.nearest_neighbor_calculator import BRUTE, METHODS

OUTPUT_FORMATS = ("parquet", "csv")


@dataclass(frozen=True, kw_only=True)
class AnalysisConfig:
    dataset_name: str
    dataset_path: Path
    study_area: Optional[Union[List[float], Dict[str, Any]]] = None
    metric: str = GEODESIC
    method: str = BRUTE
    n_jobs: int = 1
    allow_multipart_study_area: bool = False

    def __post_init__(self):
        check_metric(self.metric)
        if self.method not in METHODS:
            raise InvalidInputError(f"Unknown nearest neighbor method {self.method!r}, expected one of {METHODS}")
        if not isinstance(self.n_jobs, int) or self.n_jobs == 0:
            raise InvalidInputError(f"n_jobs must be a non-zero integer, found {self.n_jobs!r}")
        if isinstance(self.study_area, list):
            check_bbox(self.study_area)

    def to_dict(self) -> Dict:
        return {
            "dataset_name": self.dataset_name,
            "dataset_path": str(self.dataset_path),
            "study_area": self.study_area,
            "metric": self.metric,
            "method": self.method,
            "n_jobs": self.n_jobs,
            "allow_multipart_study_area": self.allow_multipart_study_area,
        }


@dataclass(frozen=True, kw_only=True)
class BatchConfig:
    n_workers: int = 1
    output_format: str = "parquet"
    analyses: List[AnalysisConfig] = field(default_factory=list)

    def __post_init__(self):
        if self.output_format not in OUTPUT_FORMATS:
            raise InvalidInputError(f"Unknown output format {self.output_format!r}, expected one of {OUTPUT_FORMATS}")

    def to_dict(self) -> Dict:
        return {
            "n_workers": self.n_workers,
            "output_format": self.output_format,
            "datasets": {x.dataset_name: x.to_dict() for x in self.analyses},
        }


def read_config(path: Path) -> Dict:
    with path.open("r") as config_file:
        config = yaml.safe_load(config_file)
    return config or {}


def get_batch_config(config: Dict, base_path: Path = Path(".")) -> BatchConfig:
    """
    Given a config, read directly from the YAML config file, creates one AnalysisConfig per dataset.
    Dataset entries override the defaults section; relative dataset paths are resolved against base_path.
    """
    defaults = config.get("defaults") or {}
    datasets = config.get("datasets") or {}
    if not datasets:
        raise InvalidInputError("Config has no datasets")

    analyses = []
    for dataset_name, values in datasets.items():
        values = {**defaults, **(values or {})}
        if "path" not in values:
            raise InvalidInputError(f"Dataset {dataset_name} has no path")

        dataset_path = Path(values["path"])
        if not dataset_path.is_absolute():
            dataset_path = base_path / dataset_path

        analyses.append(
            AnalysisConfig(
                dataset_name=str(dataset_name),
                dataset_path=dataset_path,
                study_area=values.get("study_area"),
                metric=values.get("metric", GEODESIC),
                method=values.get("method", BRUTE),
                n_jobs=values.get("n_jobs", 1),
                allow_multipart_study_area=values.get("allow_multipart_study_area", False),
            )
        )

    return BatchConfig(
        n_workers=config.get("n_workers", 1),
        output_format=config.get("output_format", "parquet"),
        analyses=analyses,
    )
