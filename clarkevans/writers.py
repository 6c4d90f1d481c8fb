import json
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import numpy as np
import pandas as pd

from clarkevans.datatypes import AnalysisResult, Feature


@dataclass(frozen=True, kw_only=True, slots=True)
class ResultRow:
    dataset_name: str
    number_of_points: int
    observed_mean_distance: float
    expected_mean_distance: float
    nearest_neighbor_index: float
    z_score: float
    pattern: Optional[str]
    metric: str
    duration_seconds: float
    error: Optional[str] = None

    @classmethod
    def from_result(cls, dataset_name: str, result: AnalysisResult, metric: str, duration_seconds: float):
        return cls(
            dataset_name=dataset_name,
            number_of_points=result.number_of_points,
            observed_mean_distance=result.observed_mean_distance,
            expected_mean_distance=result.expected_mean_distance,
            nearest_neighbor_index=result.nearest_neighbor_index,
            z_score=result.z_score,
            pattern=result.pattern,
            metric=metric,
            duration_seconds=duration_seconds,
        )

    @classmethod
    def from_error(cls, dataset_name: str, error: Exception, metric: str, duration_seconds: float):
        return cls(
            dataset_name=dataset_name,
            number_of_points=0,
            observed_mean_distance=np.nan,
            expected_mean_distance=np.nan,
            nearest_neighbor_index=np.nan,
            z_score=np.nan,
            pattern=None,
            metric=metric,
            duration_seconds=duration_seconds,
            error=f"{type(error).__name__}: {error}",
        )


class ResultsWriter:
    """
    Collects one row per analyzed dataset and writes them as a single table on close.
    """
    def __init__(self, output_path: Path, output_format: str = "parquet"):
        self._output_path = output_path
        self._output_format = output_format

        self._rows: List[ResultRow] = []

    @property
    def output_filename(self) -> Path:
        return self._output_path / f"results.{self._output_format}"

    def write(self, row: ResultRow) -> None:
        self._rows.append(row)

    def close(self) -> None:
        if not self._rows:
            return

        out_df = pd.DataFrame(self._rows)
        if self._output_format == "csv":
            out_df.to_csv(self.output_filename, index=False)
        else:
            out_df.to_parquet(self.output_filename, index=False)


def write_feature(feature: Feature, filename: Path) -> None:
    with open(filename, "w") as output_file:
        json.dump(feature, output_file, indent=2)
