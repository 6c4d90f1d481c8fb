from dataclasses import dataclass
from typing import Tuple, Dict, Any

# Type definitions
# (min_x, min_y, max_x, max_y)
BBox = Tuple[float, float, float, float]

# (x, y) location; (longitude, latitude) for geodesic analyses
Location = Tuple[float, float]

# GeoJSON-like mapping
Feature = Dict[str, Any]

# Two-sided 95% critical value of the standard normal distribution
SIGNIFICANT_Z = 1.96


@dataclass(frozen=True)
class Point:
    """
    Centroid of an input feature. The id is the position of the source feature in the dataset
    and is what identifies a point as "itself" during nearest neighbor searches.
    """
    id: int
    x: float
    y: float

    @property
    def location(self) -> Location:
        return self.x, self.y


@dataclass(frozen=True, kw_only=True)
class AnalysisResult:
    observed_mean_distance: float
    expected_mean_distance: float
    nearest_neighbor_index: float
    number_of_points: int
    z_score: float

    @property
    def is_significant(self) -> bool:
        return abs(self.z_score) > SIGNIFICANT_Z

    @property
    def pattern(self) -> str:
        """
        Clustered when the index is below one, dispersed when above, random when the departure
        from a Poisson process is not significant at 95%.
        """
        if not self.is_significant:
            return "random"
        return "clustered" if self.nearest_neighbor_index < 1 else "dispersed"

    def to_dict(self) -> Dict:
        return {
            "observedMeanDistance": self.observed_mean_distance,
            "expectedMeanDistance": self.expected_mean_distance,
            "nearestNeighborIndex": self.nearest_neighbor_index,
            "numberOfPoints": self.number_of_points,
            "zScore": self.z_score,
        }
