import math
from typing import Sequence

import numpy as np

from clarkevans.datatypes import AnalysisResult
from clarkevans.exceptions import DegenerateStudyAreaError, InvalidInputError

# Standard error constant of the mean nearest neighbor distance under complete spatial randomness
CLARK_EVANS_STANDARD_ERROR = 0.26136


def calculate_nearest_neighbor_statistics(n_points: int,
                                          observed_mean_distance: float,
                                          area: float) -> AnalysisResult:
    """
    Calculates the nearest neighbor index and Z statistic defined by Clark and Evans (1954).
    :param n_points: Number of points in the study area.
    :param observed_mean_distance: The mean nearest neighbor distance of the points.
    :param area: The area of the study area, in the square of the distance unit.
    """
    if n_points < 1:
        raise InvalidInputError(f"Nearest neighbor statistics need at least one point, found {n_points}")
    if not (np.isfinite(observed_mean_distance) and observed_mean_distance >= 0):
        raise InvalidInputError(f"Observed mean distance must be finite and non-negative, found {observed_mean_distance}")
    if not (np.isfinite(area) and area > 0):
        raise DegenerateStudyAreaError(f"Study area must have a positive area, found {area}")

    population_density = n_points / area
    expected_mean_distance = 1 / (2 * math.sqrt(population_density))

    # Despite its usual name this is the standard error, not a variance
    sigma = CLARK_EVANS_STANDARD_ERROR / math.sqrt(n_points * population_density)

    return AnalysisResult(
        observed_mean_distance=observed_mean_distance,
        expected_mean_distance=expected_mean_distance,
        nearest_neighbor_index=observed_mean_distance / expected_mean_distance,
        number_of_points=n_points,
        z_score=(observed_mean_distance - expected_mean_distance) / sigma,
    )


def calculate_z_statistic(nearest_neighbor_distances: Sequence[float],
                          area: float) -> float:
    """
    Calculates the Z statistic defined by Clark and Evans (1954).
    :param nearest_neighbor_distances: The nearest neighbor distances for all points in the study area.
    :param area: The area of the study area.
    """
    n_points = len(nearest_neighbor_distances)
    if n_points == 0:
        raise InvalidInputError("Z statistic needs at least one nearest neighbor distance")

    nn_obs = float(np.mean(nearest_neighbor_distances))
    return calculate_nearest_neighbor_statistics(n_points, nn_obs, area).z_score
