import logging
from typing import Any, Optional, Tuple

from clarkevans.centroids import extract_centroids
from clarkevans.datatypes import AnalysisResult, Feature
from clarkevans.exceptions import DegenerateStudyAreaError, InvalidInputError
from clarkevans.geometry import GEODESIC, area, get_features, get_properties, to_feature, to_shape
from clarkevans.nearest_neighbor_calculator import BRUTE, NearestNeighborCalculator
from clarkevans.statistics import calculate_nearest_neighbor_statistics
from clarkevans.study_area import resolve_study_area

# Square meters to square kilometers
SQUARE_METERS_TO_SQUARE_KM = 1e-6

ANALYSIS_PROPERTY = "nearestNeighborAnalysis"

logger = logging.getLogger(__name__)


def analyze(dataset: Any,
            study_area: Optional[Any] = None,
            *,
            metric: str = GEODESIC,
            method: str = BRUTE,
            n_jobs: int = 1,
            allow_multipart: bool = False) -> Tuple[Feature, AnalysisResult]:
    """
    Runs the analysis and returns the resolved study area along with the statistics.
    See nearest_neighbor for the parameters.
    """
    calculator = NearestNeighborCalculator(metric=metric, method=method, n_jobs=n_jobs)

    features = get_features(dataset)
    if len(features) < 2:
        raise InvalidInputError(
            f"Nearest neighbor analysis needs at least 2 features, found {len(features)}"
        )

    study_area_feature = resolve_study_area(features, study_area, allow_multipart=allow_multipart)
    study_area_size = area(study_area_feature, metric)
    if metric == GEODESIC:
        study_area_size *= SQUARE_METERS_TO_SQUARE_KM
    if not study_area_size > 0:
        raise DegenerateStudyAreaError(f"Study area must have a positive area, found {study_area_size}")

    points = extract_centroids(features)
    observed_mean_distance = calculator.get_mean_nearest_neighbor_distance(points)

    result = calculate_nearest_neighbor_statistics(len(points), observed_mean_distance, study_area_size)
    logger.debug(
        "Nearest neighbor index %f, z-score %f over %d points",
        result.nearest_neighbor_index,
        result.z_score,
        result.number_of_points,
    )

    return study_area_feature, result


def annotate_study_area(study_area_feature: Feature, result: AnalysisResult) -> Feature:
    """
    Copy of the study area with the statistics added to its properties.
    """
    properties = get_properties(study_area_feature)
    properties[ANALYSIS_PROPERTY] = result.to_dict()
    return to_feature(to_shape(study_area_feature), properties)


def nearest_neighbor(dataset: Any,
                     study_area: Optional[Any] = None,
                     *,
                     metric: str = GEODESIC,
                     method: str = BRUTE,
                     n_jobs: int = 1,
                     allow_multipart: bool = False) -> Feature:
    """
    Takes a set of points (or the centroids of lines and polygons) and calculates the observed
    and expected mean nearest neighbor distance, the nearest neighbor index and the z-score, which
    indicate whether the points are clustered, randomly distributed or dispersed over the study area.

    With the geodesic metric coordinates are (longitude, latitude), distances are kilometers and the
    study area is measured in square kilometers. With the planar metric distances and area are in the
    units of the coordinates.

    :param dataset: GeoJSON FeatureCollection, or an iterable of features or shapely geometries.
    :param study_area: Polygon feature, bounding box [min_x, min_y, max_x, max_y], or None to use the
                       bounding box of the dataset.
    :param metric: "geodesic" or "planar".
    :param method: "brute" for an exhaustive search, "tree" for a spatial index.
    :param n_jobs: Number of workers for the exhaustive search.
    :param allow_multipart: Accept a multi-polygon study area instead of raising.
    :return: A new polygon feature for the study area whose properties hold the statistics
             under "nearestNeighborAnalysis". The inputs are not modified.
    """
    study_area_feature, result = analyze(
        dataset,
        study_area,
        metric=metric,
        method=method,
        n_jobs=n_jobs,
        allow_multipart=allow_multipart,
    )

    return annotate_study_area(study_area_feature, result)
