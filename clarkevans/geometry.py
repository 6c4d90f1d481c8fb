from collections.abc import Mapping
from typing import Any, Iterable, List, Optional, Sequence, Union

import numpy as np
from pyproj import Geod
from shapely.errors import ShapelyError
from shapely.geometry import Point as ShapelyPoint, Polygon, mapping, shape
from shapely.geometry.base import BaseGeometry

from clarkevans.datatypes import BBox, Feature, Location, Point
from clarkevans.exceptions import InvalidInputError
from clarkevans.numba_utils import njit

# Mean earth radius (IUGG), used for great circle distances
EARTH_RADIUS_KM = 6371.0088

GEODESIC = "geodesic"
PLANAR = "planar"
METRICS = (GEODESIC, PLANAR)

GEOD = Geod(ellps="WGS84")

FeatureLike = Union[Feature, BaseGeometry]


def check_metric(metric: str) -> str:
    if metric not in METRICS:
        raise InvalidInputError(f"Unknown distance metric {metric!r}, expected one of {METRICS}")
    return metric


@njit(fastmath=True)
def get_haversine_distance(lon1: float, lat1: float, lon2: float, lat2: float) -> float:
    """
    Great circle distance in kilometers between two (longitude, latitude) locations in degrees.
    """
    phi1 = np.radians(lat1)
    phi2 = np.radians(lat2)
    d_phi = phi2 - phi1
    d_lambda = np.radians(lon2 - lon1)

    a = np.sin(d_phi / 2) ** 2 + np.cos(phi1) * np.cos(phi2) * np.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * np.arctan2(np.sqrt(a), np.sqrt(1 - a))


@njit(fastmath=True)
def get_planar_distance(x1: float, y1: float, x2: float, y2: float) -> float:
    x_diff = x1 - x2
    y_diff = y1 - y2
    return np.sqrt(x_diff * x_diff + y_diff * y_diff)


def get_features(dataset: Any) -> List[FeatureLike]:
    """
    Returns the features of a dataset as a list, in input order.
    Accepts a GeoJSON FeatureCollection, a single GeoJSON Feature, or any iterable of features
    and shapely geometries.
    """
    if isinstance(dataset, Mapping):
        dataset_type = dataset.get("type")
        if dataset_type == "FeatureCollection":
            return list(dataset.get("features") or [])
        if dataset_type == "Feature":
            return [dataset]
        raise InvalidInputError(f"Expected a FeatureCollection, found {dataset_type!r}")

    if isinstance(dataset, (str, bytes)) or not isinstance(dataset, Iterable):
        raise InvalidInputError(f"Expected a collection of features, found {type(dataset).__name__}")

    return list(dataset)


def to_shape(feature: FeatureLike) -> BaseGeometry:
    """
    Converts a GeoJSON Feature, a GeoJSON geometry or a shapely geometry to a shapely geometry.
    """
    if isinstance(feature, BaseGeometry):
        return feature

    if not isinstance(feature, Mapping):
        raise InvalidInputError(f"Expected a GeoJSON feature or geometry, found {type(feature).__name__}")

    geometry = feature.get("geometry") if feature.get("type") == "Feature" else feature
    if geometry is None:
        raise InvalidInputError("Feature has no geometry")

    try:
        return shape(geometry)
    except (KeyError, TypeError, AttributeError, ValueError, ShapelyError) as e:
        raise InvalidInputError(f"Invalid GeoJSON geometry: {e}") from e


def to_feature(geometry: BaseGeometry, properties: Optional[Mapping] = None) -> Feature:
    return {
        "type": "Feature",
        "geometry": mapping(geometry),
        "properties": dict(properties or {}),
    }


def get_properties(feature: FeatureLike) -> dict:
    if isinstance(feature, Mapping) and feature.get("type") == "Feature":
        return dict(feature.get("properties") or {})
    return {}


def bbox(features: Iterable[FeatureLike]) -> BBox:
    """
    Bounding box [min_x, min_y, max_x, max_y] of every non-empty feature.
    """
    bounds = [
        geometry.bounds
        for geometry in map(to_shape, features)
        if not geometry.is_empty
    ]
    if not bounds:
        raise InvalidInputError("Cannot calculate the bounding box of an empty dataset")

    bounds = np.array(bounds, dtype=np.float64)
    return (
        float(bounds[:, 0].min()),
        float(bounds[:, 1].min()),
        float(bounds[:, 2].max()),
        float(bounds[:, 3].max()),
    )


def check_bbox(candidate: Any) -> BBox:
    """
    Returns candidate as a bbox tuple of floats, or raises if it is not four ordered numbers.
    """
    try:
        values = tuple(float(x) for x in candidate)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"Invalid bounding box {candidate!r}") from e

    if len(values) != 4:
        raise InvalidInputError(f"A bounding box needs exactly 4 numbers, found {len(values)}")

    min_x, min_y, max_x, max_y = values
    if min_x > max_x or min_y > max_y:
        raise InvalidInputError(f"Bounding box {values} is not ordered as [min_x, min_y, max_x, max_y]")

    return values


def bbox_polygon(bounds: Sequence[float], properties: Optional[Mapping] = None) -> Feature:
    """
    Rectangular polygon feature for a bounding box, starting at the lower left corner.
    """
    min_x, min_y, max_x, max_y = check_bbox(bounds)
    polygon = Polygon([
        (min_x, min_y),
        (max_x, min_y),
        (max_x, max_y),
        (min_x, max_y),
        (min_x, min_y),
    ])
    return to_feature(polygon, properties)


def _get_vertices(geometry: BaseGeometry) -> List[np.ndarray]:
    """
    Vertex coordinates of a geometry, leaving out the closing coordinate of polygon rings.
    """
    if geometry.is_empty:
        return []

    if isinstance(geometry, Polygon):
        rings = [geometry.exterior, *geometry.interiors]
        return [np.asarray(ring.coords)[:-1, :2] for ring in rings]

    if hasattr(geometry, "geoms"):
        return [vertices for part in geometry.geoms for vertices in _get_vertices(part)]

    return [np.asarray(geometry.coords)[:, :2]]


def centroid(feature: FeatureLike) -> BaseGeometry:
    """
    Mean of the vertices of a feature. Unlike the area weighted centroid, every vertex counts equally.
    """
    geometry = to_shape(feature)
    if geometry.is_empty:
        raise InvalidInputError("Cannot calculate the centroid of an empty geometry")

    vertices = np.concatenate(_get_vertices(geometry))
    x, y = vertices.mean(axis=0)
    return ShapelyPoint(x, y)


def area(feature: FeatureLike, metric: str = GEODESIC) -> float:
    """
    Area of a (multi)polygon feature.
    Geodesic areas are in square meters on the WGS84 ellipsoid, planar areas are in squared
    coordinate units.
    """
    geometry = to_shape(feature)
    if check_metric(metric) == GEODESIC:
        polygon_area, _ = GEOD.geometry_area_perimeter(geometry)
        return abs(polygon_area)
    return geometry.area


def distance(first: Union[Point, Location], second: Union[Point, Location], metric: str = GEODESIC) -> float:
    """
    Distance between two points. Kilometers for geodesic, coordinate units for planar.
    """
    x1, y1 = first.location if isinstance(first, Point) else first
    x2, y2 = second.location if isinstance(second, Point) else second

    if check_metric(metric) == GEODESIC:
        return get_haversine_distance(x1, y1, x2, y2)
    return get_planar_distance(x1, y1, x2, y2)


def nearest_point(point: Point, candidates: Iterable[Point], metric: str = GEODESIC) -> Point:
    """
    Returns the candidate closest to point. Ties go to the first candidate found.
    """
    closest = None
    min_distance = np.inf
    for candidate in candidates:
        candidate_distance = distance(point, candidate, metric)
        if candidate_distance < min_distance:
            min_distance = candidate_distance
            closest = candidate

    if closest is None:
        raise InvalidInputError("No candidate points to search")
    return closest
