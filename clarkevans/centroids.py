import math
from typing import Iterable, List

from clarkevans.datatypes import Point
from clarkevans.exceptions import InvalidInputError
from clarkevans.geometry import FeatureLike, centroid


def extract_centroids(features: Iterable[FeatureLike]) -> List[Point]:
    """
    Reduces every feature to the mean of its vertices, preserving input order.
    Points map to themselves.
    """
    result = []
    for feature_id, feature in enumerate(features):
        center = centroid(feature)
        x, y = float(center.x), float(center.y)
        if not (math.isfinite(x) and math.isfinite(y)):
            raise InvalidInputError(f"Feature {feature_id} has a non-finite centroid ({x}, {y})")

        result.append(Point(id=feature_id, x=x, y=y))

    return result
