import logging
from collections.abc import Mapping
from numbers import Real
from typing import Any, List, Optional

import numpy as np
from shapely.geometry import MultiPolygon, Polygon
from shapely.geometry.base import BaseGeometry

from clarkevans.datatypes import Feature
from clarkevans.exceptions import InvalidInputError, MultiPartStudyAreaError
from clarkevans.geometry import FeatureLike, bbox, bbox_polygon, to_feature, to_shape

logger = logging.getLogger(__name__)


def _is_bbox(candidate: Any) -> bool:
    return (
        isinstance(candidate, (list, tuple, np.ndarray))
        and len(candidate) == 4
        and all(isinstance(x, Real) and not isinstance(x, bool) for x in candidate)
    )


def resolve_study_area(features: List[FeatureLike],
                       study_area: Optional[Any] = None,
                       *,
                       allow_multipart: bool = False) -> Feature:
    """
    Resolves the region the analysis is run over to a single polygon feature.
    :param features: The features of the dataset. Only used when no study area is given.
    :param study_area: A polygon (GeoJSON Feature, GeoJSON geometry or shapely Polygon),
                       a bounding box [min_x, min_y, max_x, max_y], or None for the bounding box of the dataset.
    :param allow_multipart: Accept multi-polygons. Their area is the sum of the parts, which the
                            nearest neighbor formula does not account for.
    """
    if study_area is None:
        logger.debug("No study area given, using the bounding box of %d features", len(features))
        return bbox_polygon(bbox(features))

    if _is_bbox(study_area):
        return bbox_polygon(study_area)

    if not isinstance(study_area, (Mapping, BaseGeometry)):
        raise InvalidInputError(
            f"Study area must be a polygon or a bounding box of 4 numbers, found {study_area!r}"
        )

    geometry = to_shape(study_area)
    if isinstance(geometry, MultiPolygon):
        if not allow_multipart:
            raise MultiPartStudyAreaError(
                f"Study area has {len(geometry.geoms)} parts; a single polygon is required"
            )
        logger.warning("Study area is a multi-polygon, the nearest neighbor statistics assume a single polygon")
    elif not isinstance(geometry, Polygon):
        raise InvalidInputError(f"Study area must be a polygon, found {geometry.geom_type}")

    if isinstance(study_area, Mapping) and study_area.get("type") == "Feature":
        return study_area

    return to_feature(geometry)
