import logging
from typing import List, Sequence, Tuple

import numpy as np
from joblib import Parallel, cpu_count, delayed
from sklearn.neighbors import BallTree, KDTree

from clarkevans.datatypes import Point
from clarkevans.exceptions import InvalidInputError
from clarkevans.geometry import (
    EARTH_RADIUS_KM,
    GEODESIC,
    check_metric,
    get_haversine_distance,
    get_planar_distance,
    nearest_point,
)
from clarkevans.numba_utils import njit

BRUTE = "brute"
TREE = "tree"
METHODS = (BRUTE, TREE)

logger = logging.getLogger(__name__)


@njit
def _get_nearest_neighbor_distances(ids: np.ndarray,
                                    xs: np.ndarray,
                                    ys: np.ndarray,
                                    start: int,
                                    stop: int,
                                    geodesic: bool) -> np.ndarray:
    """
    Nearest neighbor distances for the points in [start, stop), searching all points.
    A point is only skipped when it has the same id, so coincident points are each other's neighbors.
    """
    n_points = xs.shape[0]
    result = np.empty(stop - start, dtype=np.float64)

    for i in range(start, stop):
        min_distance = np.inf
        for j in range(n_points):
            if ids[j] == ids[i]:
                continue

            if geodesic:
                new_distance = get_haversine_distance(xs[i], ys[i], xs[j], ys[j])
            else:
                new_distance = get_planar_distance(xs[i], ys[i], xs[j], ys[j])

            if new_distance < min_distance:
                min_distance = new_distance

        result[i - start] = min_distance

    return result


def _get_chunk_bounds(n_points: int, n_chunks: int) -> List[Tuple[int, int]]:
    edges = np.linspace(0, n_points, min(n_chunks, n_points) + 1).astype(np.int64)
    return [(int(start), int(stop)) for start, stop in zip(edges[:-1], edges[1:]) if stop > start]


class NearestNeighborCalculator(object):
    """
    Calculates nearest neighbor distances between points.
    Distances are great circle kilometers for the geodesic metric and coordinate units for the planar metric.
    """
    def __init__(self, metric: str = GEODESIC, method: str = BRUTE, n_jobs: int = 1):
        if method not in METHODS:
            raise InvalidInputError(f"Unknown nearest neighbor method {method!r}, expected one of {METHODS}")
        if n_jobs == 0:
            raise InvalidInputError("n_jobs must be a positive number of workers or negative for all CPUs")

        self._metric = check_metric(metric)
        self._method = method
        self._n_jobs = n_jobs

    def get_nearest_neighbor_distances(self, points: Sequence[Point]) -> np.ndarray:
        """
        For every point, the distance to the closest other point, in input order.
        """
        n_points = len(points)
        if n_points < 2:
            raise InvalidInputError(f"Nearest neighbor distances need at least 2 points, found {n_points}")

        ids = np.array([x.id for x in points], dtype=np.int64)
        if np.unique(ids).size != n_points:
            raise InvalidInputError("Point ids must be unique")

        xs = np.array([x.x for x in points], dtype=np.float64)
        ys = np.array([x.y for x in points], dtype=np.float64)

        if self._method == TREE:
            return self._query_tree(xs, ys)

        geodesic = self._metric == GEODESIC
        if self._n_jobs == 1:
            return _get_nearest_neighbor_distances(ids, xs, ys, 0, n_points, geodesic)

        # Chunks are contiguous and joblib returns them in submission order,
        # so the concatenated result matches the serial one.
        n_chunks = self._n_jobs if self._n_jobs > 0 else cpu_count()
        chunks = Parallel(n_jobs=self._n_jobs)(
            delayed(_get_nearest_neighbor_distances)(ids, xs, ys, start, stop, geodesic)
            for start, stop in _get_chunk_bounds(n_points, n_chunks)
        )
        return np.concatenate(chunks)

    def _query_tree(self, xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
        if self._metric == GEODESIC:
            data = np.radians(np.column_stack((ys, xs)))
            tree = BallTree(data, metric="haversine")
            scale = EARTH_RADIUS_KM
        else:
            data = np.column_stack((xs, ys))
            tree = KDTree(data)
            scale = 1.0

        # The closest match of every point is at distance zero, either itself or a coincident point,
        # so the second closest is always its nearest neighbor.
        distances, _ = tree.query(data, k=2)
        return distances[:, 1] * scale

    def get_mean_nearest_neighbor_distance(self, points: Sequence[Point]) -> float:
        distances = self.get_nearest_neighbor_distances(points)
        mean_distance = float(np.mean(distances))
        logger.debug("Mean nearest neighbor distance of %d points: %f", len(points), mean_distance)
        return mean_distance

    def get_nearest_neighbor(self, point: Point, to_points: Sequence[Point]) -> Point:
        """
        The closest of to_points, excluding point itself.
        """
        return nearest_point(point, (x for x in to_points if x.id != point.id), self._metric)
