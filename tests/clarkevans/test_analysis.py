import copy

import numpy as np
import pytest
from numpy.testing import assert_almost_equal
from shapely.geometry import MultiPolygon, Point as ShapelyPoint, box

from clarkevans import nearest_neighbor
from clarkevans.exceptions import DegenerateStudyAreaError, InvalidInputError, MultiPartStudyAreaError
from clarkevans.geometry import to_shape
from clarkevans.analysis import ANALYSIS_PROPERTY, analyze


def _feature_collection(*geometries):
    return {
        "type": "FeatureCollection",
        "features": [
            {"type": "Feature", "geometry": geometry, "properties": {"index": x}}
            for x, geometry in enumerate(geometries)
        ]
    }


def _points(*coordinates):
    return _feature_collection(*({"type": "Point", "coordinates": list(x)} for x in coordinates))


def _grid(n_side: int, spacing: float, offset: float = 0.0):
    return [
        (offset + i * spacing, offset + j * spacing)
        for i in range(n_side)
        for j in range(n_side)
    ]


def test_unit_square_corners():
    # Arrange
    dataset = _points((0, 0), (0, 1), (1, 0), (1, 1))

    # Act
    result = nearest_neighbor(dataset, metric="planar")

    # Assert
    analysis = result["properties"][ANALYSIS_PROPERTY]
    assert_almost_equal(analysis["observedMeanDistance"], 1.0)
    assert_almost_equal(analysis["expectedMeanDistance"], 0.25)
    assert_almost_equal(analysis["nearestNeighborIndex"], 4.0)
    assert analysis["numberOfPoints"] == 4
    assert_almost_equal(analysis["zScore"], 0.75 / 0.06534)
    assert to_shape(result).equals(box(0, 0, 1, 1))


def test_identical_points_in_study_area():
    # Arrange
    dataset = _points((5, 5), (5, 5), (5, 5))

    # Act
    result = nearest_neighbor(dataset, [0, 0, 10, 10], metric="planar")

    # Assert
    analysis = result["properties"][ANALYSIS_PROPERTY]
    assert analysis["observedMeanDistance"] == 0.0
    assert analysis["nearestNeighborIndex"] == 0.0
    assert analysis["zScore"] < -1.96


def test_identical_points_without_study_area():
    # Arrange
    # The bounding box of identical points has no area
    dataset = _points((5, 5), (5, 5))

    # Act / Assert
    with pytest.raises(DegenerateStudyAreaError):
        nearest_neighbor(dataset, metric="planar")


def test_grid_with_matching_density_is_random():
    # Arrange
    # 25 points spaced 2 apart over a 20 x 20 area, for an expected spacing of 1 / (2 * sqrt(25 / 400)) = 2
    dataset = _points(*_grid(5, 2.0, offset=1.0))

    # Act
    result = nearest_neighbor(dataset, [0, 0, 20, 20], metric="planar")

    # Assert
    analysis = result["properties"][ANALYSIS_PROPERTY]
    assert_almost_equal(analysis["nearestNeighborIndex"], 1.0)
    assert_almost_equal(analysis["zScore"], 0.0)


def test_clustered_points():
    # Arrange
    rng = np.random.default_rng(seed=7)
    coordinates = rng.normal(loc=50, scale=0.5, size=(100, 2))
    dataset = _points(*coordinates.tolist())

    # Act
    _, result = analyze(dataset, [0, 0, 100, 100], metric="planar")

    # Assert
    assert result.nearest_neighbor_index < 1
    assert result.pattern == "clustered"


def test_number_of_points_for_mixed_geometries():
    # Arrange
    dataset = _feature_collection(
        {"type": "Point", "coordinates": [0, 0]},
        {"type": "LineString", "coordinates": [[2, 0], [4, 0]]},
        {"type": "Polygon", "coordinates": [[[0, 4], [2, 4], [2, 6], [0, 6], [0, 4]]]},
    )

    # Act
    result = nearest_neighbor(dataset, metric="planar")

    # Assert
    assert result["properties"][ANALYSIS_PROPERTY]["numberOfPoints"] == 3


def test_geodesic_defaults():
    # Arrange
    # Corners of a 0.1 degree square on the equator
    dataset = _points((0, 0), (0, 0.1), (0.1, 0), (0.1, 0.1))

    # Act
    _, result = analyze(dataset)

    # Assert
    # Distances in kilometers, area in square kilometers
    assert 11.0 < result.observed_mean_distance < 11.2
    assert_almost_equal(result.nearest_neighbor_index, 4.0, decimal=1)


def test_is_idempotent():
    # Arrange
    rng = np.random.default_rng(seed=3)
    dataset = _points(*(rng.random((50, 2)) * 10).tolist())

    # Act
    first = nearest_neighbor(dataset)
    second = nearest_neighbor(dataset)

    # Assert
    assert first["properties"][ANALYSIS_PROPERTY] == second["properties"][ANALYSIS_PROPERTY]


def test_order_of_ties_does_not_change_statistics():
    # Arrange
    coordinates = _grid(4, 1.0)
    shuffled = list(coordinates)
    np.random.default_rng(seed=11).shuffle(shuffled)

    # Act
    _, first = analyze(_points(*coordinates), [0, 0, 3, 3], metric="planar")
    _, second = analyze(_points(*shuffled), [0, 0, 3, 3], metric="planar")

    # Assert
    assert_almost_equal(first.observed_mean_distance, second.observed_mean_distance)
    assert_almost_equal(first.z_score, second.z_score)


def test_tree_method_matches_brute_force():
    # Arrange
    rng = np.random.default_rng(seed=5)
    dataset = _points(*(rng.random((200, 2)) * 2).tolist())

    # Act
    _, brute = analyze(dataset, method="brute")
    _, tree = analyze(dataset, method="tree")

    # Assert
    assert_almost_equal(tree.z_score, brute.z_score, decimal=5)


def test_study_area_properties_are_kept_and_input_not_modified():
    # Arrange
    dataset = _points((0, 0), (0, 1), (1, 0), (1, 1))
    study_area = {
        "type": "Feature",
        "geometry": {"type": "Polygon", "coordinates": [[[-1, -1], [2, -1], [2, 2], [-1, 2], [-1, -1]]]},
        "properties": {"name": "region"},
    }
    original_dataset = copy.deepcopy(dataset)
    original_study_area = copy.deepcopy(study_area)

    # Act
    result = nearest_neighbor(dataset, study_area, metric="planar")

    # Assert
    assert result["properties"]["name"] == "region"
    assert ANALYSIS_PROPERTY in result["properties"]
    assert dataset == original_dataset
    assert study_area == original_study_area


def test_iterable_of_geometries():
    # Act
    result = nearest_neighbor([box(0, 0, 1, 1), box(3, 0, 4, 1)], [0, 0, 4, 1], metric="planar")

    # Assert
    assert_almost_equal(result["properties"][ANALYSIS_PROPERTY]["observedMeanDistance"], 3.0)


@pytest.mark.parametrize("dataset", [
    _points(),
    _points((1, 1)),
    [],
])
def test_too_few_features(dataset):
    with pytest.raises(InvalidInputError):
        nearest_neighbor(dataset, [0, 0, 10, 10])


def test_non_finite_coordinates():
    # Arrange
    dataset = [ShapelyPoint(0, 0), ShapelyPoint(1, 1), ShapelyPoint(np.nan, 0)]

    # Act / Assert
    with pytest.raises(InvalidInputError):
        analyze(dataset, [0, 0, 10, 10], metric="planar")


def test_multipart_study_area():
    # Arrange
    dataset = _points((0, 0), (1, 1), (2, 2))
    study_area = MultiPolygon([box(0, 0, 1, 1), box(2, 2, 3, 3)])

    # Act / Assert
    with pytest.raises(MultiPartStudyAreaError):
        nearest_neighbor(dataset, study_area, metric="planar")

    result = nearest_neighbor(dataset, study_area, metric="planar", allow_multipart=True)
    assert result["properties"][ANALYSIS_PROPERTY]["numberOfPoints"] == 3
