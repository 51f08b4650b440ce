# ABOUTME: Tests reference guide generation and the per-lesson guide library.
# ABOUTME: Verifies geometry, pacing timestamps, and lookups by shape identifier.

import numpy as np
import pytest

from src.common.guides import (
    GuideLibrary,
    build_guide,
    circle_path,
    line_path,
    path_to_points,
    polygon_path,
    shape_path,
)
from src.common.schemas import LessonCategory, ShapeType


def test_circle_path_is_closed_and_on_radius():
    path = circle_path((10.0, 20.0), 5.0, 50)
    np.testing.assert_allclose(path[0], path[-1], atol=1e-9)
    np.testing.assert_allclose(np.linalg.norm(path - [10.0, 20.0], axis=1), 5.0)


def test_line_and_polygon_paths():
    np.testing.assert_allclose(line_path((0, 0), (10, 0), 3), [[0, 0], [5, 0], [10, 0]])
    square = polygon_path([(0, 0), (1, 0), (1, 1), (0, 1)], 5)
    np.testing.assert_allclose(square, [[0, 0], [1, 0], [1, 1], [0, 1], [0, 0]])


@pytest.mark.parametrize("shape", list(ShapeType))
def test_every_shape_fits_inside_its_box(shape):
    path = shape_path(shape, center=(0.0, 0.0), size=100.0, n_points=80)
    assert path.shape == (80, 2)
    assert np.abs(path).max() <= 50.0 + 1e-9


def test_path_to_points_spreads_timestamps():
    points = path_to_points(np.zeros((5, 2)), duration_ms=400.0)
    assert [p.timestamp for p in points] == [0.0, 100.0, 200.0, 300.0, 400.0]
    assert all(p.timestamp == 0.0 for p in path_to_points(np.zeros((3, 2))))


def test_build_guide_carries_category_and_pacing():
    guide = build_guide("oval", category="faces", expected_duration_ms=900.0)
    assert guide.shape_id is ShapeType.OVAL
    assert guide.category is LessonCategory.FACES
    assert guide.expected_duration_ms == 900.0
    assert len(guide.reference_path) == 100
    assert guide.reference_path[-1].timestamp == pytest.approx(900.0)


def test_library_lookup():
    library = GuideLibrary.for_lesson(
        [ShapeType.CIRCLE, ShapeType.LINE, ShapeType.CIRCLE], pacing_ms={ShapeType.LINE: 500.0}
    )
    assert len(library) == 2
    assert library.shapes() == [ShapeType.CIRCLE, ShapeType.LINE]
    assert library.lookup("line").expected_duration_ms == 500.0
    assert library.lookup(ShapeType.CIRCLE).expected_duration_ms is None
    assert library.lookup(ShapeType.OVAL) is None
    assert library.lookup("hexagon") is None


def test_library_rejects_duplicate_guides():
    with pytest.raises(ValueError):
        GuideLibrary([build_guide(ShapeType.LINE), build_guide(ShapeType.LINE)])
