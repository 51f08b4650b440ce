# ABOUTME: Tests DTW alignment cost, warping path, and accuracy mapping.
# ABOUTME: Ensures identical paths cost zero and accuracy stays within [0, 1].

import math

import numpy as np
import pytest

from src.common.config import AlignmentConfig
from src.common.guides import build_guide, path_to_points, shape_path
from src.common.schemas import GuideReference, Point, ShapeType
from src.stroke_engine.dtw import (
    align_to_guide,
    alignment_accuracy,
    cumulative_cost,
    dtw_align,
    guide_diagonal,
)
from src.stroke_engine.outcomes import InvalidGuideError


def _wiggle(n=40):
    t = np.linspace(0, 1, n)
    return [Point(float(100 * x), float(20 * math.sin(6 * x))) for x in t]


def test_identical_paths_cost_zero():
    path = _wiggle()
    result = dtw_align(path, path)
    assert result.normalized_cost == 0.0
    assert result.matched_pairs == tuple((i, i) for i in range(len(path)))


def test_cost_symmetric_under_reversal():
    user = _wiggle(30)
    ref = [Point(p.x, p.y + 5) for p in _wiggle(45)]
    forward = dtw_align(user, ref).normalized_cost
    reversed_cost = dtw_align(user[::-1], ref[::-1]).normalized_cost
    assert forward == pytest.approx(reversed_cost)


def test_matched_pairs_span_both_paths_monotonically():
    result = dtw_align(_wiggle(12), _wiggle(20))
    pairs = result.matched_pairs
    assert pairs[0] == (0, 0)
    assert pairs[-1] == (11, 19)
    for (i0, j0), (i1, j1) in zip(pairs, pairs[1:]):
        assert 0 <= i1 - i0 <= 1 and 0 <= j1 - j0 <= 1
        assert (i1, j1) != (i0, j0)


def test_cumulative_cost_small_matrix():
    costs = np.array([[1.0, 2.0], [3.0, 1.0]])
    np.testing.assert_allclose(cumulative_cost(costs), [[1.0, 3.0], [4.0, 2.0]])


def test_dtw_rejects_empty_path():
    with pytest.raises(ValueError):
        dtw_align([], _wiggle())


def test_accuracy_is_one_for_zero_cost_and_clamped_for_huge_cost():
    guide = build_guide(ShapeType.CIRCLE)
    assert alignment_accuracy(0.0, guide) == 1.0
    assert alignment_accuracy(1e12, guide) == 0.0
    assert alignment_accuracy(float("inf"), guide) == 0.0
    assert alignment_accuracy(float("nan"), guide) == 0.0


def test_accuracy_uses_quarter_diagonal_scale():
    guide = build_guide(ShapeType.RECTANGLE, size=200.0)
    scale = guide_diagonal(guide) * 0.25
    assert alignment_accuracy(scale / 2, guide) == pytest.approx(0.5)


def test_accuracy_rejects_guide_without_extent():
    flat = GuideReference(shape_id=ShapeType.LINE, reference_path=(Point(1, 1), Point(1, 1)))
    with pytest.raises(InvalidGuideError):
        alignment_accuracy(1.0, flat)


def test_align_to_guide_caps_long_paths():
    guide = GuideReference(
        shape_id=ShapeType.CIRCLE,
        reference_path=path_to_points(shape_path(ShapeType.CIRCLE, n_points=300)),
    )
    user = path_to_points(shape_path(ShapeType.CIRCLE, n_points=250))
    result = align_to_guide(user, guide, AlignmentConfig(max_points=50))

    assert result.matched_pairs[-1] == (49, 49)
    assert result.normalized_cost < 1.0
