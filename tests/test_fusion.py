# ABOUTME: Tests score fusion across alignment, classifier, and pacing signals.
# ABOUTME: Checks bounds, the correctness threshold, and degraded inputs.

import numpy as np
import pytest

from src.common.config import FusionWeights
from src.common.guides import build_guide
from src.common.schemas import CORRECTNESS_THRESHOLD, ClassifierResult, Point, ShapeType, Stroke
from src.stroke_engine.fusion import apply_classifier, fuse_signals, pacing_signals


def _stroke(timestamps, shape=ShapeType.LINE):
    xs = np.linspace(0, 100, len(timestamps))
    return Stroke.from_points([Point(float(x), 0.0, float(t)) for x, t in zip(xs, timestamps)], shape)


LINE_GUIDE = build_guide(ShapeType.LINE)
PACED_GUIDE = build_guide(ShapeType.LINE, expected_duration_ms=1000.0)
STILL_STROKE = _stroke([0, 0, 0, 0])


def test_classifier_unavailable_uses_alignment_only():
    fused = fuse_signals(0.72, None, STILL_STROKE, LINE_GUIDE)
    assert fused.accuracy == pytest.approx(0.72)
    assert fused.is_correct
    assert fused.confidence_score == 0.0
    assert fused.label_match is None
    assert not fused.pacing_available


def test_matching_label_closes_gap_to_one():
    weights = FusionWeights()
    boosted = apply_classifier(0.6, ClassifierResult(ShapeType.LINE, 1.0), ShapeType.LINE, weights)
    assert boosted == pytest.approx(0.6 + weights.classifier_bonus * 0.4)
    assert apply_classifier(1.0, ClassifierResult(ShapeType.LINE, 1.0), ShapeType.LINE, weights) == 1.0


def test_mismatched_label_removes_share_of_score():
    weights = FusionWeights()
    lowered = apply_classifier(0.8, ClassifierResult(ShapeType.CIRCLE, 0.5), ShapeType.LINE, weights)
    assert lowered == pytest.approx(0.8 - weights.classifier_penalty * 0.5 * 0.8)


@pytest.mark.parametrize("base", [-3.0, 0.0, 0.3, 0.69999, 0.7, 1.0, 7.0, float("nan"), float("inf")])
@pytest.mark.parametrize(
    "result",
    [None, ClassifierResult(ShapeType.LINE, 1.0), ClassifierResult(ShapeType.CIRCLE, 1.0)],
)
def test_accuracy_bounded_and_correctness_matches_threshold(base, result):
    fused = fuse_signals(base, result, STILL_STROKE, LINE_GUIDE)
    assert 0.0 <= fused.accuracy <= 1.0
    assert fused.is_correct == (fused.accuracy >= CORRECTNESS_THRESHOLD)


def test_pacing_requires_expected_duration_and_timing():
    assert pacing_signals(_stroke([0, 100, 200]), LINE_GUIDE) is None
    assert pacing_signals(STILL_STROKE, PACED_GUIDE) is None


def test_pacing_on_time_and_even_speed_is_perfect():
    temporal, velocity = pacing_signals(_stroke([0, 250, 500, 750, 1000]), PACED_GUIDE)
    assert temporal == pytest.approx(1.0)
    assert velocity == pytest.approx(1.0)


def test_pacing_penalizes_slow_and_uneven_strokes():
    temporal, velocity = pacing_signals(_stroke([0, 10, 20, 30, 2000]), PACED_GUIDE)
    assert temporal == pytest.approx(0.0)
    assert velocity < 0.5


def test_pacing_blends_into_accuracy():
    weights = FusionWeights(temporal_weight=0.2, velocity_weight=0.1)
    fused = fuse_signals(0.8, None, _stroke([0, 500, 1000, 1500, 2000]), PACED_GUIDE, weights)
    # Twice the expected duration with even speed.
    assert fused.pacing_available
    assert fused.temporal_accuracy == pytest.approx(0.0)
    assert fused.velocity_consistency == pytest.approx(1.0)
    assert fused.accuracy == pytest.approx(0.7 * 0.8 + 0.1)
    assert fused.alignment_accuracy == pytest.approx(0.8)
