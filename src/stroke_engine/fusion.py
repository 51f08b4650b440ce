# ABOUTME: Fuses alignment accuracy with classifier and pacing signals.
# ABOUTME: Always yields a bounded FusedScore, degrading when signals are missing.

from __future__ import annotations

import math
from typing import Optional, Tuple

import numpy as np

from src.common.config import FusionWeights
from src.common.schemas import (
    CORRECTNESS_THRESHOLD,
    ClassifierResult,
    FusedScore,
    GuideReference,
    ShapeType,
    Stroke,
)

from .preprocess import points_to_array


def _clip01(value: float) -> float:
    if not math.isfinite(value):
        return 0.0
    return float(min(max(value, 0.0), 1.0))


def apply_classifier(
    base: float, result: Optional[ClassifierResult], target: ShapeType, weights: FusionWeights
) -> float:
    """
    Nudge the alignment score by classifier agreement.

    A matching label closes part of the gap to 1.0; a mismatch removes a
    share of the score. Both scale with confidence and stay inside [0, 1].
    """

    base = _clip01(base)
    if result is None:
        return base
    confidence = _clip01(result.confidence)
    if result.predicted_label == target:
        return _clip01(base + weights.classifier_bonus * confidence * (1.0 - base))
    return _clip01(base - weights.classifier_penalty * confidence * base)


def pacing_signals(stroke: Stroke, guide: GuideReference) -> Optional[Tuple[float, float]]:
    """
    Temporal accuracy and velocity consistency against the guide's pacing.

    Returns ``None`` when the guide has no expected duration or the stroke
    carries no usable timing.
    """

    expected = guide.expected_duration_ms
    if not expected or expected <= 0:
        return None

    arr = points_to_array(stroke.points)
    if len(arr) < 2:
        return None
    duration = float(arr[-1, 2] - arr[0, 2])
    if duration <= 0:
        return None
    temporal = _clip01(1.0 - abs(duration - expected) / expected)

    dt = np.diff(arr[:, 2])
    dist = np.linalg.norm(np.diff(arr[:, :2], axis=0), axis=1)
    valid = dt > 0
    if not valid.any():
        return None
    speeds = dist[valid] / dt[valid]
    mean_speed = float(speeds.mean())
    velocity = _clip01(1.0 - float(speeds.std()) / mean_speed) if mean_speed > 0 else 0.0
    return temporal, velocity


def fuse_signals(
    alignment_accuracy: float,
    classifier_result: Optional[ClassifierResult],
    stroke: Stroke,
    guide: GuideReference,
    weights: FusionWeights = FusionWeights(),
) -> FusedScore:
    base = _clip01(alignment_accuracy)
    accuracy = apply_classifier(base, classifier_result, guide.shape_id, weights)

    pacing = pacing_signals(stroke, guide)
    temporal, velocity = pacing if pacing is not None else (0.0, 0.0)
    if pacing is not None:
        spatial_weight = 1.0 - weights.temporal_weight - weights.velocity_weight
        accuracy = spatial_weight * accuracy + weights.temporal_weight * temporal + weights.velocity_weight * velocity

    accuracy = _clip01(accuracy)
    label_match = None
    if classifier_result is not None:
        label_match = classifier_result.predicted_label == guide.shape_id

    return FusedScore(
        accuracy=accuracy,
        is_correct=accuracy >= CORRECTNESS_THRESHOLD,
        temporal_accuracy=temporal,
        velocity_consistency=velocity,
        confidence_score=_clip01(classifier_result.confidence) if classifier_result is not None else 0.0,
        alignment_accuracy=base,
        label_match=label_match,
        pacing_available=pacing is not None,
    )
