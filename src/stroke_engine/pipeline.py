# ABOUTME: Runs one stroke analysis from raw points to composed feedback.
# ABOUTME: Aligns and classifies concurrently, joining the classifier under a deadline.

from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Optional

import numpy as np

from src.common.config import EngineConfig
from src.common.schemas import ClassifierResult, GuideReference, Stroke, UserLevel

from .classifier import ClassifierLike, invoke_classifier
from .dtw import align_to_guide, alignment_accuracy, guide_diagonal
from .feedback import compose_feedback
from .fusion import fuse_signals
from .outcomes import (
    AnalysisOutcome,
    ClassifierUnavailable,
    InsufficientDataError,
    InvalidGuideError,
    InvalidStrokeError,
    OutcomeStatus,
)
from .preprocess import points_to_array, preprocess_stroke

logger = logging.getLogger(__name__)


def validate_guide(guide: Optional[GuideReference], stroke: Optional[Stroke] = None) -> GuideReference:
    """Reject guides that cannot anchor an alignment."""

    if guide is None:
        target = stroke.guide_id.value if stroke is not None else "unknown"
        raise InvalidGuideError(f"No guide loaded for shape '{target}'.")
    if len(guide.reference_path) < 2:
        raise InvalidGuideError(f"Guide '{guide.shape_id.value}' needs at least 2 reference points.")
    coords = points_to_array(guide.reference_path)[:, :2]
    if not np.isfinite(coords).all():
        raise InvalidGuideError(f"Guide '{guide.shape_id.value}' contains non-finite coordinates.")
    if guide_diagonal(guide) <= 0:
        raise InvalidGuideError(f"Guide '{guide.shape_id.value}' has no spatial extent.")
    if stroke is not None and guide.shape_id != stroke.guide_id:
        raise InvalidGuideError(
            f"Guide '{guide.shape_id.value}' does not match stroke target '{stroke.guide_id.value}'."
        )
    return guide


class StrokePipeline:
    """
    Preprocess -> {align, classify} -> fuse -> compose for a single event.

    The classifier runs on ``executor`` while alignment runs on the calling
    thread. If the classifier misses its deadline the invocation proceeds
    without it and the late result is dropped.
    """

    def __init__(
        self,
        classifier: Optional[ClassifierLike] = None,
        config: Optional[EngineConfig] = None,
        executor: Optional[ThreadPoolExecutor] = None,
    ):
        self.classifier = classifier
        self.config = config or EngineConfig()
        self.executor = executor

    def run(
        self,
        stroke: Stroke,
        guide: Optional[GuideReference],
        user_level: UserLevel = UserLevel.BEGINNER,
    ) -> AnalysisOutcome:
        started = time.perf_counter()
        try:
            return self._run(stroke, guide, user_level, started)
        except InsufficientDataError as exc:
            logger.debug("Skipping analysis: %s", exc)
            return AnalysisOutcome.skipped(OutcomeStatus.INSUFFICIENT_DATA, str(exc))
        except InvalidGuideError as exc:
            logger.warning("Invalid guide: %s", exc)
            return AnalysisOutcome.skipped(OutcomeStatus.INVALID_GUIDE, str(exc))
        except InvalidStrokeError as exc:
            logger.warning("Invalid stroke: %s", exc)
            return AnalysisOutcome.skipped(OutcomeStatus.INVALID_STROKE, str(exc))

    def _run(
        self, stroke: Stroke, guide: Optional[GuideReference], user_level: UserLevel, started: float
    ) -> AnalysisOutcome:
        if len(stroke.points) < 2:
            raise InsufficientDataError(len(stroke.points))
        guide = validate_guide(guide, stroke)

        prepared = preprocess_stroke(stroke, self.config.raster, self.config.alignment, self.config.preprocess)
        deadline = time.monotonic() + self.config.scheduler.classifier_timeout_ms / 1000.0
        pending = self._submit_classifier(prepared.raster_grid)

        alignment = align_to_guide(prepared.resampled_path, guide, self.config.alignment)
        spatial = alignment_accuracy(alignment.normalized_cost, guide, self.config.alignment)

        try:
            classified = self._join_classifier(pending, prepared.raster_grid, deadline)
        except ClassifierUnavailable as exc:
            logger.debug("Scoring without classifier: %s", exc)
            classified = None

        fused = fuse_signals(spatial, classified, stroke, guide, self.config.fusion)
        feedback = compose_feedback(fused, guide.shape_id, user_level, guide.category)
        elapsed_ms = (time.perf_counter() - started) * 1000.0
        logger.debug(
            "Analyzed %d-point stroke against %s in %.2fms (accuracy=%.3f, correct=%s)",
            len(stroke.points),
            guide.shape_id.value,
            elapsed_ms,
            fused.accuracy,
            fused.is_correct,
        )
        return AnalysisOutcome(
            status=OutcomeStatus.ANALYZED,
            feedback=feedback,
            fused=fused,
            alignment=alignment,
            classifier=classified,
            elapsed_ms=elapsed_ms,
        )

    def _submit_classifier(self, grid: np.ndarray) -> Optional[Future]:
        if self.classifier is None or self.executor is None:
            return None
        return self.executor.submit(invoke_classifier, self.classifier, grid)

    def _join_classifier(self, pending: Optional[Future], grid: np.ndarray, deadline: float) -> ClassifierResult:
        if self.classifier is None:
            raise ClassifierUnavailable("no classifier configured")
        if pending is None:
            result = invoke_classifier(self.classifier, grid)
        else:
            timeout_s = max(0.0, deadline - time.monotonic())
            try:
                result = pending.result(timeout=timeout_s)
            except FutureTimeoutError:
                pending.cancel()
                raise ClassifierUnavailable(
                    f"classifier exceeded {self.config.scheduler.classifier_timeout_ms:.0f}ms deadline"
                )
        if result is None:
            raise ClassifierUnavailable("classifier produced no result")
        return result


def analyze_stroke(
    stroke: Stroke,
    guide: Optional[GuideReference],
    user_level: UserLevel = UserLevel.BEGINNER,
    classifier: Optional[ClassifierLike] = None,
    config: Optional[EngineConfig] = None,
) -> AnalysisOutcome:
    """
    Unscheduled single analysis for callers that throttle on their own.

    A private worker thread bounds the classifier wait; it is released
    without waiting so a stuck model never blocks the caller.
    """

    if classifier is None:
        return StrokePipeline(None, config).run(stroke, guide, user_level)

    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="stroke-classifier")
    try:
        return StrokePipeline(classifier, config, executor).run(stroke, guide, user_level)
    finally:
        executor.shutdown(wait=False)
