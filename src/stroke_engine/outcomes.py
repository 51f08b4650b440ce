# ABOUTME: Declares pipeline exceptions and the typed outcome returned to callers.
# ABOUTME: Keeps failures recoverable at the analysis boundary instead of fatal.

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from src.common.schemas import AlignmentResult, ClassifierResult, Feedback, FusedScore


class StrokeAnalysisError(Exception):
    """Base class for failures recovered at the pipeline boundary."""


class InsufficientDataError(StrokeAnalysisError):
    def __init__(self, point_count: int):
        super().__init__(f"Stroke has {point_count} point(s); at least 2 are required.")
        self.point_count = point_count


class InvalidGuideError(StrokeAnalysisError):
    pass


class InvalidStrokeError(StrokeAnalysisError):
    """Stroke points are non-finite or exceed the accepted size."""


class ClassifierUnavailable(StrokeAnalysisError):
    """Classifier failed, timed out, or returned nothing usable."""


class OutcomeStatus(str, Enum):
    ANALYZED = "analyzed"
    THROTTLED = "throttled"
    SUSPENDED = "suspended"
    INSUFFICIENT_DATA = "insufficient_data"
    INVALID_GUIDE = "invalid_guide"
    INVALID_STROKE = "invalid_stroke"


@dataclass(frozen=True)
class AnalysisOutcome:
    """
    Result of one stroke-update event.

    Only ``ANALYZED`` carries feedback; every other status means the caller
    keeps showing whatever feedback it already has.
    """

    status: OutcomeStatus
    feedback: Optional[Feedback] = None
    fused: Optional[FusedScore] = None
    alignment: Optional[AlignmentResult] = None
    classifier: Optional[ClassifierResult] = None
    message: str = ""
    elapsed_ms: float = 0.0

    @property
    def analyzed(self) -> bool:
        return self.status is OutcomeStatus.ANALYZED

    @classmethod
    def skipped(cls, status: OutcomeStatus, message: str = "") -> "AnalysisOutcome":
        return cls(status=status, message=message)
