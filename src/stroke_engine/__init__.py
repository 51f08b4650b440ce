# ABOUTME: Groups the stroke analysis pipeline, classifier adapters, and scheduler.
# ABOUTME: Re-exports the entry points used by scripts and drawing sessions.

from .classifier import GeometricShapeClassifier, ShapeClassifier, TorchShapeClassifier, invoke_classifier
from .outcomes import (
    AnalysisOutcome,
    ClassifierUnavailable,
    InsufficientDataError,
    InvalidGuideError,
    InvalidStrokeError,
    OutcomeStatus,
    StrokeAnalysisError,
)
from .pipeline import StrokePipeline, analyze_stroke, validate_guide
from .scheduler import AnalysisScheduler, DrawingSession, SchedulerPhase

__all__ = [
    "GeometricShapeClassifier",
    "ShapeClassifier",
    "TorchShapeClassifier",
    "invoke_classifier",
    "AnalysisOutcome",
    "ClassifierUnavailable",
    "InsufficientDataError",
    "InvalidGuideError",
    "InvalidStrokeError",
    "OutcomeStatus",
    "StrokeAnalysisError",
    "StrokePipeline",
    "analyze_stroke",
    "validate_guide",
    "AnalysisScheduler",
    "DrawingSession",
    "SchedulerPhase",
]
