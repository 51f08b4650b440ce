# ABOUTME: Defines canonical data structures shared by the stroke engine and tools.
# ABOUTME: Centralizes point, stroke, guide, score, and feedback schema definitions.

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple

CORRECTNESS_THRESHOLD = 0.7


class ShapeType(str, Enum):
    """Shape identifiers a guide can ask the user to trace."""

    CIRCLE = "circle"
    OVAL = "oval"
    RECTANGLE = "rectangle"
    LINE = "line"
    CURVE = "curve"
    POLYGON = "polygon"


class LessonCategory(str, Enum):
    BASIC_SHAPES = "basic_shapes"
    FACES = "faces"
    ANIMALS = "animals"
    OBJECTS = "objects"
    HANDS = "hands"
    PERSPECTIVE = "perspective"
    NATURE = "nature"


class UserLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


@dataclass(frozen=True)
class Point:
    """Captured canvas sample; timestamp is in milliseconds."""

    x: float
    y: float
    timestamp: float = 0.0


@dataclass(frozen=True)
class Stroke:
    points: Tuple[Point, ...]
    guide_id: ShapeType

    @classmethod
    def from_points(cls, points: Sequence[Point], guide_id: ShapeType) -> "Stroke":
        return cls(points=tuple(points), guide_id=ShapeType(guide_id))


@dataclass(frozen=True)
class GuideReference:
    """Immutable reference path for one lesson step."""

    shape_id: ShapeType
    reference_path: Tuple[Point, ...]
    category: LessonCategory = LessonCategory.BASIC_SHAPES
    expected_duration_ms: Optional[float] = None


@dataclass(frozen=True)
class AlignmentResult:
    normalized_cost: float
    matched_pairs: Tuple[Tuple[int, int], ...]


@dataclass(frozen=True)
class ClassifierResult:
    predicted_label: ShapeType
    confidence: float


@dataclass(frozen=True)
class FusedScore:
    """Combined quality signals for one analyzed stroke."""

    accuracy: float
    is_correct: bool
    temporal_accuracy: float
    velocity_consistency: float
    confidence_score: float
    alignment_accuracy: float = 0.0
    label_match: Optional[bool] = None
    pacing_available: bool = False


@dataclass(frozen=True)
class Feedback:
    overall_score: float
    suggestions: Tuple[str, ...]
    encouragement: str
    show_visual_correction: bool


@dataclass
class SchedulerState:
    """Per-session throttling state, mutated only by the analysis scheduler."""

    min_interval_ms: float
    last_analysis_timestamp: Optional[float] = None
    memory_pressure_level: int = 0
