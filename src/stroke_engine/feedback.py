# ABOUTME: Turns fused scores into ranked suggestions and an encouragement line.
# ABOUTME: Pure table lookups keyed by accuracy band, user level, and lesson category.

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from src.common.schemas import Feedback, FusedScore, LessonCategory, ShapeType, UserLevel

BAND_EXCELLENT = "excellent"
BAND_GOOD = "good"
BAND_NEEDS_IMPROVEMENT = "needs_improvement"
BAND_KEEP_TRYING = "keep_trying"

SPATIAL_ISSUE_BELOW = 0.85
PACING_ISSUE_BELOW = 0.6

MAX_SUGGESTIONS = {
    UserLevel.BEGINNER: 2,
    UserLevel.INTERMEDIATE: 3,
    UserLevel.ADVANCED: 3,
}

ENCOURAGEMENT = {
    BAND_EXCELLENT: {
        UserLevel.BEGINNER: "Wow! That is a beautiful stroke - you're a natural!",
        UserLevel.INTERMEDIATE: "Excellent work! Your control is really showing.",
        UserLevel.ADVANCED: "Excellent precision. That stroke is right on the guide.",
    },
    BAND_GOOD: {
        UserLevel.BEGINNER: "Great job! Every stroke is making you a better artist.",
        UserLevel.INTERMEDIATE: "Nice stroke! You're right where you need to be.",
        UserLevel.ADVANCED: "Solid stroke. A little refinement will make it sharp.",
    },
    BAND_NEEDS_IMPROVEMENT: {
        UserLevel.BEGINNER: "You're getting the hang of it - keep practicing!",
        UserLevel.INTERMEDIATE: "Getting closer! Small adjustments will get you there.",
        UserLevel.ADVANCED: "Close, but not there yet. Tighten up the path.",
    },
    BAND_KEEP_TRYING: {
        UserLevel.BEGINNER: "Don't worry! Every artist started right where you are.",
        UserLevel.INTERMEDIATE: "Keep trying - each attempt teaches your hand something new.",
        UserLevel.ADVANCED: "Reset and try again, slower and more deliberately.",
    },
}

SHAPE_TIPS = {
    ShapeType.CIRCLE: "keep an even distance from the center all the way around",
    ShapeType.OVAL: "stretch the curve evenly along the long axis",
    ShapeType.RECTANGLE: "pause at each corner and keep the edges straight",
    ShapeType.LINE: "move your whole arm in one steady direction",
    ShapeType.CURVE: "let the bend flow without flattening it",
    ShapeType.POLYGON: "hit each corner before turning to the next edge",
}

CATEGORY_SUBJECT = {
    LessonCategory.FACES: "portrait",
    LessonCategory.ANIMALS: "animal",
    LessonCategory.OBJECTS: "object",
    LessonCategory.HANDS: "hand study",
    LessonCategory.PERSPECTIVE: "perspective sketch",
    LessonCategory.NATURE: "nature scene",
}


@dataclass(frozen=True)
class _Suggestion:
    text: str
    severity: float
    names_shape: bool


def accuracy_band(accuracy: float) -> str:
    if accuracy >= 0.9:
        return BAND_EXCELLENT
    if accuracy >= 0.7:
        return BAND_GOOD
    if accuracy >= 0.4:
        return BAND_NEEDS_IMPROVEMENT
    return BAND_KEEP_TRYING


def _is_artistic(category: LessonCategory) -> bool:
    return LessonCategory(category) is not LessonCategory.BASIC_SHAPES


def _shape_mismatch_text(shape: ShapeType, category: LessonCategory) -> str:
    if _is_artistic(category):
        subject = CATEGORY_SUBJECT[LessonCategory(category)]
        return f"Build your {subject} on a clear {shape.value} - let that form read first."
    return f"That doesn't read as a {shape.value} yet - check the guide's overall form."


def _spatial_text(shape: ShapeType, category: LessonCategory) -> str:
    tip = SHAPE_TIPS[shape]
    if _is_artistic(category):
        subject = CATEGORY_SUBJECT[LessonCategory(category)]
        return f"Let the {shape.value} in your {subject} follow the guide's contour - {tip}."
    return f"Follow the {shape.value} guide more closely - {tip}."


def _pacing_text(category: LessonCategory) -> str:
    if _is_artistic(category):
        return "Keep a steady rhythm as you draw - it'll make your lines flow better."
    return "Try a steadier pace that matches the guide's timing."


def _smoothness_text(category: LessonCategory) -> str:
    if _is_artistic(category):
        return "Draw with more confidence - smooth, unbroken motion gives your line character."
    return "Focus on smooth strokes - avoid speeding up and stalling along the path."


def _next_step_text(shape: ShapeType, band: str, category: LessonCategory) -> str:
    if band == BAND_EXCELLENT:
        if _is_artistic(category):
            return "Try adding a little more expression to your line next time."
        return f"Try the {shape.value} again at a quicker, confident pace."
    return f"Repeat the {shape.value} a few times to lock in the motion."


def rank_suggestions(
    fused: FusedScore,
    target_shape: ShapeType,
    user_level: UserLevel,
    category: LessonCategory,
) -> List[str]:
    """
    Most actionable suggestion first.

    When the stroke is incorrect, shape-fidelity suggestions outrank pacing
    ones and at least one of them names the guide shape.
    """

    target_shape = ShapeType(target_shape)
    items: List[_Suggestion] = []
    if fused.label_match is False:
        items.append(_Suggestion(_shape_mismatch_text(target_shape, category), 0.5 + 0.5 * fused.confidence_score, True))
    spatial_gap = 1.0 - fused.alignment_accuracy
    if not fused.is_correct or fused.alignment_accuracy < SPATIAL_ISSUE_BELOW:
        items.append(_Suggestion(_spatial_text(target_shape, category), spatial_gap, True))
    if fused.pacing_available and fused.temporal_accuracy < PACING_ISSUE_BELOW:
        items.append(_Suggestion(_pacing_text(category), 1.0 - fused.temporal_accuracy, False))
    if fused.pacing_available and fused.velocity_consistency < PACING_ISSUE_BELOW:
        items.append(_Suggestion(_smoothness_text(category), 1.0 - fused.velocity_consistency, False))

    if not fused.is_correct:
        items.sort(key=lambda s: (not s.names_shape, -s.severity))
    else:
        items.sort(key=lambda s: -s.severity)

    limit = MAX_SUGGESTIONS[UserLevel(user_level)]
    suggestions = [s.text for s in items[:limit]]
    if not suggestions:
        suggestions.append(_next_step_text(target_shape, accuracy_band(fused.accuracy), category))
    return suggestions


def compose_feedback(
    fused: FusedScore,
    target_shape: ShapeType,
    user_level: UserLevel = UserLevel.BEGINNER,
    category: LessonCategory = LessonCategory.BASIC_SHAPES,
) -> Feedback:
    band = accuracy_band(fused.accuracy)
    return Feedback(
        overall_score=fused.accuracy,
        suggestions=tuple(rank_suggestions(fused, target_shape, user_level, category)),
        encouragement=ENCOURAGEMENT[band][UserLevel(user_level)],
        show_visual_correction=not fused.is_correct,
    )
