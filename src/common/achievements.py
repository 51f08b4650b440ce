# ABOUTME: Closed set of achievement requirements with tagged serialization.
# ABOUTME: Evaluates progress toward each requirement from a drawing history.

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import ClassVar, Dict, Iterable, List, Union

from .schemas import LessonCategory


@dataclass(frozen=True)
class FirstDrawing:
    kind: ClassVar[str] = "first_drawing"


@dataclass(frozen=True)
class Streak:
    days: int
    kind: ClassVar[str] = "streak"


@dataclass(frozen=True)
class DrawingsCount:
    count: int
    kind: ClassVar[str] = "drawings_count"


@dataclass(frozen=True)
class CategoryMastery:
    category: LessonCategory
    count: int
    kind: ClassVar[str] = "category_mastery"


AchievementRequirement = Union[FirstDrawing, Streak, DrawingsCount, CategoryMastery]

REQUIREMENT_KINDS = {
    FirstDrawing.kind: FirstDrawing,
    Streak.kind: Streak,
    DrawingsCount.kind: DrawingsCount,
    CategoryMastery.kind: CategoryMastery,
}


@dataclass(frozen=True)
class DrawingRecord:
    category: LessonCategory
    created_at: datetime


@dataclass(frozen=True)
class AchievementProgress:
    current: int
    target: int

    @property
    def completed(self) -> bool:
        return self.current >= self.target

    @property
    def fraction(self) -> float:
        if self.target <= 0:
            return 1.0
        return min(self.current / self.target, 1.0)


def requirement_to_dict(requirement: AchievementRequirement) -> Dict[str, object]:
    if isinstance(requirement, FirstDrawing):
        return {"kind": requirement.kind}
    if isinstance(requirement, Streak):
        return {"kind": requirement.kind, "days": requirement.days}
    if isinstance(requirement, DrawingsCount):
        return {"kind": requirement.kind, "count": requirement.count}
    if isinstance(requirement, CategoryMastery):
        return {"kind": requirement.kind, "category": LessonCategory(requirement.category).value, "count": requirement.count}
    raise TypeError(f"Unknown achievement requirement: {requirement!r}")


def requirement_from_dict(payload: Dict[str, object]) -> AchievementRequirement:
    """
    Rebuild a requirement from its tagged form.

    Unknown ``kind`` tags and missing fields raise ``ValueError`` instead of
    silently degrading to a different requirement.
    """

    kind = payload.get("kind")
    if kind not in REQUIREMENT_KINDS:
        raise ValueError(f"Unknown achievement kind '{kind}'. Expected one of: {', '.join(sorted(REQUIREMENT_KINDS))}.")
    try:
        if kind == FirstDrawing.kind:
            return FirstDrawing()
        if kind == Streak.kind:
            return Streak(days=_positive_int(payload["days"], "days"))
        if kind == DrawingsCount.kind:
            return DrawingsCount(count=_positive_int(payload["count"], "count"))
        return CategoryMastery(
            category=LessonCategory(payload["category"]),
            count=_positive_int(payload["count"], "count"),
        )
    except KeyError as exc:
        raise ValueError(f"Achievement '{kind}' is missing field {exc.args[0]!r}.") from exc


def _positive_int(value: object, name: str) -> int:
    number = int(value)
    if number < 1:
        raise ValueError(f"Achievement field '{name}' must be >= 1, got {value!r}.")
    return number


def longest_daily_streak(days: Iterable[date]) -> int:
    ordered = sorted(set(days))
    best = run = 0
    previous = None
    for day in ordered:
        run = run + 1 if previous is not None and day - previous == timedelta(days=1) else 1
        best = max(best, run)
        previous = day
    return best


def requirement_progress(requirement: AchievementRequirement, drawings: List[DrawingRecord]) -> AchievementProgress:
    if isinstance(requirement, FirstDrawing):
        return AchievementProgress(current=min(len(drawings), 1), target=1)
    if isinstance(requirement, Streak):
        streak = longest_daily_streak(d.created_at.date() for d in drawings)
        return AchievementProgress(current=streak, target=requirement.days)
    if isinstance(requirement, DrawingsCount):
        return AchievementProgress(current=len(drawings), target=requirement.count)
    if isinstance(requirement, CategoryMastery):
        matched = sum(1 for d in drawings if LessonCategory(d.category) is LessonCategory(requirement.category))
        return AchievementProgress(current=matched, target=requirement.count)
    raise TypeError(f"Unknown achievement requirement: {requirement!r}")
