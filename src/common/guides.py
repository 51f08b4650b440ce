# ABOUTME: Generates reference guide paths for the basic shape vocabulary.
# ABOUTME: Holds the per-lesson guide library looked up by shape identifier.

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional, Tuple

import numpy as np

from .schemas import GuideReference, LessonCategory, Point, ShapeType

DEFAULT_GUIDE_POINTS = 100


def circle_path(center: Tuple[float, float], radius: float, n_points: int = DEFAULT_GUIDE_POINTS) -> np.ndarray:
    """Closed circle starting at angle 0, traced counter-clockwise."""
    return oval_path(center, radius, radius, n_points)


def oval_path(
    center: Tuple[float, float], radius_x: float, radius_y: float, n_points: int = DEFAULT_GUIDE_POINTS
) -> np.ndarray:
    theta = np.linspace(0.0, 2.0 * np.pi, n_points)
    cx, cy = center
    return np.column_stack([cx + radius_x * np.cos(theta), cy + radius_y * np.sin(theta)])


def line_path(
    start: Tuple[float, float], end: Tuple[float, float], n_points: int = DEFAULT_GUIDE_POINTS
) -> np.ndarray:
    t = np.linspace(0.0, 1.0, n_points)[:, None]
    return np.asarray(start, dtype=float) + t * (np.asarray(end, dtype=float) - np.asarray(start, dtype=float))


def curve_path(
    start: Tuple[float, float],
    control1: Tuple[float, float],
    control2: Tuple[float, float],
    end: Tuple[float, float],
    n_points: int = DEFAULT_GUIDE_POINTS,
) -> np.ndarray:
    """Cubic Bezier curve."""
    t = np.linspace(0.0, 1.0, n_points)[:, None]
    p0, p1, p2, p3 = (np.asarray(p, dtype=float) for p in (start, control1, control2, end))
    return ((1 - t) ** 3) * p0 + 3 * ((1 - t) ** 2) * t * p1 + 3 * (1 - t) * (t**2) * p2 + (t**3) * p3


def polygon_path(vertices: Iterable[Tuple[float, float]], n_points: int = DEFAULT_GUIDE_POINTS) -> np.ndarray:
    """Closed polyline through the vertices, sampled evenly by perimeter."""
    corners = np.asarray(list(vertices), dtype=float)
    closed = np.vstack([corners, corners[:1]])
    seg_lengths = np.linalg.norm(np.diff(closed, axis=0), axis=1)
    cumulative = np.concatenate([[0.0], np.cumsum(seg_lengths)])
    targets = np.linspace(0.0, cumulative[-1], n_points)
    xs = np.interp(targets, cumulative, closed[:, 0])
    ys = np.interp(targets, cumulative, closed[:, 1])
    return np.column_stack([xs, ys])


def rectangle_path(
    center: Tuple[float, float], width: float, height: float, n_points: int = DEFAULT_GUIDE_POINTS
) -> np.ndarray:
    cx, cy = center
    hw, hh = width / 2.0, height / 2.0
    return polygon_path([(cx - hw, cy - hh), (cx + hw, cy - hh), (cx + hw, cy + hh), (cx - hw, cy + hh)], n_points)


def shape_path(
    shape: ShapeType,
    center: Tuple[float, float] = (500.0, 500.0),
    size: float = 200.0,
    n_points: int = DEFAULT_GUIDE_POINTS,
) -> np.ndarray:
    """Default reference geometry for a shape, fitted inside a ``size`` box."""

    cx, cy = center
    half = size / 2.0
    shape = ShapeType(shape)
    if shape is ShapeType.CIRCLE:
        return circle_path(center, half, n_points)
    if shape is ShapeType.OVAL:
        return oval_path(center, half, half * 0.6, n_points)
    if shape is ShapeType.RECTANGLE:
        return rectangle_path(center, size, size * 0.7, n_points)
    if shape is ShapeType.LINE:
        return line_path((cx - half, cy), (cx + half, cy), n_points)
    if shape is ShapeType.CURVE:
        return curve_path((cx - half, cy), (cx - half / 2, cy - half), (cx + half / 2, cy + half), (cx + half, cy), n_points)
    if shape is ShapeType.POLYGON:
        return polygon_path([(cx, cy - half), (cx + half, cy + half), (cx - half, cy + half)], n_points)
    raise ValueError(f"Unsupported shape '{shape}'.")


def path_to_points(path: np.ndarray, duration_ms: Optional[float] = None) -> Tuple[Point, ...]:
    """Attach evenly spaced timestamps (or zeros) to an (N, 2) coordinate array."""
    n = len(path)
    if duration_ms and n > 1:
        stamps = np.linspace(0.0, duration_ms, n)
    else:
        stamps = np.zeros(n)
    return tuple(Point(float(x), float(y), float(t)) for (x, y), t in zip(path, stamps))


def build_guide(
    shape: ShapeType,
    category: LessonCategory = LessonCategory.BASIC_SHAPES,
    center: Tuple[float, float] = (500.0, 500.0),
    size: float = 200.0,
    n_points: int = DEFAULT_GUIDE_POINTS,
    expected_duration_ms: Optional[float] = None,
) -> GuideReference:
    path = shape_path(shape, center=center, size=size, n_points=n_points)
    return GuideReference(
        shape_id=ShapeType(shape),
        reference_path=path_to_points(path, expected_duration_ms),
        category=LessonCategory(category),
        expected_duration_ms=expected_duration_ms,
    )


class GuideLibrary:
    """Read-only guides for one lesson context, keyed by shape identifier."""

    def __init__(self, guides: Iterable[GuideReference]):
        self._guides: Dict[ShapeType, GuideReference] = {}
        for guide in guides:
            if guide.shape_id in self._guides:
                raise ValueError(f"Duplicate guide for shape '{guide.shape_id.value}'.")
            self._guides[guide.shape_id] = guide

    @classmethod
    def for_lesson(
        cls,
        shapes: Iterable[ShapeType],
        category: LessonCategory = LessonCategory.BASIC_SHAPES,
        pacing_ms: Optional[Mapping[ShapeType, float]] = None,
        **geometry,
    ) -> "GuideLibrary":
        pacing_ms = pacing_ms or {}
        return cls(
            build_guide(shape, category=category, expected_duration_ms=pacing_ms.get(ShapeType(shape)), **geometry)
            for shape in dict.fromkeys(ShapeType(s) for s in shapes)
        )

    def lookup(self, shape_id: ShapeType) -> Optional[GuideReference]:
        try:
            return self._guides.get(ShapeType(shape_id))
        except ValueError:
            return None

    def shapes(self) -> List[ShapeType]:
        return list(self._guides)

    def __len__(self) -> int:
        return len(self._guides)
