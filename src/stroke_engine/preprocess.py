# ABOUTME: Normalizes raw stroke points for alignment and classification.
# ABOUTME: Rejects bad samples, resamples by arc length, smooths, and rasterizes to a grid.

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np

from src.common.config import AlignmentConfig, PreprocessConfig, RasterConfig
from src.common.schemas import Point, Stroke

from .outcomes import InsufficientDataError, InvalidStrokeError

BoundingBox = Tuple[float, float, float, float]

_EPS = 1e-9


@dataclass(frozen=True)
class PreprocessedStroke:
    bounding_box: BoundingBox
    raster_grid: np.ndarray
    resampled_path: Tuple[Point, ...]


def points_to_array(points: Sequence[Point]) -> np.ndarray:
    """Stack points into an (N, 3) float array of x, y, timestamp."""
    if not points:
        return np.zeros((0, 3), dtype=float)
    return np.array([(p.x, p.y, p.timestamp) for p in points], dtype=float)


def path_xy(points: Sequence[Point]) -> np.ndarray:
    return points_to_array(points)[:, :2]


def bounding_box(points: Sequence[Point]) -> BoundingBox:
    xy = path_xy(points)
    if len(xy) == 0:
        return (0.0, 0.0, 0.0, 0.0)
    min_x, min_y = xy.min(axis=0)
    max_x, max_y = xy.max(axis=0)
    return (float(min_x), float(min_y), float(max_x), float(max_y))


def path_length(points: Sequence[Point]) -> float:
    xy = path_xy(points)
    if len(xy) < 2:
        return 0.0
    return float(np.linalg.norm(np.diff(xy, axis=0), axis=1).sum())


def resample_path(points: Sequence[Point], max_points: int) -> Tuple[Point, ...]:
    """
    Resample a path to uniform arc-length spacing.

    The output keeps the input's point count, capped at ``max_points``.
    Timestamps are interpolated along with coordinates. A path with no
    length collapses to its first point.
    """

    arr = points_to_array(points)
    if len(arr) == 0:
        return ()

    seg = np.linalg.norm(np.diff(arr[:, :2], axis=0), axis=1)
    keep = np.concatenate([[True], seg > _EPS])
    arr = arr[keep]
    seg = seg[seg > _EPS]
    if len(arr) < 2:
        p = arr[0]
        return (Point(float(p[0]), float(p[1]), float(p[2])),)

    cumulative = np.concatenate([[0.0], np.cumsum(seg)])
    n = max(2, min(len(points), max_points))
    targets = np.linspace(0.0, cumulative[-1], n)
    xs = np.interp(targets, cumulative, arr[:, 0])
    ys = np.interp(targets, cumulative, arr[:, 1])
    ts = np.interp(targets, cumulative, arr[:, 2])
    return tuple(Point(float(x), float(y), float(t)) for x, y, t in zip(xs, ys, ts))


def rasterize(points: Sequence[Point], bbox: BoundingBox, size: int = 28, margin: int = 2) -> np.ndarray:
    """
    Draw the path into a ``size`` x ``size`` grid of 0/1 floats.

    The bounding box is scaled by its larger side and centered, so aspect
    ratio is preserved. A box with no extent yields an empty grid.
    """

    grid = np.zeros((size, size), dtype=np.float32)
    min_x, min_y, max_x, max_y = bbox
    width, height = max_x - min_x, max_y - min_y
    extent = max(width, height)
    if extent < _EPS or not points:
        return grid

    drawable = size - 1 - 2 * margin
    scale = drawable / extent
    offset_x = margin + (drawable - width * scale) / 2.0
    offset_y = margin + (drawable - height * scale) / 2.0

    xy = path_xy(points)
    px = offset_x + (xy[:, 0] - min_x) * scale
    py = offset_y + (xy[:, 1] - min_y) * scale

    cols, rows = [np.rint(px[:1])], [np.rint(py[:1])]
    for i in range(1, len(xy)):
        steps = int(np.ceil(max(abs(px[i] - px[i - 1]), abs(py[i] - py[i - 1])))) + 1
        cols.append(np.rint(np.linspace(px[i - 1], px[i], steps)))
        rows.append(np.rint(np.linspace(py[i - 1], py[i], steps)))
    c = np.clip(np.concatenate(cols).astype(int), 0, size - 1)
    r = np.clip(np.concatenate(rows).astype(int), 0, size - 1)
    grid[r, c] = 1.0
    return grid


def validate_stroke_points(points: Sequence[Point], max_stroke_points: int) -> None:
    """Reject oversized strokes and non-finite samples."""
    if len(points) > max_stroke_points:
        raise InvalidStrokeError(f"Stroke has {len(points)} points; at most {max_stroke_points} are accepted.")
    bad = ~np.isfinite(points_to_array(points)).all(axis=1)
    if bad.any():
        raise InvalidStrokeError(f"Stroke has {int(bad.sum())} non-finite point(s), first at index {int(np.argmax(bad))}.")


def smooth_path(points: Sequence[Point], window: int = 3) -> Tuple[Point, ...]:
    """
    Centered moving average over x and y; endpoints and timestamps are kept.

    Near the ends the window shrinks symmetrically so every interior point
    averages the same number of neighbours on each side.
    """

    points = tuple(points)
    if window <= 1 or len(points) <= 2:
        return points
    xy = path_xy(points)
    half = window // 2
    last = len(points) - 1
    smoothed = [points[0]]
    for i in range(1, last):
        reach = min(half, i, last - i)
        x, y = xy[i - reach : i + reach + 1].mean(axis=0)
        smoothed.append(Point(float(x), float(y), points[i].timestamp))
    smoothed.append(points[-1])
    return tuple(smoothed)


def preprocess_stroke(
    stroke: Stroke,
    raster: RasterConfig = RasterConfig(),
    alignment: AlignmentConfig = AlignmentConfig(),
    preprocess: PreprocessConfig = PreprocessConfig(),
) -> PreprocessedStroke:
    if len(stroke.points) < 2:
        raise InsufficientDataError(len(stroke.points))
    validate_stroke_points(stroke.points, preprocess.max_stroke_points)

    bbox = bounding_box(stroke.points)
    resampled = smooth_path(resample_path(stroke.points, alignment.max_points), preprocess.smoothing_window)
    grid = rasterize(resampled, bbox, size=raster.size, margin=raster.margin)
    return PreprocessedStroke(bounding_box=bbox, raster_grid=grid, resampled_path=resampled)
