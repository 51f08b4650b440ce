# ABOUTME: Aligns a user stroke to a guide path with dynamic time warping.
# ABOUTME: Converts length-normalized DTW cost into a scale-invariant accuracy.

from __future__ import annotations

import math
from typing import List, Sequence, Tuple

import numpy as np

from src.common.config import AlignmentConfig
from src.common.schemas import AlignmentResult, GuideReference, Point

from .outcomes import InvalidGuideError
from .preprocess import bounding_box, path_xy, resample_path


def cost_matrix(user_xy: np.ndarray, ref_xy: np.ndarray) -> np.ndarray:
    """Pairwise Euclidean distances, shape (len(user), len(ref))."""
    return np.linalg.norm(user_xy[:, None, :] - ref_xy[None, :, :], axis=2)


def cumulative_cost(costs: np.ndarray) -> np.ndarray:
    n, m = costs.shape
    acc = np.empty((n, m), dtype=float)
    acc[0, 0] = costs[0, 0]
    acc[1:, 0] = costs[0, 0] + np.cumsum(costs[1:, 0])
    acc[0, 1:] = costs[0, 0] + np.cumsum(costs[0, 1:])
    for i in range(1, n):
        for j in range(1, m):
            acc[i, j] = costs[i, j] + min(acc[i - 1, j - 1], acc[i - 1, j], acc[i, j - 1])
    return acc


def backtrack(acc: np.ndarray) -> List[Tuple[int, int]]:
    """Recover the minimal warping path from the last cell back to (0, 0)."""
    i, j = acc.shape[0] - 1, acc.shape[1] - 1
    path = [(i, j)]
    while i > 0 or j > 0:
        if i == 0:
            j -= 1
        elif j == 0:
            i -= 1
        else:
            # Ties prefer the diagonal step.
            diag, up, left = acc[i - 1, j - 1], acc[i - 1, j], acc[i, j - 1]
            if diag <= up and diag <= left:
                i, j = i - 1, j - 1
            elif up <= left:
                i -= 1
            else:
                j -= 1
        path.append((i, j))
    path.reverse()
    return path


def dtw_align(user_path: Sequence[Point], ref_path: Sequence[Point]) -> AlignmentResult:
    """
    Classic DTW between two 2D point sequences.

    ``normalized_cost`` divides the final cumulative cost by the combined
    length so that it does not grow with point count.
    """

    if not user_path or not ref_path:
        raise ValueError("DTW requires two non-empty paths.")

    costs = cost_matrix(path_xy(user_path), path_xy(ref_path))
    acc = cumulative_cost(costs)
    n, m = costs.shape
    return AlignmentResult(
        normalized_cost=float(acc[-1, -1] / (n + m)),
        matched_pairs=tuple(backtrack(acc)),
    )


def guide_diagonal(guide: GuideReference) -> float:
    min_x, min_y, max_x, max_y = bounding_box(guide.reference_path)
    return math.hypot(max_x - min_x, max_y - min_y)


def align_to_guide(
    user_path: Sequence[Point], guide: GuideReference, config: AlignmentConfig = AlignmentConfig()
) -> AlignmentResult:
    """Align against the guide with both sides capped at ``config.max_points``."""
    if len(user_path) > config.max_points:
        user_path = resample_path(user_path, config.max_points)
    ref_path = guide.reference_path
    if len(ref_path) > config.max_points:
        ref_path = resample_path(ref_path, config.max_points)
    return dtw_align(user_path, ref_path)


def alignment_accuracy(
    normalized_cost: float, guide: GuideReference, config: AlignmentConfig = AlignmentConfig()
) -> float:
    """Map DTW cost to [0, 1] relative to the guide's own size."""
    reference_scale = guide_diagonal(guide) * config.scale_fraction
    if reference_scale <= 0:
        raise InvalidGuideError(f"Guide '{guide.shape_id.value}' has no spatial extent.")
    if not math.isfinite(normalized_cost):
        return 0.0
    return float(np.clip(1.0 - normalized_cost / reference_scale, 0.0, 1.0))
