# ABOUTME: Boundary adapters for the external shape classifier.
# ABOUTME: Wraps torch models or a geometric heuristic behind one classify() contract.

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from typing import Callable, Optional, Sequence, Union

import numpy as np
import torch
from torch import nn

from src.common.schemas import ClassifierResult, ShapeType

logger = logging.getLogger(__name__)


class ShapeClassifier(ABC):
    """Opaque inference function: raster grid in, predicted shape out."""

    @abstractmethod
    def classify(self, grid: np.ndarray) -> Optional[ClassifierResult]:
        raise NotImplementedError


ClassifierLike = Union[ShapeClassifier, Callable[[np.ndarray], Optional[ClassifierResult]]]


class TorchShapeClassifier(ShapeClassifier):
    """
    Runs a trained ``nn.Module`` that maps a 1x1xHxW tensor to per-label logits.

    Inference only; the module is put in eval mode and never updated.
    """

    def __init__(self, model: nn.Module, labels: Sequence[ShapeType], device: str = "cpu"):
        if not labels:
            raise ValueError("TorchShapeClassifier needs at least one label.")
        self.labels = [ShapeType(label) for label in labels]
        self.device = torch.device(device)
        self.model = model.to(self.device)
        self.model.eval()

    def classify(self, grid: np.ndarray) -> Optional[ClassifierResult]:
        tensor = torch.as_tensor(np.asarray(grid, dtype=np.float32), device=self.device)
        tensor = tensor.reshape(1, 1, *tensor.shape[-2:])
        with torch.no_grad():
            logits = self.model(tensor)
        probs = torch.softmax(logits.reshape(1, -1), dim=-1)[0]
        if probs.shape[0] != len(self.labels):
            raise ValueError(f"Model produced {probs.shape[0]} scores for {len(self.labels)} labels.")
        idx = int(torch.argmax(probs).item())
        return ClassifierResult(predicted_label=self.labels[idx], confidence=float(probs[idx].item()))


class GeometricShapeClassifier(ShapeClassifier):
    """
    Model-free fallback that inspects lit raster cells.

    Uses the principal-axis ratio for lines, angular coverage around the
    centroid for closed shapes, border occupancy for rectangles, and radial
    spread for circles versus ovals.
    """

    LINE_AXIS_RATIO = 0.12
    CLOSED_COVERAGE = 0.9
    RECTANGLE_BORDER_SHARE = 0.85
    CIRCLE_RADIAL_CV = 0.12
    OVAL_RADIAL_CV = 0.3

    def classify(self, grid: np.ndarray) -> Optional[ClassifierResult]:
        cells = np.argwhere(np.asarray(grid) > 0.5).astype(float)
        if len(cells) < 3:
            return None

        centered = cells - cells.mean(axis=0)
        eigvals = np.sort(np.linalg.eigvalsh(np.cov(centered.T)))
        if eigvals[1] <= 0:
            return None
        axis_ratio = math.sqrt(max(eigvals[0], 0.0) / eigvals[1])
        if axis_ratio < self.LINE_AXIS_RATIO:
            return self._result(ShapeType.LINE, 1.0 - axis_ratio / self.LINE_AXIS_RATIO)

        angles = np.arctan2(centered[:, 0], centered[:, 1])
        bins = np.histogram(angles, bins=16, range=(-math.pi, math.pi))[0]
        coverage = float(np.count_nonzero(bins)) / len(bins)
        if coverage < self.CLOSED_COVERAGE:
            return self._result(ShapeType.CURVE, 1.0 - coverage)

        mins, maxs = cells.min(axis=0), cells.max(axis=0)
        near_border = np.minimum(np.abs(cells - mins), np.abs(cells - maxs)).min(axis=1) <= 1.0
        border_share = float(near_border.mean())
        if border_share >= self.RECTANGLE_BORDER_SHARE:
            return self._result(ShapeType.RECTANGLE, border_share)

        radii = np.linalg.norm(centered, axis=1)
        radial_cv = float(radii.std() / radii.mean()) if radii.mean() > 0 else 1.0
        if radial_cv < self.CIRCLE_RADIAL_CV and axis_ratio > 0.85:
            return self._result(ShapeType.CIRCLE, 1.0 - radial_cv / self.CIRCLE_RADIAL_CV)
        if radial_cv < self.OVAL_RADIAL_CV:
            return self._result(ShapeType.OVAL, 1.0 - radial_cv / self.OVAL_RADIAL_CV)
        return self._result(ShapeType.POLYGON, min(radial_cv, 1.0))

    @staticmethod
    def _result(label: ShapeType, strength: float) -> ClassifierResult:
        return ClassifierResult(predicted_label=label, confidence=float(np.clip(0.5 + 0.5 * strength, 0.5, 1.0)))


def _call(classifier: ClassifierLike, grid: np.ndarray):
    if isinstance(classifier, ShapeClassifier):
        return classifier.classify(grid)
    return classifier(grid)


def invoke_classifier(classifier: Optional[ClassifierLike], grid: np.ndarray) -> Optional[ClassifierResult]:
    """
    Single boundary call into the classifier; no retries, no caching.

    Returns ``None`` whenever the classifier is missing, raises, or produces
    something that is not a usable ClassifierResult.
    """

    if classifier is None:
        return None
    try:
        result = _call(classifier, grid)
    except Exception as exc:
        logger.warning("Shape classifier failed: %s", exc)
        return None

    if result is None:
        return None
    if not isinstance(result, ClassifierResult):
        logger.warning("Shape classifier returned %r; treating as unavailable", type(result).__name__)
        return None
    try:
        label = ShapeType(result.predicted_label)
    except ValueError:
        logger.warning("Shape classifier returned unknown label %r", result.predicted_label)
        return None
    confidence = float(result.confidence)
    if not math.isfinite(confidence) or not 0.0 <= confidence <= 1.0:
        logger.warning("Shape classifier confidence %r outside [0, 1]", result.confidence)
        return None
    return ClassifierResult(predicted_label=label, confidence=confidence)
