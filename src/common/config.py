# ABOUTME: Loads engine tuning constants from YAML into frozen dataclasses.
# ABOUTME: Supplies defaults for rasterization, alignment, fusion, and scheduling.

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


@dataclass(frozen=True)
class RasterConfig:
    """Canonical classifier input grid."""

    size: int = 28
    margin: int = 2


@dataclass(frozen=True)
class PreprocessConfig:
    max_stroke_points: int = 1000
    smoothing_window: int = 1  # odd; 1 disables smoothing


@dataclass(frozen=True)
class AlignmentConfig:
    max_points: int = 100
    scale_fraction: float = 0.25  # reference scale = guide diagonal * fraction


@dataclass(frozen=True)
class FusionWeights:
    """Tunable weights for combining alignment with auxiliary signals."""

    classifier_bonus: float = 0.25
    classifier_penalty: float = 0.3
    temporal_weight: float = 0.1
    velocity_weight: float = 0.1


@dataclass(frozen=True)
class SchedulerConfig:
    min_interval_ms: float = 200.0
    critical_pressure_level: int = 2
    classifier_timeout_ms: float = 50.0


@dataclass(frozen=True)
class EngineConfig:
    preprocess: PreprocessConfig = field(default_factory=PreprocessConfig)
    raster: RasterConfig = field(default_factory=RasterConfig)
    alignment: AlignmentConfig = field(default_factory=AlignmentConfig)
    fusion: FusionWeights = field(default_factory=FusionWeights)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)


_SECTIONS = {
    "preprocess": PreprocessConfig,
    "raster": RasterConfig,
    "alignment": AlignmentConfig,
    "fusion": FusionWeights,
    "scheduler": SchedulerConfig,
}


def engine_config_from_dict(cfg: Optional[Dict[str, Any]]) -> EngineConfig:
    """Build an EngineConfig from a parsed mapping, rejecting unknown keys."""

    cfg = cfg or {}
    unknown = set(cfg) - set(_SECTIONS)
    if unknown:
        raise ValueError(f"Unknown engine config sections: {sorted(unknown)}")

    sections = {}
    for name, section_cls in _SECTIONS.items():
        values = cfg.get(name) or {}
        allowed = {f.name for f in fields(section_cls)}
        bad = set(values) - allowed
        if bad:
            raise ValueError(f"Unknown keys in '{name}' section: {sorted(bad)}")
        sections[name] = section_cls(**values)

    config = EngineConfig(**sections)
    _validate(config)
    return config


def load_engine_config(config_path: Optional[Path] = None) -> EngineConfig:
    """
    Load engine configuration from a YAML file.

    Returns the built-in defaults when no path is given.
    """

    if config_path is None:
        return EngineConfig()

    with open(config_path) as f:
        cfg = yaml.safe_load(f)
    return engine_config_from_dict(cfg)


def _validate(config: EngineConfig) -> None:
    if config.raster.size < 4 or config.raster.margin < 0 or 2 * config.raster.margin >= config.raster.size:
        raise ValueError("Raster size must be >= 4 and leave room for the margin.")
    if config.preprocess.max_stroke_points < 2:
        raise ValueError("preprocess.max_stroke_points must be at least 2.")
    if config.preprocess.smoothing_window < 1 or config.preprocess.smoothing_window % 2 == 0:
        raise ValueError("preprocess.smoothing_window must be a positive odd number.")
    if config.alignment.max_points < 2:
        raise ValueError("alignment.max_points must be at least 2.")
    if config.alignment.scale_fraction <= 0:
        raise ValueError("alignment.scale_fraction must be positive.")
    weights = config.fusion
    for name in ("classifier_bonus", "classifier_penalty", "temporal_weight", "velocity_weight"):
        value = getattr(weights, name)
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"fusion.{name} must be within [0, 1], got {value}.")
    if weights.temporal_weight + weights.velocity_weight >= 1.0:
        raise ValueError("Pacing weights must leave a positive share for the spatial score.")
    if config.scheduler.min_interval_ms < 0 or config.scheduler.classifier_timeout_ms <= 0:
        raise ValueError("Scheduler intervals must be non-negative and the classifier timeout positive.")
