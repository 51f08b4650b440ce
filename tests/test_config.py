# ABOUTME: Tests YAML engine configuration loading and validation.
# ABOUTME: Ensures defaults, overrides, and unknown keys behave predictably.

from pathlib import Path

import pytest

from src.common.config import EngineConfig, engine_config_from_dict, load_engine_config

REPO_CONFIG = Path(__file__).resolve().parents[1] / "configs" / "engine.yaml"


def test_default_config_without_path():
    assert load_engine_config() == EngineConfig()


def test_repo_config_matches_defaults():
    assert load_engine_config(REPO_CONFIG) == EngineConfig()


def test_yaml_overrides_single_section(tmp_path):
    path = tmp_path / "engine.yaml"
    path.write_text("scheduler:\n  min_interval_ms: 120\n  critical_pressure_level: 3\n")

    config = load_engine_config(path)

    assert config.scheduler.min_interval_ms == 120
    assert config.scheduler.critical_pressure_level == 3
    assert config.fusion == EngineConfig().fusion
    assert config.preprocess.max_stroke_points == 1000


def test_empty_yaml_gives_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_engine_config(path) == EngineConfig()


@pytest.mark.parametrize(
    "cfg",
    [
        {"logging": {"level": "debug"}},
        {"fusion": {"classifier_boost": 0.2}},
    ],
)
def test_unknown_sections_and_keys_rejected(cfg):
    with pytest.raises(ValueError):
        engine_config_from_dict(cfg)


@pytest.mark.parametrize(
    "cfg",
    [
        {"preprocess": {"max_stroke_points": 1}},
        {"preprocess": {"smoothing_window": 4}},
        {"preprocess": {"smoothing_window": 0}},
        {"raster": {"size": 2}},
        {"raster": {"size": 8, "margin": 4}},
        {"alignment": {"max_points": 1}},
        {"alignment": {"scale_fraction": 0}},
        {"fusion": {"classifier_penalty": 1.5}},
        {"fusion": {"temporal_weight": 0.6, "velocity_weight": 0.4}},
        {"scheduler": {"classifier_timeout_ms": 0}},
        {"scheduler": {"min_interval_ms": -1}},
    ],
)
def test_invalid_values_rejected(cfg):
    with pytest.raises(ValueError):
        engine_config_from_dict(cfg)
