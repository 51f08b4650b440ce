# ABOUTME: Makes the shared common package importable across engines.
# ABOUTME: Re-exports schema types, engine config, and the guide library.

from .schemas import Feedback, FusedScore, GuideReference, Point, ShapeType, Stroke, UserLevel
from .config import EngineConfig, load_engine_config
from .guides import GuideLibrary, build_guide

__all__ = [
    "Feedback",
    "FusedScore",
    "GuideReference",
    "Point",
    "ShapeType",
    "Stroke",
    "UserLevel",
    "EngineConfig",
    "load_engine_config",
    "GuideLibrary",
    "build_guide",
]
