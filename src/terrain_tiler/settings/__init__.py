"""
Settings package for terrain_tiler.

This package provides a modular, type-safe configuration management system
using Qt's QSettings for cross-platform storage.

Usage:
    from terrain_tiler.settings import AppSettings, ValidationResult

    settings = AppSettings()
    result = settings.validate()
    config = settings.engine_config()
"""

from .core import AppSettings
from .types import ConfigVersion, ConfigError, EngineConfig, ValidationResult, DEFAULT_PLANE
from .engine import EngineSettings
from .logging import LoggingSettings

__all__ = [
    "AppSettings",
    "ConfigVersion",
    "ConfigError",
    "EngineConfig",
    "ValidationResult",
    "DEFAULT_PLANE",
    "EngineSettings",
    "LoggingSettings",
]
