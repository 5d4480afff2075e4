"""
Core settings management for terrain_tiler.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from PySide6.QtCore import QSettings

from .types import ConfigVersion, EngineConfig, ValidationResult
from .migration import SettingsMigrator
from .validation import SettingsValidator
from .engine import EngineSettings
from .logging import LoggingSettings

logger = logging.getLogger(__name__)

ORGANIZATION = "terrain_tiler"
APPLICATION = "terrain_tiler"


class AppSettings:
    """
    Configuration management using QSettings.

    Provides type-safe access to application settings with automatic
    cross-platform storage and validation. When ``settings_path`` is given
    the settings live in that INI file instead of the platform store.
    """

    def __init__(
        self,
        profile: str = "default",
        settings_path: Optional[Union[str, Path]] = None,
    ):
        """Initialize settings with organization, application name, and profile.

        Args:
            profile: Settings profile name (default: "default")
            settings_path: Optional INI file to use instead of the platform store
        """
        if settings_path is not None:
            self.settings = QSettings(str(settings_path), QSettings.Format.IniFormat)
        else:
            self.settings = QSettings(ORGANIZATION, APPLICATION)
        self.profile = profile

        # Profile group: terrain_tiler/terrain_tiler/default/...
        self.settings.beginGroup(profile)

        self._migrator = SettingsMigrator(self.settings)
        self._validator = SettingsValidator(self)
        self._engine = EngineSettings(self.settings)
        self._logging = LoggingSettings(self.settings)

        self._migrator.ensure_version()

        logger.debug(
            f"Settings initialized for profile '{profile}', stored at: {self.settings.fileName()}"
        )

    # === SUBSYSTEM ACCESS ===

    @property
    def engine(self) -> EngineSettings:
        """Access engine settings subsystem."""
        return self._engine

    @property
    def logging(self) -> LoggingSettings:
        """Access logging settings subsystem."""
        return self._logging

    # === VERSION AND FIRST RUN ===

    @property
    def is_first_run(self) -> bool:
        """Check if this is the first run of the application."""
        return self._get_bool("app/first_run", True)

    def set_first_run_complete(self) -> None:
        """Mark first run as complete."""
        self.settings.setValue("app/first_run", False)
        self.settings.sync()

    @property
    def version(self) -> str:
        """Get configuration version."""
        return self._get_str("app/version", ConfigVersion.CURRENT.value)

    # === HELPER METHODS ===

    def _get_str(self, key: str, default: str = "") -> str:
        """Type-safe string retrieval from settings."""
        value = self.settings.value(key, default)
        return str(value) if value is not None else default

    def _get_bool(self, key: str, default: bool = False) -> bool:
        """Type-safe boolean retrieval from settings."""
        value = self.settings.value(key, default)
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.lower() in ("true", "1", "yes")
        return bool(value) if value is not None else default

    # === ENGINE SETTINGS (DELEGATED) ===

    @property
    def plane(self) -> str:
        return self._engine.plane

    @plane.setter
    def plane(self, value: str) -> None:
        self._engine.plane = value

    @property
    def coast_audit(self) -> bool:
        return self._engine.coast_audit

    @coast_audit.setter
    def coast_audit(self, value: bool) -> None:
        self._engine.coast_audit = value

    def engine_config(self) -> EngineConfig:
        """Immutable engine configuration built from current settings."""
        return self._engine.to_config()

    # === LOGGING SETTINGS (DELEGATED) ===

    @property
    def console_logging(self) -> bool:
        """Check if console logging is enabled."""
        return self._logging.console_logging

    @console_logging.setter
    def console_logging(self, value: bool) -> None:
        self._logging.console_logging = value

    @property
    def console_log_level(self) -> str:
        """Get console logging level."""
        return self._logging.console_log_level

    @console_log_level.setter
    def console_log_level(self, value: str) -> None:
        self._logging.console_log_level = value

    @property
    def console_use_colors(self) -> bool:
        return self._logging.console_use_colors

    @console_use_colors.setter
    def console_use_colors(self, value: bool) -> None:
        self._logging.console_use_colors = value

    @property
    def file_logging(self) -> bool:
        """Check if file logging is enabled."""
        return self._logging.file_logging

    @file_logging.setter
    def file_logging(self, value: bool) -> None:
        self._logging.file_logging = value

    @property
    def file_log_level(self) -> str:
        return self._logging.file_log_level

    @property
    def log_file_path(self) -> str:
        return self._logging.log_file_path

    @property
    def log_file_absolute_path(self) -> Path:
        """Get absolute path to log file."""
        return self._logging.log_file_absolute_path

    # === VALIDATION ===

    def validate(self) -> ValidationResult:
        """Validate current configuration."""
        return self._validator.validate()

    # === UTILITY METHODS ===

    def get_settings_file_path(self) -> str:
        """Get the file path where settings are stored."""
        return self.settings.fileName()

    def sync(self) -> None:
        """Force synchronization of settings to storage."""
        self.settings.sync()
