"""
Settings migration system for terrain_tiler.
"""

import logging
from typing import TYPE_CHECKING

from .types import ConfigVersion

if TYPE_CHECKING:
    from PySide6.QtCore import QSettings

logger = logging.getLogger(__name__)

# Keys renamed between 1.0 and 1.1
RENAMED_KEYS_1_1 = {
    "engine/debug_coast_audit": "engine/coast_audit",
    "engine/terrain_base_source": "engine/base_source",
}


class SettingsMigrator:
    """Handles configuration migration between versions."""

    def __init__(self, settings: "QSettings"):
        self.settings = settings

    def ensure_version(self) -> None:
        """Ensure configuration version is set and handle migrations."""
        current_version = str(self.settings.value("app/version", ""))

        if not current_version:
            self.settings.setValue("app/version", ConfigVersion.CURRENT.value)
            self.settings.setValue("app/first_run", True)
            self.settings.sync()
            logger.info("First run detected, initializing configuration")
        elif current_version != ConfigVersion.CURRENT.value:
            self._migrate_config(current_version, ConfigVersion.CURRENT.value)

    def _migrate_config(self, from_version: str, to_version: str) -> None:
        """Migrate configuration from old version to new version."""
        logger.info(f"Migrating configuration from {from_version} to {to_version}")

        if from_version == "1.0" and to_version == "1.1":
            self._migrate_1_0_to_1_1()

        self.settings.setValue("app/version", to_version)
        self.settings.setValue("app/migrated_from", from_version)
        self.settings.sync()
        logger.info(f"Migration from {from_version} to {to_version} completed")

    def _migrate_1_0_to_1_1(self) -> None:
        """Migrate from version 1.0 to 1.1 - rename engine keys."""
        logger.debug("Performing migration from 1.0 to 1.1")
        for old_key, new_key in RENAMED_KEYS_1_1.items():
            if not self.settings.contains(old_key):
                continue
            value = self.settings.value(old_key)
            if not self.settings.contains(new_key):
                self.settings.setValue(new_key, value)
                logger.info(f"Migrated setting {old_key} -> {new_key}")
            self.settings.remove(old_key)
        self.settings.sync()
