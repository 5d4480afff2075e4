"""
Settings validation system for terrain_tiler.
"""

import logging
from typing import List, TYPE_CHECKING

from .logging import VALID_LEVELS
from .types import ValidationResult

if TYPE_CHECKING:
    from .core import AppSettings

logger = logging.getLogger(__name__)


class SettingsValidator:
    """Validates configuration settings."""

    def __init__(self, settings: "AppSettings"):
        self.settings = settings

    def validate(self) -> ValidationResult:
        """Validate current configuration."""
        errors: List[str] = []
        warnings: List[str] = []

        engine = self.settings.engine
        if engine.min_samples > engine.max_samples:
            errors.append(
                f"Base source sample bounds are inverted: min={engine.min_samples} max={engine.max_samples}"
            )
        if engine.min_samples < 1:
            errors.append(f"Minimum sample count must be positive: {engine.min_samples}")
        if engine.max_workers < 1:
            errors.append(f"Worker count must be positive: {engine.max_workers}")

        if not engine.coast_diagonal_reduction:
            warnings.append("Coast diagonal reduction disabled; shore gaps fall straight to the zero mask")

        raw_source = str(self.settings.settings.value("engine/base_source", "") or "")
        if raw_source and not engine.base_source:
            warnings.append(f"Unknown base source ignored: {raw_source}")

        log = self.settings.logging
        for label, level in (("console", log.console_log_level), ("file", log.file_log_level)):
            if level.upper() not in VALID_LEVELS:
                errors.append(f"Invalid {label} log level: {level}")

        if log.file_logging and not log.log_file_path:
            errors.append("File logging enabled without a log file path")

        result = ValidationResult(is_valid=len(errors) == 0, errors=errors, warnings=warnings)
        if not result.is_valid:
            logger.warning(f"Settings validation failed: {'; '.join(errors)}")
        return result
