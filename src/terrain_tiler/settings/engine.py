"""
Engine-related settings for terrain_tiler.

These are the persisted knobs of the tiling engine. The engine itself never
reads QSettings; it receives an immutable :class:`EngineConfig` built by
:meth:`EngineSettings.to_config`.
"""

import logging
from typing import TYPE_CHECKING

from .types import DEFAULT_PLANE, EngineConfig

if TYPE_CHECKING:
    from PySide6.QtCore import QSettings

logger = logging.getLogger(__name__)

BASE_SOURCES = ("lo", "hi", "lo_nibble", "hi_nibble")


class EngineSettings:
    """Manages engine settings (plane, coast handling, audit cadence, sampling)."""

    def __init__(self, settings: "QSettings"):
        self.settings = settings

    def _get_str(self, key: str, default: str = "") -> str:
        value = self.settings.value(key, default)
        return str(value) if value is not None else default

    def _get_bool(self, key: str, default: bool = False) -> bool:
        value = self.settings.value(key, default)
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.lower() in ("true", "1", "yes")
        return bool(value) if value is not None else default

    def _get_int(self, key: str, default: int = 0) -> int:
        value = self.settings.value(key, default)
        try:
            return int(str(value)) if value is not None else default
        except (ValueError, TypeError):
            return default

    def _set_positive_int(self, key: str, value: int, label: str) -> None:
        if value > 0:
            self.settings.setValue(key, value)
            self.settings.sync()
        else:
            logger.warning(f"Invalid {label}: {value}, keeping current value")

    # === WORLD ===

    @property
    def plane(self) -> str:
        """World plane used in image keys."""
        return self._get_str("engine/plane", DEFAULT_PLANE) or DEFAULT_PLANE

    @plane.setter
    def plane(self, value: str) -> None:
        self.settings.setValue("engine/plane", value.strip() or DEFAULT_PLANE)
        self.settings.sync()

    @property
    def base_source(self) -> str:
        """Forced base source, or empty for auto-detection."""
        value = self._get_str("engine/base_source", "")
        return value if value in BASE_SOURCES else ""

    @base_source.setter
    def base_source(self, value: str) -> None:
        if value and value not in BASE_SOURCES:
            logger.warning(f"Invalid base source: {value}, keeping current: {self.base_source}")
            return
        self.settings.setValue("engine/base_source", value)
        self.settings.sync()

    # === COAST ===

    @property
    def coast_diagonal_reduction(self) -> bool:
        """Whether shore resolution tries diagonal relaxations."""
        return self._get_bool("engine/coast_diagonal_reduction", True)

    @coast_diagonal_reduction.setter
    def coast_diagonal_reduction(self, value: bool) -> None:
        self.settings.setValue("engine/coast_diagonal_reduction", value)
        self.settings.sync()

    @property
    def coast_audit(self) -> bool:
        """Whether coverage gaps are summarized in the log."""
        return self._get_bool("engine/coast_audit", False)

    @coast_audit.setter
    def coast_audit(self, value: bool) -> None:
        self.settings.setValue("engine/coast_audit", value)
        self.settings.sync()

    @property
    def missing_log_every(self) -> int:
        return self._get_int("engine/missing_log_every", 50)

    @missing_log_every.setter
    def missing_log_every(self, value: int) -> None:
        self._set_positive_int("engine/missing_log_every", value, "missing log cadence")

    @property
    def rotation_log_every(self) -> int:
        return self._get_int("engine/rotation_log_every", 100)

    @rotation_log_every.setter
    def rotation_log_every(self, value: int) -> None:
        self._set_positive_int("engine/rotation_log_every", value, "rotation log cadence")

    # === ANIMATION ===

    @property
    def use_phase(self) -> bool:
        """Whether variant selection follows the animation phase by default."""
        return self._get_bool("engine/use_phase", False)

    @use_phase.setter
    def use_phase(self, value: bool) -> None:
        self.settings.setValue("engine/use_phase", value)
        self.settings.sync()

    # === BASE SOURCE SAMPLING ===

    @property
    def min_samples(self) -> int:
        return self._get_int("engine/base_source_min_samples", 200)

    @min_samples.setter
    def min_samples(self, value: int) -> None:
        self._set_positive_int("engine/base_source_min_samples", value, "minimum sample count")

    @property
    def max_samples(self) -> int:
        return self._get_int("engine/base_source_max_samples", 800)

    @max_samples.setter
    def max_samples(self, value: int) -> None:
        self._set_positive_int("engine/base_source_max_samples", value, "maximum sample count")

    @property
    def seed(self) -> int:
        """Seed for base-source sampling."""
        return self._get_int("engine/base_source_seed", 0)

    @seed.setter
    def seed(self, value: int) -> None:
        self.settings.setValue("engine/base_source_seed", value)
        self.settings.sync()

    @property
    def max_workers(self) -> int:
        return self._get_int("engine/max_workers", 4)

    @max_workers.setter
    def max_workers(self, value: int) -> None:
        self._set_positive_int("engine/max_workers", value, "worker count")

    def to_config(self) -> EngineConfig:
        """Snapshot the current values into an immutable EngineConfig."""
        return EngineConfig(
            plane=self.plane,
            coast_diagonal_reduction=self.coast_diagonal_reduction,
            coast_audit=self.coast_audit,
            use_phase=self.use_phase,
            missing_log_every=max(1, self.missing_log_every),
            rotation_log_every=max(1, self.rotation_log_every),
            base_source_min_samples=max(1, self.min_samples),
            base_source_max_samples=max(1, self.max_samples),
            base_source_seed=self.seed,
            max_workers=max(1, self.max_workers),
            base_source=self.base_source or None,
        )
