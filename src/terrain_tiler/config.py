"""
Immutable engine configuration.

Kept free of Qt so the engine can be used without the settings store;
``settings.EngineSettings.to_config`` builds one from persisted values.
"""

from dataclasses import dataclass


class ConfigError(Exception):
    """Raised when configuration is invalid or cannot be accessed."""
    pass


DEFAULT_PLANE = "arcanus"


@dataclass(frozen=True)
class EngineConfig:
    """Engine options for one service instance.

    Never mutated while a render pass runs; a changed option means a new
    config and a new service.
    """
    plane: str = DEFAULT_PLANE
    coast_diagonal_reduction: bool = True
    coast_audit: bool = False
    use_phase: bool = False
    phase_index: int = 0
    missing_log_every: int = 50
    rotation_log_every: int = 100
    base_source_min_samples: int = 200
    base_source_max_samples: int = 800
    base_source_seed: int = 0
    max_workers: int = 4
    overlays: bool = True
    base_source: str | None = None

    def __post_init__(self) -> None:
        if self.base_source_min_samples < 1:
            raise ConfigError(f"base_source_min_samples must be positive: {self.base_source_min_samples}")
        if self.base_source_max_samples < 1:
            raise ConfigError(f"base_source_max_samples must be positive: {self.base_source_max_samples}")
        if self.max_workers < 1:
            raise ConfigError(f"max_workers must be positive: {self.max_workers}")
        if self.phase_index < 0:
            raise ConfigError(f"phase_index must not be negative: {self.phase_index}")
