"""
Data models for sprite selection.

Contains the dataclasses shared by the asset index, the resolver and the
coverage audit. Models carry no lookup logic of their own.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Sequence, cast


# =============================================================================
# Sprite Pool Models
# =============================================================================

@dataclass(frozen=True)
class SpriteVariant:
    """One entry of a sprite group.

    ``key`` is opaque to the engine; ``variant`` is a free-text tag matched
    against edge classes and ``phase:N`` animation markers.
    """
    key: str
    variant: str | None = None

    @classmethod
    def from_value(cls, value: Any) -> "SpriteVariant | None":
        """Create a SpriteVariant from a dict or a bare key string.

        Args:
            value: ``{"key": ..., "variant": ...}`` dict or key string

        Returns:
            SpriteVariant, or None when no key is present
        """
        if isinstance(value, str):
            return cls(key=value) if value else None
        if not isinstance(value, dict):
            return None
        data = cast(dict[str, Any], value)
        key = data.get("key")
        if key is None or key == "":
            return None
        variant = data.get("variant")
        return cls(key=str(key), variant=None if variant is None else str(variant))


@dataclass(frozen=True)
class SpriteGroup:
    """Named, ordered collection of variants."""
    name: str
    variants: tuple[SpriteVariant, ...] = field(default_factory=tuple)

    @classmethod
    def from_list(cls, name: str, entries: Sequence[Any] | None) -> "SpriteGroup":
        variants = [SpriteVariant.from_value(entry) for entry in (entries or [])]
        return cls(name=name, variants=tuple(v for v in variants if v is not None))

    def __len__(self) -> int:
        return len(self.variants)


# =============================================================================
# Resolution Models
# =============================================================================

class FallbackStep(str, Enum):
    """Fixed ladder steps. Relaxation steps are dynamic strings, see ``relax_*``."""
    EXACT = "exact"
    CANONICAL = "canonical"
    CLEAR_DIAGONALS = "clear_diagonals"
    FALLBACK_ZERO = "fallback_zero"
    MISSING = "missing"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ResolvedSprite:
    """Sprite choice for one cell, as handed to the renderer.

    ``mask_used`` is the mask string whose asset was found (None for group
    pool picks); ``rotation_applied`` is the rotation the renderer must
    undo to draw a canonical asset in the cell's orientation.
    """
    key: str
    frame: str | None = None
    mask_used: str | None = None
    rotation_applied: int = 0
    fallback_step: str = FallbackStep.EXACT.value
    fallback_applied: bool = False
    variant: str | None = None


@dataclass(frozen=True)
class AuditRecord:
    """Coverage facts for one shore resolution."""
    raw_mask: str
    canonical_mask: str
    canonical_rotation: int
    used_mask: str | None
    fallback_step: str
    fallback_applied: bool
    semantic_class: str
    key: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "raw_mask": self.raw_mask,
            "canonical_mask": self.canonical_mask,
            "canonical_rotation": self.canonical_rotation,
            "used_mask": self.used_mask,
            "fallback_step": self.fallback_step,
            "fallback_applied": self.fallback_applied,
            "semantic_class": self.semantic_class,
            "key": self.key,
        }


@dataclass(frozen=True)
class ShoreResolution:
    """Result of the shore ladder: the sprite (if any) plus its audit record."""
    sprite: ResolvedSprite | None
    audit: AuditRecord
