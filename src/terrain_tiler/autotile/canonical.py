"""
Rotation canonicalization of mask strings.

Masks that differ only by a quarter turn can share one sprite drawn in a
canonical orientation. The canonical form is the lexicographically
smallest of the four 90° rotations; the rotation that produced it is kept
so a renderer can turn the sprite back.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from .directions import ROTATION_SHIFTS
from .masks import normalize_mask_string, rotate_mask_string


@dataclass(frozen=True)
class CanonicalMask:
    """A mask string in canonical orientation plus the rotation applied."""
    mask: str
    rotation: int = 0
    shift: int = 0


def mask_rotations(value: Any) -> list[CanonicalMask]:
    """Return the distinct rotations of a mask string, 0° first.

    Duplicates (symmetric masks) keep only their first, smallest-angle
    occurrence.
    """
    return list(_mask_rotations(normalize_mask_string(value)))


@lru_cache(maxsize=4096)
def _mask_rotations(normalized: str) -> tuple[CanonicalMask, ...]:
    seen: set[str] = set()
    rotations: list[CanonicalMask] = []
    for rotation, shift in ROTATION_SHIFTS.items():
        rotated = rotate_mask_string(normalized, shift)
        if rotated in seen:
            continue
        seen.add(rotated)
        rotations.append(CanonicalMask(mask=rotated, rotation=rotation, shift=shift))
    return tuple(rotations)


def canonicalize(value: Any) -> CanonicalMask:
    """Return the lexicographically smallest rotation of ``value``.

    Ties cannot occur after deduplication; among equal strings the
    earliest rotation is the one kept, so an already-canonical input
    always reports rotation 0.
    """
    return _canonicalize(normalize_mask_string(value))


@lru_cache(maxsize=4096)
def _canonicalize(normalized: str) -> CanonicalMask:
    return min(_mask_rotations(normalized), key=lambda entry: entry.mask)


def is_canonical(value: Any) -> bool:
    normalized = normalize_mask_string(value)
    return canonicalize(normalized).mask == normalized
