"""
Shoreline semantics for coastline cells.

A shore cell is described by an 8-digit vector (see
``TerrainClassifier.shore_digits``): cardinal slots are ``1`` for land and
``0`` for water; diagonal slots are ``0`` for water, ``1`` for land backed
by both flanking cardinals and ``2`` for weak, unsupported land.

The semantic class only looks at which cardinals are water and, for a
two-water corner, at the diagonal between them. It never looks at absolute
directions, so classifying a rotated vector yields the same class.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Sequence

from .directions import CARDINALS, DIAGONAL_LABELS, DIAGONALS, MASK_SIZE
from .masks import normalize_mask_string, reduce_diagonal_mask_string


class ShoreSemanticClass(str, Enum):
    STRAIGHT_EDGE = "straight_edge"
    CONVEX_CORNER = "convex_corner"
    CONCAVE_INLET = "concave_inlet"
    PENINSULA = "peninsula"
    ISLAND_TIP = "island_tip"
    CHANNEL = "channel"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value

    @property
    def label(self) -> str:
        """Short label for debug overlays."""
        return SEMANTIC_LABELS[self]


SEMANTIC_LABELS: dict[ShoreSemanticClass, str] = {
    ShoreSemanticClass.STRAIGHT_EDGE: "edge",
    ShoreSemanticClass.CONVEX_CORNER: "convex",
    ShoreSemanticClass.CONCAVE_INLET: "inlet",
    ShoreSemanticClass.PENINSULA: "pen",
    ShoreSemanticClass.ISLAND_TIP: "tip",
    ShoreSemanticClass.CHANNEL: "chan",
    ShoreSemanticClass.UNKNOWN: "shore",
}


@dataclass(frozen=True)
class ShoreSemantics:
    """Classification result together with the facts it was derived from.

    ``water_indices`` are positions within the cardinal list (0=N, 1=E,
    2=S, 3=W); ``corner_diagonal`` is the ring slot inspected for a
    two-water corner.
    """
    cls: ShoreSemanticClass
    water_count: int
    water_indices: tuple[int, ...] = ()
    corner_diagonal: int | None = None
    digits: tuple[str, ...] = field(default=("0",) * MASK_SIZE)


@dataclass(frozen=True)
class MaskVariant:
    """A relaxed mask string and the ladder step that produced it."""
    mask: str
    step: str


def normalize_shore_digits(value: Any) -> list[str]:
    """Coerce a digit vector or mask string into 8 symbols from {0, 1, 2}."""
    if isinstance(value, (list, tuple)):
        items = ["0" if v is None else str(v) for v in list(value)[:MASK_SIZE]]
        items += ["0"] * (MASK_SIZE - len(items))
    else:
        items = list(normalize_mask_string(value))
    return [d if d in ("1", "2") else "0" for d in items]


def cardinals_adjacent(a: int, b: int) -> bool:
    """True when cardinal indices ``a`` and ``b`` are a quarter turn apart."""
    return (a + 1) % 4 == b or (b + 1) % 4 == a


def corner_diagonal_for(a: int, b: int) -> int | None:
    """Ring slot of the diagonal between two adjacent cardinal indices."""
    if not cardinals_adjacent(a, b):
        return None
    low, high = min(a, b), max(a, b)
    if low == 0 and high == 3:
        return 7
    return low * 2 + 1


def classify_shore_semantics(value: Any) -> ShoreSemantics:
    digits = normalize_shore_digits(value)
    water_indices = tuple(
        index for index, direction in enumerate(CARDINALS) if digits[direction] == "0"
    )
    water_count = len(water_indices)
    corner = None

    if water_count == 0:
        diagonal_water = any(digits[d] == "0" for d in DIAGONALS)
        cls = ShoreSemanticClass.CONVEX_CORNER if diagonal_water else ShoreSemanticClass.STRAIGHT_EDGE
    elif water_count == 1:
        cls = ShoreSemanticClass.STRAIGHT_EDGE
    elif water_count == 2:
        a, b = water_indices
        if not cardinals_adjacent(a, b):
            cls = ShoreSemanticClass.CHANNEL
        else:
            corner = corner_diagonal_for(a, b)
            corner_digit = digits[corner] if corner is not None else "0"
            if corner_digit != "0":
                cls = ShoreSemanticClass.CONCAVE_INLET
            else:
                cls = ShoreSemanticClass.CONVEX_CORNER
    elif water_count == 3:
        cls = ShoreSemanticClass.PENINSULA
    else:
        cls = ShoreSemanticClass.ISLAND_TIP

    return ShoreSemantics(
        cls=cls,
        water_count=water_count,
        water_indices=water_indices,
        corner_diagonal=corner,
        digits=tuple(digits),
    )


def semantic_relaxations(
    mask: Any, semantic_class: ShoreSemanticClass
) -> list[MaskVariant]:
    """Diagonal relaxations of ``mask`` that keep its semantic class.

    Order: single diagonals 2→1, single 2→0, single 1→0 (each NE, SE, SW,
    NW), then all diagonals 2→1, 2→0, 1→0. The original mask and repeats
    are skipped.
    """
    normalized = normalize_mask_string(mask)
    base = list(normalized)
    seen = {normalized}
    variants: list[MaskVariant] = []

    def push(candidate: str, step: str) -> None:
        if candidate in seen:
            return
        if classify_shore_semantics(candidate).cls is not semantic_class:
            return
        seen.add(candidate)
        variants.append(MaskVariant(mask=candidate, step=step))

    for from_digit, to_digit in (("2", "1"), ("2", "0"), ("1", "0")):
        for diagonal in DIAGONALS:
            if base[diagonal] != from_digit:
                continue
            chars = list(base)
            chars[diagonal] = to_digit
            label = DIAGONAL_LABELS[diagonal]
            push("".join(chars), f"relax_diag_{from_digit}_to_{to_digit}_{label}")

    for from_digit, to_digit in (("2", "1"), ("2", "0"), ("1", "0")):
        reduced = reduce_diagonal_mask_string(normalized, from_digit, to_digit)
        if reduced != normalized:
            push(reduced, f"relax_diagonals_{from_digit}_to_{to_digit}")

    return variants
