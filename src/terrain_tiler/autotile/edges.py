"""
Edge/corner classification of adjacency masks.

Only the four cardinal bits matter here. In ``same`` mode the mask holds
same-kind neighbors, so the bits are inverted to mean "boundary toward a
different kind"; in ``presence`` mode (shore masks) a set bit already marks
the boundary.
"""

from enum import Enum
from typing import Any

from .masks import coerce_mask

# Cardinal reduction bits
CARD_N = 0b0001
CARD_E = 0b0010
CARD_S = 0b0100
CARD_W = 0b1000
CARD_ALL = 0b1111


class EdgeClass(str, Enum):
    """Symbolic boundary shape of a cell."""
    INTERIOR = "interior"
    EDGE_N = "edge_n"
    EDGE_E = "edge_e"
    EDGE_S = "edge_s"
    EDGE_W = "edge_w"
    CORNER_NE = "corner_ne"
    CORNER_NW = "corner_nw"
    CORNER_SE = "corner_se"
    CORNER_SW = "corner_sw"
    EDGE_NS = "edge_ns"
    EDGE_EW = "edge_ew"
    PENINSULA_N = "peninsula_n"
    PENINSULA_E = "peninsula_e"
    PENINSULA_S = "peninsula_s"
    PENINSULA_W = "peninsula_w"
    FALLBACK = "fallback"

    def __str__(self) -> str:
        return self.value

    @property
    def alias(self) -> str | None:
        """Compass alias used by sprite tags and group names."""
        return EDGE_ALIASES.get(self)


class EdgeMode(str, Enum):
    SAME = "same"
    PRESENCE = "presence"


EDGE_ALIASES: dict[EdgeClass, str] = {
    EdgeClass.EDGE_N: "N",
    EdgeClass.EDGE_E: "E",
    EdgeClass.EDGE_S: "S",
    EdgeClass.EDGE_W: "W",
    EdgeClass.CORNER_NE: "NE",
    EdgeClass.CORNER_NW: "NW",
    EdgeClass.CORNER_SE: "SE",
    EdgeClass.CORNER_SW: "SW",
    EdgeClass.EDGE_NS: "NS",
    EdgeClass.EDGE_EW: "EW",
    EdgeClass.PENINSULA_N: "PEN_N",
    EdgeClass.PENINSULA_E: "PEN_E",
    EdgeClass.PENINSULA_S: "PEN_S",
    EdgeClass.PENINSULA_W: "PEN_W",
}

_SINGLE_EDGE = {
    CARD_N: EdgeClass.EDGE_N,
    CARD_E: EdgeClass.EDGE_E,
    CARD_S: EdgeClass.EDGE_S,
    CARD_W: EdgeClass.EDGE_W,
}

_PAIRS = {
    CARD_N | CARD_E: EdgeClass.CORNER_NE,
    CARD_N | CARD_W: EdgeClass.CORNER_NW,
    CARD_S | CARD_E: EdgeClass.CORNER_SE,
    CARD_S | CARD_W: EdgeClass.CORNER_SW,
    CARD_N | CARD_S: EdgeClass.EDGE_NS,
    CARD_E | CARD_W: EdgeClass.EDGE_EW,
}

# Keyed by the single missing direction
_PENINSULAS = {
    CARD_N: EdgeClass.PENINSULA_N,
    CARD_E: EdgeClass.PENINSULA_E,
    CARD_S: EdgeClass.PENINSULA_S,
    CARD_W: EdgeClass.PENINSULA_W,
}


def cardinal_mask(mask: Any) -> int:
    """Reduce an 8-bit ring mask to its N/E/S/W bits (N=1, E=2, S=4, W=8)."""
    value = coerce_mask(mask)
    card = 0
    if value & (1 << 0):
        card |= CARD_N
    if value & (1 << 2):
        card |= CARD_E
    if value & (1 << 4):
        card |= CARD_S
    if value & (1 << 6):
        card |= CARD_W
    return card


def edge_class(mask: Any, mode: EdgeMode | str = EdgeMode.SAME) -> EdgeClass:
    """Classify a mask into an :class:`EdgeClass`.

    Zero and four boundary bits both yield ``interior``; fully enclosed and
    fully open cells need no boundary art.
    """
    card = cardinal_mask(mask)
    bits = card if _coerce_mode(mode) is EdgeMode.PRESENCE else card ^ CARD_ALL
    count = bin(bits).count("1")

    if count in (0, 4):
        return EdgeClass.INTERIOR
    if count == 1:
        return _SINGLE_EDGE[bits]
    if count == 2:
        return _PAIRS[bits]
    if count == 3:
        return _PENINSULAS[bits ^ CARD_ALL]
    return EdgeClass.FALLBACK


def _coerce_mode(mode: EdgeMode | str) -> EdgeMode:
    try:
        return EdgeMode(mode)
    except ValueError:
        return EdgeMode.SAME


def edge_mode_for_kind(kind: str) -> EdgeMode:
    return EdgeMode.PRESENCE if str(kind) == "shore" else EdgeMode.SAME


def edge_class_for_kind(kind: str, mask: Any) -> EdgeClass:
    """Classify ``mask`` in the mode appropriate for ``kind``."""
    return edge_class(mask, edge_mode_for_kind(kind))
