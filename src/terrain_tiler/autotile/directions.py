"""
Compass directions used by adjacency masks.

Bit ``i`` of every 8-bit mask (and character ``i`` of every mask string)
refers to direction ``i`` of the fixed ring order below. Rotating a mask
by two positions is a 90° clockwise turn.
"""

from enum import IntEnum


class Direction(IntEnum):
    """Ring position of a neighbor, clockwise from north."""
    N = 0
    NE = 1
    E = 2
    SE = 3
    S = 4
    SW = 5
    W = 6
    NW = 7

    @property
    def offset(self) -> tuple[int, int]:
        """(dx, dy) offset in grid coordinates (y grows southwards)."""
        return DIRECTION_OFFSETS[self]

    @property
    def is_cardinal(self) -> bool:
        return self.value % 2 == 0

    @property
    def flanks(self) -> tuple["Direction", "Direction"]:
        """Cardinal neighbors on both sides of a diagonal direction."""
        return Direction((self.value + 7) % 8), Direction((self.value + 1) % 8)


DIRECTION_OFFSETS: dict[Direction, tuple[int, int]] = {
    Direction.N: (0, -1),
    Direction.NE: (1, -1),
    Direction.E: (1, 0),
    Direction.SE: (1, 1),
    Direction.S: (0, 1),
    Direction.SW: (-1, 1),
    Direction.W: (-1, 0),
    Direction.NW: (-1, -1),
}

ALL_DIRECTIONS = tuple(Direction)
CARDINALS = (Direction.N, Direction.E, Direction.S, Direction.W)
DIAGONALS = (Direction.NE, Direction.SE, Direction.SW, Direction.NW)

# Short labels for diagonal slots, used in relaxation step names
DIAGONAL_LABELS: dict[int, str] = {
    Direction.NE: "ne",
    Direction.SE: "se",
    Direction.SW: "sw",
    Direction.NW: "nw",
}

MASK_SIZE = 8
ROTATION_SHIFTS: dict[int, int] = {0: 0, 90: 2, 180: 4, 270: 6}
