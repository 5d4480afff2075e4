"""
Bit and digit-string helpers for 8-neighbor adjacency masks.

Two encodings are used side by side:

* integer masks, bit ``i`` set when neighbor ``i`` matches;
* mask strings / digit lists, one character per ring slot in direction
  order. Binary masks use ``0``/``1``; shore digit vectors additionally use
  ``2`` for weak (ungated) diagonals.

All helpers are total: malformed input is coerced to an empty mask rather
than raising.
"""

from typing import Any, Sequence

from .directions import DIAGONALS, MASK_SIZE, Direction

EMPTY_MASK_STRING = "0" * MASK_SIZE


def coerce_mask(mask: Any) -> int:
    """Return ``mask`` as an 8-bit int, or 0 for anything non-integral."""
    if isinstance(mask, bool) or not isinstance(mask, int):
        return 0
    return mask & 0xFF


def mask_string(mask: Any) -> str:
    """Render an integer mask as a direction-ordered string (bit 0 first)."""
    value = coerce_mask(mask)
    return "".join("1" if value & (1 << i) else "0" for i in range(MASK_SIZE))


def mask_string_from_digits(digits: Sequence[str] | None) -> str:
    """Join a digit vector; anything that is not exactly 8 long is empty."""
    if not digits or len(digits) != MASK_SIZE:
        return EMPTY_MASK_STRING
    return "".join(str(d) for d in digits)


def normalize_mask_string(value: Any) -> str:
    """Left-pad with zeros and truncate to 8 characters."""
    text = str(value) if value else ""
    return text.rjust(MASK_SIZE, "0")[:MASK_SIZE]


def rotate_mask(mask: Any, shift: int) -> int:
    """Rotate an integer mask clockwise by ``shift`` ring positions."""
    value = coerce_mask(mask)
    offset = shift % MASK_SIZE
    if offset == 0:
        return value
    result = 0
    for i in range(MASK_SIZE):
        if value & (1 << i):
            result |= 1 << ((i + offset) % MASK_SIZE)
    return result


def rotate_mask_digits(digits: Sequence[str], shift: int) -> list[str]:
    """Rotate a digit vector: the digit at ``i`` moves to ``i + shift``."""
    items = list(digits)[:MASK_SIZE]
    items += ["0"] * (MASK_SIZE - len(items))
    offset = shift % MASK_SIZE
    if offset == 0:
        return items
    rotated = ["0"] * MASK_SIZE
    for i, digit in enumerate(items):
        rotated[(i + offset) % MASK_SIZE] = digit
    return rotated


def rotate_mask_string(value: Any, shift: int) -> str:
    return "".join(rotate_mask_digits(normalize_mask_string(value), shift))


def gate_diagonal_mask(mask: Any) -> int:
    """Clear every diagonal bit whose two flanking cardinal bits are not both set."""
    value = coerce_mask(mask)
    gated = value
    for diagonal in DIAGONALS:
        left, right = diagonal.flanks
        if value & (1 << diagonal) and not (value & (1 << left) and value & (1 << right)):
            gated &= ~(1 << diagonal)
    return gated


def gate_diagonal_digits(digits: Sequence[str] | None) -> list[str]:
    """Mark present diagonals as weak (``2``) unless both flanks are present.

    A present diagonal with both flanks present becomes ``1`` unless it is
    already ``2``.
    """
    gated = list(digits or [])[:MASK_SIZE]
    gated += ["0"] * (MASK_SIZE - len(gated))

    def present(index: int) -> bool:
        return gated[index] != "0"

    for diagonal in DIAGONALS:
        if not present(diagonal):
            continue
        left, right = diagonal.flanks
        if not (present(left) and present(right)):
            gated[diagonal] = "2"
        elif gated[diagonal] != "2":
            gated[diagonal] = "1"
    return gated


def reduce_diagonal_mask_string(value: Any, from_digit: str, to_digit: str) -> str:
    """Replace ``from_digit`` with ``to_digit`` in every diagonal slot."""
    chars = list(normalize_mask_string(value))
    for diagonal in DIAGONALS:
        if chars[diagonal] == from_digit:
            chars[diagonal] = to_digit
    return "".join(chars)


def clear_diagonal_mask_string(value: Any) -> str:
    chars = list(normalize_mask_string(value))
    for diagonal in DIAGONALS:
        chars[diagonal] = "0"
    return "".join(chars)


def direction_bits(mask: Any) -> list[Direction]:
    """Directions whose bit is set, in ring order."""
    value = coerce_mask(mask)
    return [d for d in Direction if value & (1 << d)]
