"""Tests for adjacency mask helpers and rotation canonicalization."""

import itertools

import pytest

from terrain_tiler.autotile.canonical import canonicalize, is_canonical, mask_rotations
from terrain_tiler.autotile.directions import DIAGONALS, Direction
from terrain_tiler.autotile.masks import (
    EMPTY_MASK_STRING, clear_diagonal_mask_string, coerce_mask, direction_bits,
    gate_diagonal_digits, gate_diagonal_mask, mask_string, mask_string_from_digits,
    normalize_mask_string, reduce_diagonal_mask_string, rotate_mask, rotate_mask_string,
)


class TestMaskEncoding:
    """Test conversion between integer masks and mask strings."""

    def test_mask_string_bit_order(self) -> None:
        """Test bit 0 (north) comes first in the string."""
        assert mask_string(1) == "10000000"
        assert mask_string(0b10000001) == "10000001"
        assert mask_string(0) == EMPTY_MASK_STRING

    def test_coerce_mask_rejects_non_integers(self) -> None:
        """Test malformed masks coerce to zero instead of raising."""
        assert coerce_mask(True) == 0
        assert coerce_mask("7") == 0
        assert coerce_mask(None) == 0
        assert coerce_mask(300) == 300 & 0xFF

    def test_digits_of_wrong_length_are_empty(self) -> None:
        """Test digit vectors must have exactly 8 entries."""
        assert mask_string_from_digits(["1"] * 7) == EMPTY_MASK_STRING
        assert mask_string_from_digits(None) == EMPTY_MASK_STRING
        assert mask_string_from_digits(list("12100000")) == "12100000"

    def test_normalize_pads_and_truncates(self) -> None:
        """Test mask strings are left-padded and cut to 8 characters."""
        assert normalize_mask_string("101") == "00000101"
        assert normalize_mask_string("123456789") == "12345678"
        assert normalize_mask_string(None) == EMPTY_MASK_STRING

    def test_direction_bits(self) -> None:
        """Test set bits are reported in ring order."""
        assert direction_bits(0b101) == [Direction.N, Direction.E]


class TestRotation:
    """Test quarter-turn rotation of masks."""

    def test_rotate_integer_mask(self) -> None:
        """Test a two-slot shift moves north to east."""
        assert rotate_mask(1, 2) == 1 << Direction.E
        assert rotate_mask(1 << Direction.NW, 2) == 1 << Direction.NE

    def test_rotate_mask_string(self) -> None:
        """Test string rotation moves digit i to i + shift."""
        assert rotate_mask_string("12000000", 2) == "00120000"
        assert rotate_mask_string("12000000", 8) == "12000000"


class TestDiagonalGating:
    """Test diagonal gating of masks and digit vectors."""

    @pytest.mark.parametrize("mask", range(256))
    def test_gated_diagonals_have_both_flanks(self, mask: int) -> None:
        """Test no gated diagonal bit survives without both flanking cardinals."""
        gated = gate_diagonal_mask(mask)
        for diagonal in DIAGONALS:
            if gated & (1 << diagonal):
                left, right = diagonal.flanks
                assert gated & (1 << left) and gated & (1 << right)

    def test_gating_keeps_supported_diagonal(self) -> None:
        """Test N+NE+E keeps its NE bit."""
        assert gate_diagonal_mask(0b111) == 0b111
        assert gate_diagonal_mask(0b010) == 0

    def test_gate_digits_marks_weak_diagonals(self) -> None:
        """Test unsupported present diagonals become 2."""
        gated = gate_diagonal_digits(list("11000000"))
        assert gated[Direction.NE] == "2"
        assert gate_diagonal_digits(list("11100000"))[Direction.NE] == "1"

    def test_reduce_and_clear_only_touch_diagonals(self) -> None:
        """Test diagonal rewrites leave cardinal slots alone."""
        assert reduce_diagonal_mask_string("12121212", "2", "0") == "10101010"
        assert reduce_diagonal_mask_string("22222222", "2", "1") == "21212121"
        assert clear_diagonal_mask_string("11111111") == "10101010"


class TestCanonicalize:
    """Test rotation canonicalization."""

    def test_smallest_rotation_wins(self) -> None:
        """Test a lone north bit canonicalizes to its 270 degree rotation."""
        result = canonicalize("10000000")
        assert result.mask == "00000010"
        assert result.rotation == 270

    def test_canonical_input_reports_rotation_zero(self) -> None:
        """Test an already-minimal string is returned unchanged."""
        result = canonicalize("00000010")
        assert result.mask == "00000010"
        assert result.rotation == 0
        assert is_canonical("00000010")
        assert not is_canonical("10000000")

    @pytest.mark.parametrize("mask", ["".join(digits) for digits in itertools.product("012", repeat=8)])
    def test_idempotent(self, mask: str) -> None:
        """Test canonicalizing a canonical string changes nothing."""
        first = canonicalize(mask)
        second = canonicalize(first.mask)
        assert second.mask == first.mask
        assert second.rotation == 0

    def test_symmetric_masks_deduplicate(self) -> None:
        """Test rotations identical to earlier ones are dropped."""
        assert [r.rotation for r in mask_rotations("10101010")] == [0]
        assert [r.rotation for r in mask_rotations("10001000")] == [0, 90]
        assert canonicalize("11111111").rotation == 0

    def test_ternary_strings(self) -> None:
        """Test shore digit strings canonicalize like binary ones."""
        result = canonicalize("00111000")
        assert result.mask == "00001110"
        assert result.rotation == 90
