"""Tests for edge/corner classification."""

import pytest

from terrain_tiler.autotile.edges import (
    EdgeClass, EdgeMode, cardinal_mask, edge_class, edge_class_for_kind,
)

N, E, S, W = 1 << 0, 1 << 2, 1 << 4, 1 << 6

# Cardinal bits as reported by cardinal_mask: N=1, E=2, S=4, W=8
SINGLE_EDGES = {1: EdgeClass.EDGE_N, 2: EdgeClass.EDGE_E, 4: EdgeClass.EDGE_S, 8: EdgeClass.EDGE_W}
PAIRED_EDGES = {
    3: EdgeClass.CORNER_NE, 9: EdgeClass.CORNER_NW, 6: EdgeClass.CORNER_SE,
    12: EdgeClass.CORNER_SW, 5: EdgeClass.EDGE_NS, 10: EdgeClass.EDGE_EW,
}
PENINSULAS = {
    1: EdgeClass.PENINSULA_N, 2: EdgeClass.PENINSULA_E, 4: EdgeClass.PENINSULA_S, 8: EdgeClass.PENINSULA_W,
}


class TestEdgeClassProperties:
    """Test classification properties over every 8-bit mask."""

    @pytest.mark.parametrize("mask", range(256))
    def test_presence_mode_by_cardinal_count(self, mask: int) -> None:
        """Test 0/4 cardinals give interior, 1 an edge, 2 a corner or band, 3 a peninsula."""
        result = edge_class(mask, EdgeMode.PRESENCE)
        card = cardinal_mask(mask)
        count = bin(card).count("1")
        if count in (0, 4):
            assert result is EdgeClass.INTERIOR
        elif count == 1:
            assert result is SINGLE_EDGES[card]
        elif count == 2:
            assert result is PAIRED_EDGES[card]
        else:
            # Keyed by the one missing cardinal
            assert result is PENINSULAS[card ^ 0b1111]

    @pytest.mark.parametrize("mask", range(256))
    def test_diagonals_are_ignored(self, mask: int) -> None:
        """Test only the cardinal bits influence the result."""
        cardinals_only = mask & (N | E | S | W)
        assert edge_class(mask) is edge_class(cardinals_only)


class TestEdgeClassCases:
    """Test specific edge classes."""

    def test_presence_mode(self) -> None:
        """Test presence mode names the set directions."""
        assert edge_class(N, EdgeMode.PRESENCE) is EdgeClass.EDGE_N
        assert edge_class(N | E, EdgeMode.PRESENCE) is EdgeClass.CORNER_NE
        assert edge_class(S | W, EdgeMode.PRESENCE) is EdgeClass.CORNER_SW
        assert edge_class(N | S, EdgeMode.PRESENCE) is EdgeClass.EDGE_NS
        assert edge_class(E | W, EdgeMode.PRESENCE) is EdgeClass.EDGE_EW
        assert edge_class(N | E | S, EdgeMode.PRESENCE) is EdgeClass.PENINSULA_W

    def test_same_mode_inverts(self) -> None:
        """Test same-kind neighbors on E, S and W leave a northern edge."""
        assert edge_class(E | S | W, EdgeMode.SAME) is EdgeClass.EDGE_N
        assert edge_class(N, EdgeMode.SAME) is EdgeClass.PENINSULA_N

    def test_interior_conflation(self) -> None:
        """Test fully enclosed and fully open cells are both interior."""
        assert edge_class(0xFF, EdgeMode.SAME) is EdgeClass.INTERIOR
        assert edge_class(0, EdgeMode.SAME) is EdgeClass.INTERIOR

    def test_unknown_mode_falls_back_to_same(self) -> None:
        """Test an unrecognized mode string behaves like same mode."""
        assert edge_class(N, "sideways") is edge_class(N, EdgeMode.SAME)

    def test_mode_follows_kind(self) -> None:
        """Test shore uses presence mode and other kinds same mode."""
        assert edge_class_for_kind("shore", N) is EdgeClass.EDGE_N
        assert edge_class_for_kind("grass", N) is EdgeClass.PENINSULA_N

    def test_aliases(self) -> None:
        """Test compass aliases used by tags and group names."""
        assert EdgeClass.CORNER_NE.alias == "NE"
        assert EdgeClass.PENINSULA_S.alias == "PEN_S"
        assert EdgeClass.INTERIOR.alias is None
