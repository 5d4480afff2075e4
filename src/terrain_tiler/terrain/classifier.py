"""
Per-cell terrain classification over one grid snapshot.

The classifier answers kind and adjacency questions for a fixed
``TerrainGrid`` and base source. Neighbors wrap in x and are absent past
the top and bottom rows.
"""

import logging
from functools import cached_property
from typing import Callable

from ..autotile.directions import ALL_DIRECTIONS, CARDINALS, DIAGONALS, MASK_SIZE
from ..autotile.masks import gate_diagonal_mask
from ..grid.models import Layer, TerrainGrid
from .base_source import BaseSource, embedded_special, extract_base
from .kinds import KindTables, TerrainKind, normalize_kind

CellPredicate = Callable[[int, int], bool]


class TerrainClassifier:
    """Kind, mask and shore-digit lookups for a single snapshot.

    Every neighbor lookup reads *base* kinds: promotion to ``shore``, shore
    digits and same-kind masks. Promoted cells never promote their own
    neighbors, and a changed cell only affects its 8 neighbors.
    """

    def __init__(
        self,
        grid: TerrainGrid,
        tables: KindTables | None = None,
        base_source: BaseSource = BaseSource.LO,
    ):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.grid = grid
        self.tables = tables or KindTables()
        self.base_source = base_source

    def _neighbors(self, x: int, y: int):
        for direction in ALL_DIRECTIONS:
            dx, dy = direction.offset
            yield direction, self.grid.neighbor(x, y, dx, dy)

    def terrain_value(self, x: int, y: int) -> int:
        return self.grid.value(Layer.TERRAIN, x, y)

    def base_id_at(self, x: int, y: int) -> int:
        return extract_base(self.terrain_value(x, y), self.base_source)

    def special_at(self, x: int, y: int) -> int:
        """Embedded special byte of the terrain value."""
        return embedded_special(self.terrain_value(x, y), self.base_source)

    def kind_for_value(self, value: int) -> TerrainKind:
        kind = self.tables.kind_for_base_id(extract_base(value, self.base_source), allow_water=True)
        return kind if kind is not None else TerrainKind.UNKNOWN

    @cached_property
    def _base_kinds(self) -> tuple[TerrainKind, ...]:
        # Snapshot is immutable, so one table per classifier
        cache: dict[int, TerrainKind] = {}
        kinds: list[TerrainKind] = []
        for value in self.grid.values(Layer.TERRAIN):
            kind = cache.get(value)
            if kind is None:
                kind = cache[value] = self.kind_for_value(value)
            kinds.append(kind)
        return tuple(kinds)

    def base_kind_at(self, x: int, y: int) -> TerrainKind:
        if not self.grid.in_bounds(x, y):
            return TerrainKind.UNKNOWN
        return self._base_kinds[self.grid.index(x, y)]

    def is_adjacent_to_ocean(self, x: int, y: int) -> bool:
        for _, coords in self._neighbors(x, y):
            if coords is not None and self.base_kind_at(*coords) is TerrainKind.OCEAN:
                return True
        return False

    def kind_at(self, x: int, y: int) -> TerrainKind:
        """Rendering kind: the base kind, promoted to shore next to ocean."""
        base_kind = self.base_kind_at(x, y)
        if base_kind in (TerrainKind.OCEAN, TerrainKind.UNKNOWN, TerrainKind.SHORE):
            return base_kind
        if self.is_adjacent_to_ocean(x, y):
            return TerrainKind.SHORE
        return base_kind

    def adj_mask(self, x: int, y: int, predicate: CellPredicate) -> int:
        """Raw 8-neighbor mask; bit ``i`` set when ``predicate`` holds for neighbor ``i``."""
        mask = 0
        for direction, coords in self._neighbors(x, y):
            if coords is not None and predicate(*coords):
                mask |= 1 << direction
        return mask

    def raw_mask_for_kind(self, kind: TerrainKind | str, x: int, y: int) -> int:
        kind = normalize_kind(kind)
        if kind is TerrainKind.UNKNOWN:
            return 0
        if kind is TerrainKind.SHORE:
            return self.adj_mask(x, y, lambda nx, ny: self.base_kind_at(nx, ny) is TerrainKind.OCEAN)
        return self.adj_mask(x, y, lambda nx, ny: self.base_kind_at(nx, ny) is kind)

    def adj_mask_for_kind(self, kind: TerrainKind | str, x: int, y: int) -> int:
        """Diagonal-gated mask used for sprite selection of ``kind``."""
        return gate_diagonal_mask(self.raw_mask_for_kind(kind, x, y))

    def sprite_mask(self, kind: TerrainKind | str, x: int, y: int) -> int:
        """Mask used to pick the base sprite; ocean cells always use 0."""
        if normalize_kind(kind) is TerrainKind.OCEAN:
            return 0
        return self.adj_mask_for_kind(kind, x, y)

    def adj_mask_for_flag(self, bit: int, x: int, y: int) -> int:
        """Neighbors carrying flag ``bit`` in the terrain_flags layer (not gated)."""
        if bit < 0 or bit > 7:
            return 0
        flag = 1 << bit
        return self.adj_mask(x, y, lambda nx, ny: bool(self.grid.value(Layer.TERRAIN_FLAGS, nx, ny) & flag))

    def _is_land(self, coords: tuple[int, int] | None) -> bool:
        # Rows past the poles count as water
        if coords is None:
            return False
        return not self.base_kind_at(*coords).is_water

    def shore_digits(self, x: int, y: int) -> list[str]:
        """Land/water digit vector around a shore cell.

        Cardinals: ``1`` land, ``0`` water. Diagonals: ``0`` water, ``1``
        land with both flanking cardinals land, otherwise ``2``.
        """
        neighbors = dict(self._neighbors(x, y))
        digits = ["0"] * MASK_SIZE
        for direction in CARDINALS:
            digits[direction] = "1" if self._is_land(neighbors[direction]) else "0"
        for direction in DIAGONALS:
            if not self._is_land(neighbors[direction]):
                continue
            left, right = direction.flanks
            digits[direction] = "1" if digits[left] == "1" and digits[right] == "1" else "2"
        return digits
