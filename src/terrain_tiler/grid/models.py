"""
Data models for terrain grid snapshots.

A snapshot holds one flat value list per layer, indexed by ``y * width + x``.
The world is a cylinder: x wraps around, y does not. Snapshots are treated
as immutable during a render pass; updates produce a new snapshot that
shares every untouched layer with the old one.
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Mapping, Sequence

logger = logging.getLogger(__name__)


class LayerType(str, Enum):
    U8 = "u8"
    U16 = "u16"

    @property
    def max_value(self) -> int:
        return 0xFFFF if self is LayerType.U16 else 0xFF


class Layer(str, Enum):
    """Named data layers, in stacking order."""
    TERRAIN = "terrain"
    TERRAIN_FLAGS = "terrain_flags"
    MINERALS = "minerals"
    EXPLORATION = "exploration"
    LANDMASS = "landmass"
    COMPUTED_ADJ_MASK = "computed_adj_mask"

    def __str__(self) -> str:
        return self.value

    @property
    def layer_type(self) -> LayerType:
        return LayerType.U16 if self is Layer.TERRAIN else LayerType.U8

    @classmethod
    def parse(cls, value: Any) -> "Layer | None":
        """Return the layer named ``value`` or None for unknown names."""
        try:
            return cls(str(value))
        except ValueError:
            return None


LAYER_STACK: tuple[Layer, ...] = tuple(Layer)


def coerce_layer_value(value: Any, layer_type: LayerType) -> int | None:
    """Convert a raw value to an in-range integer, or None if malformed.

    Integral floats are accepted; values wrap to the layer width the same
    way a typed array store does.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        value = int(value)
    if not isinstance(value, int):
        return None
    return value & layer_type.max_value


@dataclass(frozen=True)
class GridUpdate:
    """A single-cell delta: ``layer`` at ``(x, y)`` becomes ``value``."""
    layer: Layer
    x: int
    y: int
    value: int

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], default_layer: Layer = Layer.TERRAIN) -> "GridUpdate | None":
        """Create a GridUpdate from a delta dict.

        Accepts ``new`` or ``value`` for the value. Returns None when any
        field is missing or not a finite number.
        """
        layer = Layer.parse(data.get("layer")) if data.get("layer") else default_layer
        if layer is None:
            return None
        raw_value = data.get("new", data.get("value"))
        x = coerce_layer_value(data.get("x"), LayerType.U16)
        y = coerce_layer_value(data.get("y"), LayerType.U16)
        value = coerce_layer_value(raw_value, layer.layer_type)
        if x is None or y is None or value is None:
            return None
        if data.get("x") != x or data.get("y") != y:
            # Out of u16 range or fractional coordinates
            return None
        return cls(layer=layer, x=x, y=y, value=value)


@dataclass(frozen=True)
class TerrainGrid:
    """Immutable per-pass snapshot of all layers of a map."""
    width: int
    height: int
    layers: Mapping[Layer, Sequence[int]] = field(default_factory=lambda: {})

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError(f"Invalid grid size: {self.width}x{self.height}")
        size = self.width * self.height
        normalized: dict[Layer, tuple[int, ...]] = {}
        for layer in Layer:
            raw = self.layers.get(layer)
            normalized[layer] = self._normalize_values(layer, raw, size)
        object.__setattr__(self, "layers", normalized)

    @staticmethod
    def _normalize_values(layer: Layer, raw: Sequence[Any] | None, size: int) -> tuple[int, ...]:
        """Zero-fill missing layers and coerce every value; bad entries become 0.

        Tuples of the right length are taken as already normalized, which is
        what snapshots hand to each other on update.
        """
        if not raw:
            return (0,) * size
        if isinstance(raw, tuple) and len(raw) == size:
            return raw
        if len(raw) != size:
            logger.warning(
                f"Layer '{layer.value}' has {len(raw)} values, expected {size}; padding/truncating"
            )
        values: list[int] = []
        for item in list(raw)[:size]:
            coerced = coerce_layer_value(item, layer.layer_type)
            values.append(coerced if coerced is not None else 0)
        values.extend([0] * (size - len(values)))
        return tuple(values)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TerrainGrid":
        """Create a TerrainGrid from a JSON-like dict.

        Expected keys: ``width``, ``height`` and ``layers`` mapping layer
        names to flat value lists. Unknown layer names are ignored.
        """
        width = int(data.get("width", 0))
        height = int(data.get("height", 0))
        raw_layers = data.get("layers", {}) or {}
        layers: dict[Layer, Sequence[int]] = {}
        for name, values in raw_layers.items():
            layer = Layer.parse(name)
            if layer is None:
                logger.debug(f"Ignoring unknown layer '{name}'")
                continue
            layers[layer] = list(values or [])
        return cls(width=width, height=height, layers=layers)

    @property
    def size(self) -> int:
        return self.width * self.height

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def index(self, x: int, y: int) -> int:
        return y * self.width + x

    def values(self, layer: Layer) -> Sequence[int]:
        return self.layers[layer]

    def value(self, layer: Layer, x: int, y: int) -> int:
        """Raw value at ``(x, y)``; out-of-range coordinates read as 0."""
        if not self.in_bounds(x, y):
            return 0
        return self.layers[layer][self.index(x, y)]

    def neighbor(self, x: int, y: int, dx: int, dy: int) -> tuple[int, int] | None:
        """Coordinates of the neighbor at offset (dx, dy), or None off the poles."""
        ny = y + dy
        if ny < 0 or ny >= self.height or self.width == 0:
            return None
        return (x + dx) % self.width, ny

    def neighborhood(self, x: int, y: int) -> list[tuple[int, int]]:
        """The 3×3 block around ``(x, y)``, wrapped in x and clipped in y."""
        cells: list[tuple[int, int]] = []
        for dy in (-1, 0, 1):
            for dx in (-1, 0, 1):
                coords = self.neighbor(x, y, dx, dy)
                if coords is not None and coords not in cells:
                    cells.append(coords)
        return cells

    def cells(self) -> Iterator[tuple[int, int]]:
        for y in range(self.height):
            for x in range(self.width):
                yield x, y

    def with_update(self, update: GridUpdate) -> "TerrainGrid | None":
        """Return a new snapshot with ``update`` applied, or None if it is out of range."""
        if not self.in_bounds(update.x, update.y):
            return None
        layer_values = list(self.layers[update.layer])
        layer_values[self.index(update.x, update.y)] = update.value
        layers = dict(self.layers)
        layers[update.layer] = tuple(layer_values)
        return TerrainGrid(width=self.width, height=self.height, layers=layers)
