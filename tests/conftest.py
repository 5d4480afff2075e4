"""Shared fixtures for terrain_tiler tests."""

import logging
from typing import Any, Callable, Optional

import pytest

from terrain_tiler.config import EngineConfig
from terrain_tiler.grid.models import Layer, TerrainGrid
from terrain_tiler.sprites.index import AssetIndex

OCEAN, SHORE, GRASS, FOREST, HILL, MOUNTAIN, TUNDRA, SWAMP, DESERT = range(9)


def make_grid(rows: list[list[int]], **layers: list[list[int]]) -> TerrainGrid:
    """Build a grid from row lists of terrain values plus optional extra layers."""
    height = len(rows)
    width = len(rows[0]) if rows else 0
    data: dict[Layer, list[int]] = {Layer.TERRAIN: [v for row in rows for v in row]}
    for name, layer_rows in layers.items():
        data[Layer(name)] = [v for row in layer_rows for v in row]
    return TerrainGrid(width=width, height=height, layers=data)


def island_rows(size: int = 5, land: int = GRASS) -> list[list[int]]:
    """Ocean border around a square of ``land``."""
    return [
        [OCEAN if x in (0, size - 1) or y in (0, size - 1) else land for x in range(size)]
        for y in range(size)
    ]


@pytest.fixture
def grid_factory() -> Callable[..., TerrainGrid]:
    return make_grid


@pytest.fixture
def island_grid() -> TerrainGrid:
    """5x5 grid: ocean ring around a 3x3 grass block."""
    return make_grid(island_rows(5))


@pytest.fixture
def large_island_grid() -> TerrainGrid:
    """7x7 grid: ocean ring around a 5x5 grass block."""
    return make_grid(island_rows(7))


@pytest.fixture
def group_assets() -> AssetIndex:
    """Group-backed index with one static sprite per kind used by the islands."""
    return AssetIndex.from_dict({
        "backend": "groups",
        "terrain_groups": {
            "ocean": [{"key": "ocean.png"}],
            "shore": [{"key": "shore.png"}],
            "grass": [{"key": "grass.png"}],
        },
    })


@pytest.fixture
def image_assets_factory() -> Callable[..., AssetIndex]:
    """Image-backed index builder: ``{"plane|kind|mask|frame": path}``."""

    def build(index: dict[str, str], frames: Optional[dict[str, list[str]]] = None, **extra: Any) -> AssetIndex:
        images: dict[str, Any] = {"index": index}
        if frames is not None:
            images["frames"] = frames
        return AssetIndex.from_dict({"backend": "image", "images": images, **extra})

    return build


@pytest.fixture
def engine_config() -> EngineConfig:
    return EngineConfig(max_workers=2)


@pytest.fixture
def restore_logging():
    """Keep root logger handlers intact across tests that call setup_logging."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
