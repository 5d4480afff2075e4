"""Tests for the debug classification map."""

import pytest
from PIL import Image

from terrain_tiler.config import EngineConfig
from terrain_tiler.diagnostics.overlay import (
    BACKGROUND, KIND_COLORS, MISSING_COLOR, SHORE_SEMANTIC_COLORS, blend, cell_color,
    render_debug_map, save_debug_map,
)
from terrain_tiler.service import TilingService
from terrain_tiler.terrain.kinds import TerrainKind

from conftest import DESERT, GRASS, make_grid


@pytest.fixture
def render(island_grid, group_assets, engine_config):
    return TilingService(island_grid, group_assets, engine_config).render_pass()


class TestColors:
    """Test cell colors."""

    def test_blend(self) -> None:
        assert blend((0, 0, 0), "#ffffff", 0.5) == (128, 128, 128)
        assert blend((10, 20, 30), "#000000", 0.0) == (10, 20, 30)

    def test_kind_tint(self, render) -> None:
        decision = render.cell(2, 2)
        expected = blend((2, 6, 23), KIND_COLORS[TerrainKind.GRASS])
        assert cell_color(decision) == expected
        assert cell_color(decision, show_kinds=False) == (2, 6, 23)

    def test_shore_semantic_tint(self, render) -> None:
        """Test shore cells are tinted a second time by their semantic class."""
        decision = render.cell(1, 1)
        kind_only = cell_color(decision)
        with_semantics = cell_color(decision, show_shore_semantics=True)
        assert with_semantics == blend(kind_only, SHORE_SEMANTIC_COLORS[decision.shore_class])
        # Non-shore cells are unaffected by the semantic option
        assert cell_color(render.cell(2, 2), show_shore_semantics=True) == cell_color(render.cell(2, 2))

    def test_missing_is_magenta(self, group_assets) -> None:
        grid = make_grid([[GRASS, DESERT]])
        render = TilingService(grid, group_assets, EngineConfig(base_source="lo")).render_pass()
        assert cell_color(render.cell(1, 0)) == (255, 0, 255)
        assert cell_color(render.cell(0, 0)) != (255, 0, 255)


class TestDebugMap:
    """Test debug map rendering."""

    def test_image_size_and_pixels(self, render) -> None:
        image = render_debug_map(render, tile_size=4, show_labels=False)
        assert image.size == (20, 20)
        assert image.mode == "RGB"
        for decision in render:
            center = (decision.x * 4 + 2, decision.y * 4 + 2)
            assert image.getpixel(center) == cell_color(decision)

    def test_small_tiles_have_no_labels(self, render) -> None:
        """Test labels are skipped when cells are too small to hold text."""
        with_labels = render_debug_map(render, tile_size=8, show_labels=True)
        without_labels = render_debug_map(render, tile_size=8, show_labels=False)
        assert list(with_labels.getdata()) == list(without_labels.getdata())

    def test_save(self, render, tmp_path) -> None:
        path = save_debug_map(render, tmp_path / "maps" / "island.png", tile_size=2)
        assert path.exists()
        with Image.open(path) as image:
            assert image.format == "PNG"
            assert image.size == (10, 10)

    def test_constants_are_valid_colors(self) -> None:
        assert blend((0, 0, 0), BACKGROUND, 1.0) == (2, 6, 23)
        assert blend((0, 0, 0), MISSING_COLOR, 1.0) == (255, 0, 255)
