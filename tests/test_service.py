"""Tests for the tiling service facade."""

import logging
from dataclasses import replace

import pytest

from terrain_tiler.autotile.edges import EdgeClass
from terrain_tiler.autotile.shore import ShoreSemanticClass
from terrain_tiler.config import EngineConfig
from terrain_tiler.grid.models import GridUpdate, Layer
from terrain_tiler.service import TilingService
from terrain_tiler.sprites.index import AssetIndex
from terrain_tiler.terrain.base_source import BaseSource
from terrain_tiler.terrain.kinds import TerrainKind

from conftest import DESERT, GRASS, OCEAN, make_grid


@pytest.fixture
def service(island_grid, group_assets, engine_config) -> TilingService:
    return TilingService(island_grid, group_assets, engine_config)


class TestCellDecisions:
    """Test per-cell classification and sprite choice."""

    def test_base_source_detected(self, service) -> None:
        assert service.base_source is BaseSource.LO
        assert service.base_source_report.candidates

    def test_shore_corner(self, service) -> None:
        """Test a land corner next to ocean is promoted to shore."""
        decision = service.resolve_cell(1, 1)
        assert decision.kind is TerrainKind.SHORE
        assert decision.base_kind is TerrainKind.GRASS
        assert decision.mask == 193
        assert decision.edge_class is EdgeClass.CORNER_NW
        assert decision.shore_digits == tuple("00111000")
        assert decision.shore_class is ShoreSemanticClass.CONVEX_CORNER
        assert decision.sprite is not None and decision.sprite.key == "shore.png"
        assert decision.placeholder is None

    def test_straight_shore(self, service) -> None:
        decision = service.resolve_cell(2, 1)
        assert decision.shore_digits == tuple("00111110")
        assert decision.shore_class is ShoreSemanticClass.STRAIGHT_EDGE
        assert decision.edge_class is EdgeClass.EDGE_N

    def test_interior_and_ocean(self, service) -> None:
        """Test land away from ocean keeps its kind and ocean uses mask 0."""
        grass = service.resolve_cell(2, 2)
        assert grass.kind is TerrainKind.GRASS
        assert grass.edge_class is EdgeClass.INTERIOR
        assert grass.sprite.key == "grass.png"
        assert grass.shore_digits is None

        ocean = service.resolve_cell(0, 0)
        assert ocean.kind is TerrainKind.OCEAN
        assert ocean.mask == 0
        assert ocean.sprite.key == "ocean.png"

    def test_out_of_bounds_is_unknown(self, service) -> None:
        decision = service.resolve_cell(9, 9)
        assert decision.kind is TerrainKind.UNKNOWN
        assert decision.placeholder == "unknown"

    def test_unknown_and_missing_placeholders(self, group_assets) -> None:
        """Test unresolvable ids and absent sprites get distinct placeholders."""
        grid = make_grid([[200, DESERT]])
        service = TilingService(grid, group_assets, EngineConfig(base_source="lo", max_workers=1))
        unknown = service.resolve_cell(0, 0)
        missing = service.resolve_cell(1, 0)
        assert unknown.kind is TerrainKind.UNKNOWN
        assert unknown.placeholder == "unknown"
        assert missing.kind is TerrainKind.DESERT
        assert missing.placeholder == "missing"

    def test_image_backend_shore(self, island_grid, image_assets_factory) -> None:
        """Test image-backed shore cells carry their audit record."""
        assets = image_assets_factory({"arcanus|shore|00000000|0": "zero.png"})
        service = TilingService(island_grid, assets, EngineConfig(max_workers=1))
        decision = service.resolve_cell(1, 1)
        assert decision.sprite.key == "zero.png"
        assert decision.audit is not None
        assert decision.audit.fallback_step == "fallback_zero"
        assert decision.audit.semantic_class == "convex_corner"
        assert service.audit.missing_total("arcanus", "shore") == 1

    def test_forced_base_source(self, island_grid, group_assets) -> None:
        service = TilingService(island_grid, group_assets, EngineConfig(base_source="hi"))
        assert service.base_source is BaseSource.HI
        assert service.base_source_report.candidates == ()
        # Every high byte is 0, so the whole map reads as ocean
        assert service.resolve_cell(2, 2).kind is TerrainKind.OCEAN


class TestOverlays:
    """Test overlay stacking above the base sprite."""

    def test_overlay_order(self, grid_factory) -> None:
        """Test feature, flags by bit, mineral, then embedded special."""
        terrain = [[GRASS] * 3 for _ in range(3)]
        terrain[1][1] = GRASS | (5 << 8)
        flags = [[0] * 3 for _ in range(3)]
        flags[1][1] = 0b101
        minerals = [[0] * 3 for _ in range(3)]
        minerals[1][1] = 3
        grid = grid_factory(terrain, terrain_flags=flags, minerals=minerals)
        assets = AssetIndex.from_dict({
            "terrain_groups": {"grass": ["grass.png"]},
            "overlay_groups": {
                "feature_grass": ["tree.png"],
                "flag_0": ["road.png"],
                "flag_river": ["river.png"],
                "resource_3": ["gold.png"],
                "special_5": ["tower.png"],
            },
            "terrain_flag_names": {"2": "River"},
        })
        service = TilingService(grid, assets, EngineConfig(base_source="lo", max_workers=1))

        decision = service.resolve_cell(1, 1)
        assert [(o.source, o.group, o.sprite.key) for o in decision.overlays] == [
            ("feature", "feature_grass", "tree.png"),
            ("flag", "flag_0", "road.png"),
            ("flag", "flag_river", "river.png"),
            ("mineral", "resource_3", "gold.png"),
            ("special", "special_5", "tower.png"),
        ]
        assert [o.source for o in service.resolve_cell(0, 0).overlays] == ["feature"]

    def test_overlays_disabled(self, island_grid) -> None:
        assets = AssetIndex.from_dict({"overlay_groups": {"feature": ["tree.png"]}})
        service = TilingService(island_grid, assets, EngineConfig(overlays=False))
        assert service.resolve_cell(2, 2).overlays == ()


class TestRenderPass:
    """Test full render passes."""

    def test_parallel_matches_sequential(self, service) -> None:
        parallel = service.render_pass(parallel=True)
        sequential = service.render_pass(parallel=False)
        assert parallel.rows == sequential.rows
        assert [(d.x, d.y) for d in parallel][:6] == [(0, 0), (1, 0), (2, 0), (3, 0), (4, 0), (0, 1)]

    def test_counts(self, service) -> None:
        render = service.render_pass()
        assert (render.width, render.height) == (5, 5)
        assert render.missing_count == 0
        assert render.fallback_counts() == {"exact": 25}
        assert render.cell(1, 1).kind is TerrainKind.SHORE

    def test_missing_cells_counted(self, group_assets) -> None:
        grid = make_grid([[DESERT, DESERT]])
        service = TilingService(grid, group_assets, EngineConfig(base_source="lo"))
        render = service.render_pass()
        assert render.missing_count == 2
        assert render.fallback_counts() == {"missing": 2}

    def test_row_failure_is_raised(self, service, monkeypatch, caplog) -> None:
        """Test a failing row is logged and propagated."""

        def boom(*args, **kwargs):
            raise RuntimeError("broken sprite table")

        monkeypatch.setattr(service, "resolve_cell", boom)
        with caplog.at_level(logging.ERROR, logger="terrain_tiler"):
            with pytest.raises(RuntimeError, match="broken sprite table"):
                service.render_pass(parallel=True)
        assert "Failed to render row" in caplog.text


class TestUpdates:
    """Test incremental updates."""

    def test_update_recomputes_neighborhood(self, large_island_grid, group_assets, engine_config) -> None:
        """Test flooding a cell promotes its neighbors to shore."""
        service = TilingService(large_island_grid, group_assets, engine_config)
        assert service.resolve_cell(2, 3).kind is TerrainKind.GRASS

        decisions = service.apply_update(GridUpdate(Layer.TERRAIN, 3, 3, OCEAN))
        assert len(decisions) == 9
        assert decisions[(3, 3)].kind is TerrainKind.OCEAN
        assert decisions[(2, 3)].kind is TerrainKind.SHORE
        assert service.resolve_cell(2, 3).kind is TerrainKind.SHORE

    @pytest.mark.parametrize("coords,value", [((3, 2), OCEAN), ((0, 0), OCEAN), ((3, 2), DESERT)])
    def test_update_matches_full_render(self, grid_factory, group_assets, engine_config, coords, value) -> None:
        """Test incremental decisions equal a fresh render pass and nothing else changes."""
        grid = grid_factory([[GRASS] * 7 for _ in range(5)])
        service = TilingService(grid, group_assets, replace(engine_config, base_source="lo"))
        before = service.render_pass()

        decisions = service.apply_update(GridUpdate(Layer.TERRAIN, coords[0], coords[1], value))
        after = service.render_pass()

        for decision in after:
            key = (decision.x, decision.y)
            if key in decisions:
                assert decisions[key] == decision
            else:
                assert before.cell(*key) == decision

    def test_update_keeps_base_source(self, island_grid, group_assets) -> None:
        service = TilingService(island_grid, group_assets)
        service.apply_update(GridUpdate(Layer.TERRAIN, 2, 2, 0x0300))
        assert service.base_source is BaseSource.LO

    def test_flag_update_invalidates_neighborhood(self, service) -> None:
        decisions = service.apply_update(GridUpdate(Layer.TERRAIN_FLAGS, 2, 2, 1))
        assert sorted(decisions) == sorted(
            (x, y) for y in (1, 2, 3) for x in (1, 2, 3)
        )

    def test_out_of_range_update_ignored(self, service) -> None:
        grid = service.grid
        assert service.apply_update(GridUpdate(Layer.TERRAIN, 7, 0, GRASS)) == {}
        assert service.grid is grid

    def test_batch_union(self, service) -> None:
        """Test edge cells wrap in x and clip in y."""
        decisions = service.apply_updates([
            GridUpdate(Layer.TERRAIN, 0, 0, GRASS),
            GridUpdate(Layer.TERRAIN, 4, 4, GRASS),
            GridUpdate(Layer.TERRAIN, 9, 9, GRASS),
        ])
        assert len(decisions) == 12
        assert (4, 0) in decisions and (0, 4) in decisions
        assert service.apply_updates([GridUpdate(Layer.TERRAIN, 9, 9, GRASS)]) == {}

    def test_reload_resets_audit(self, service, island_grid) -> None:
        service.audit.record_missing("arcanus", "shore", "1")
        service.reload(grid=island_grid)
        assert service.audit.missing_total("arcanus", "shore") == 0


class TestCoastAudit:
    """Test single-cell coast audit reports."""

    def test_shore_report(self, island_grid, image_assets_factory, caplog) -> None:
        assets = image_assets_factory({"arcanus|shore|00001110|0": "corner.png"})
        service = TilingService(island_grid, assets)
        with caplog.at_level(logging.INFO, logger="terrain_tiler"):
            report = service.coast_audit(1, 1)
        assert report is not None
        assert report["raw_mask"] == "00111000"
        assert report["semantic_class"] == "convex_corner"
        assert report["canonical_mask"] == "00001110"
        assert report["canonical_rotation"] == 90
        assert report["used_mask"] == "00001110"
        assert report["used_rotation"] == 90
        assert report["fallback_step"] == "canonical"
        assert report["path"] == "corner.png"
        assert len(report["neighbors"]) == 8
        assert "Coast audit" in caplog.text
        # Reports do not feed the shared coverage counters
        assert service.audit.missing_total("arcanus", "shore") == 0

    def test_non_shore_and_out_of_range(self, service) -> None:
        assert service.coast_audit(2, 2)["note"] == "not shore"
        assert service.coast_audit(-1, 0) is None

    def test_mask_samples_are_limited(self, large_island_grid, image_assets_factory, caplog) -> None:
        """Test only the first dozen shore cells are sampled per reload."""
        assets = image_assets_factory({"arcanus|shore|00000000|0": "zero.png"})
        service = TilingService(large_island_grid, assets, EngineConfig(coast_audit=True))
        with caplog.at_level(logging.DEBUG, logger="terrain_tiler"):
            service.render_pass()
        samples = [r for r in caplog.records if r.getMessage().startswith("Mask sample")]
        assert len(samples) == 12


class TestPhaseLoop:
    """Test animation loop detection."""

    @pytest.fixture
    def animated_assets(self) -> AssetIndex:
        return AssetIndex.from_dict({
            "terrain_groups": {
                "ocean": ["ocean.png"],
                "shore": ["shore.png"],
                "grass": [
                    {"key": "grass_a.png", "variant": "phase:0"},
                    {"key": "grass_b.png", "variant": "phase:1"},
                    {"key": "grass_c.png", "variant": "phase:2"},
                ],
            },
        })

    def test_detected(self, island_grid, animated_assets, engine_config) -> None:
        result = TilingService(island_grid, animated_assets, engine_config).detect_phase_loop()
        assert result.status == "detected"
        assert result.loop_len == 3
        assert result.diff == 0

    def test_threshold(self, island_grid, animated_assets, engine_config) -> None:
        """Test differences up to the threshold still count as a loop."""
        result = TilingService(island_grid, animated_assets, engine_config).detect_phase_loop(threshold=1)
        assert (result.status, result.loop_len, result.diff) == ("detected", 1, 1)

    def test_assumed(self, island_grid, animated_assets, engine_config) -> None:
        result = TilingService(island_grid, animated_assets, engine_config).detect_phase_loop(max_phases=2)
        assert result.status == "assumed"
        assert result.loop_len == 8

    def test_missing_assets(self, island_grid) -> None:
        result = TilingService(island_grid).detect_phase_loop()
        assert result.status == "error"
        assert result.reason == "missing_assets"

    def test_phase_index_from_config(self, island_grid, animated_assets) -> None:
        config = replace(EngineConfig(), use_phase=True, phase_index=1)
        service = TilingService(island_grid, animated_assets, config)
        assert service.resolve_cell(2, 2).sprite.key == "grass_b.png"
