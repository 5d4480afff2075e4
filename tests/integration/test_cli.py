"""End-to-end tests for the terrain-tiler command line."""

from pathlib import Path
from typing import Any

import orjson
import pytest
from PySide6.QtCore import QSettings

from terrain_tiler.__main__ import main

OCEAN, GRASS = 0, 2


def write_json(path: Path, data: Any) -> Path:
    path.write_bytes(orjson.dumps(data))
    return path


@pytest.fixture
def workdir(tmp_path, restore_logging) -> Path:
    """Directory with a 5x5 island grid, group assets and a settings file."""
    terrain = [
        OCEAN if x in (0, 4) or y in (0, 4) else GRASS
        for y in range(5)
        for x in range(5)
    ]
    write_json(tmp_path / "grid.json", {"width": 5, "height": 5, "layers": {"terrain": terrain}})
    write_json(tmp_path / "assets.json", {
        "backend": "groups",
        "terrain_groups": {
            "ocean": [{"key": "ocean.png"}],
            "shore": [{"key": "shore.png"}],
            "grass": [{"key": "grass.png"}],
        },
    })
    return tmp_path


def run(workdir: Path, *args: str) -> tuple[int, Any]:
    output = workdir / "out.json"
    if output.exists():
        output.unlink()
    code = main(["--settings", str(workdir / "settings.ini"), "-o", str(output), *args])
    data = orjson.loads(output.read_bytes()) if output.exists() else None
    return code, data


def inputs(workdir: Path, assets: bool = True) -> list[str]:
    args = ["--grid", str(workdir / "grid.json")]
    if assets:
        args += ["--assets", str(workdir / "assets.json")]
    return args


class TestRender:
    """Test the render command."""

    def test_summary(self, workdir) -> None:
        code, data = run(workdir, "render", *inputs(workdir))
        assert code == 0
        assert (data["width"], data["height"]) == (5, 5)
        assert data["base_source"] == "lo"
        assert data["missing"] == 0
        assert data["fallback_steps"] == {"exact": 25}
        assert "cells" not in data

    def test_cells(self, workdir) -> None:
        code, data = run(workdir, "render", *inputs(workdir), "--cells")
        assert code == 0
        assert len(data["cells"]) == 25
        corner = data["cells"][6]
        assert (corner["x"], corner["y"]) == (1, 1)
        assert corner["kind"] == "shore"
        assert corner["edge_class"] == "corner_nw"
        assert corner["sprite"]["key"] == "shore.png"

    def test_without_assets(self, workdir) -> None:
        """Test every cell is reported missing without an asset index."""
        code, data = run(workdir, "render", *inputs(workdir, assets=False))
        assert code == 0
        assert data["missing"] == 25

    def test_forced_base_source(self, workdir) -> None:
        code, data = run(workdir, "--base-source", "hi", "render", *inputs(workdir))
        assert code == 0
        assert data["base_source"] == "hi"


class TestOtherCommands:
    """Test update, audit, phase-loop, debug-map and detect-base."""

    def test_update(self, workdir) -> None:
        write_json(workdir / "updates.json", {
            "delta_type": "tile_set",
            "changes": [{"x": 2, "y": 2, "new": OCEAN}, {"x": 99, "y": 0, "new": OCEAN}],
        })
        code, data = run(workdir, "update", *inputs(workdir), "--updates", str(workdir / "updates.json"))
        assert code == 0
        assert [(d["x"], d["y"]) for d in data][:3] == [(1, 1), (2, 1), (3, 1)]
        assert len(data) == 9
        assert data[4]["kind"] == "ocean"

    def test_audit(self, workdir) -> None:
        code, data = run(workdir, "audit", *inputs(workdir), "1", "1")
        assert code == 0
        assert data["raw_mask"] == "00111000"
        assert data["semantic_class"] == "convex_corner"

    def test_audit_out_of_range(self, workdir) -> None:
        code, data = run(workdir, "audit", *inputs(workdir), "9", "9")
        assert code == 1
        assert data is None

    def test_phase_loop(self, workdir) -> None:
        code, data = run(workdir, "phase-loop", *inputs(workdir), "--max-phases", "4")
        assert code == 0
        assert data["status"] == "detected"
        assert data["loop_len"] == 1
        assert data["max_phases"] == 4

    def test_phase_loop_requires_assets(self, workdir) -> None:
        with pytest.raises(SystemExit):
            main(["--settings", str(workdir / "settings.ini"), "phase-loop", *inputs(workdir, assets=False)])

    def test_debug_map(self, workdir) -> None:
        image = workdir / "map.png"
        code, data = run(workdir, "debug-map", *inputs(workdir), "--image", str(image), "--tile-size", "3")
        assert code == 0
        assert image.exists()
        assert data["image"] == str(image)

    def test_detect_base(self, workdir) -> None:
        code, data = run(workdir, "detect-base", *inputs(workdir))
        assert code == 0
        assert data["source"] == "lo"
        assert data["sample_count"] == 200
        assert len(data["candidates"]) == 4


class TestFailures:
    """Test error exits."""

    def test_missing_grid(self, workdir) -> None:
        code, data = run(workdir, "render", "--grid", str(workdir / "nope.json"))
        assert code == 1
        assert data is None

    def test_invalid_settings(self, workdir) -> None:
        store = QSettings(str(workdir / "settings.ini"), QSettings.Format.IniFormat)
        store.setValue("default/app/version", "1.1")
        store.setValue("default/engine/max_workers", 0)
        store.sync()
        del store
        code, _ = run(workdir, "render", *inputs(workdir))
        assert code == 1
