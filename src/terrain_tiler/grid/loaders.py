"""
Loading grid snapshots and update streams from JSON files.

No format beyond plain JSON is defined here: a grid file is an object with
``width``, ``height`` and ``layers`` (layer name -> flat list of integers);
an update file is a list of delta objects or an object with ``changes``.
"""

import logging
from pathlib import Path
from typing import Any, cast

import orjson

from .models import GridUpdate, Layer, TerrainGrid

logger = logging.getLogger(__name__)


def _read_json(path: Path) -> Any:
    try:
        with path.open("rb") as f:
            return orjson.loads(f.read())
    except (OSError, orjson.JSONDecodeError) as e:
        raise ValueError(f"Could not read {path}: {e}") from e


def load_grid(path: str | Path) -> TerrainGrid:
    """Load a :class:`TerrainGrid` from a JSON file."""
    grid_path = Path(path)
    data = _read_json(grid_path)
    if not isinstance(data, dict):
        raise ValueError(f"Grid file must contain an object: {grid_path}")
    grid = TerrainGrid.from_dict(cast(dict[str, Any], data))
    logger.debug(f"Loaded grid {grid.width}x{grid.height} from {grid_path}")
    return grid


def parse_updates(data: Any, default_layer: Layer = Layer.TERRAIN) -> list[GridUpdate]:
    """Parse a delta payload into updates, skipping malformed entries.

    Payloads with a ``delta_type`` other than ``tile_set`` carry no cell
    changes and yield nothing.
    """
    if isinstance(data, dict):
        payload = cast(dict[str, Any], data)
        if payload.get("delta_type") not in (None, "tile_set"):
            return []
        layer = Layer.parse(payload.get("layer")) or default_layer
        changes = payload.get("changes") or payload.get("updates") or []
    else:
        layer = default_layer
        changes = data

    if not isinstance(changes, list):
        return []

    updates: list[GridUpdate] = []
    skipped = 0
    for change in cast(list[Any], changes):
        if not isinstance(change, dict):
            skipped += 1
            continue
        update = GridUpdate.from_dict(cast(dict[str, Any], change), default_layer=layer)
        if update is None:
            skipped += 1
            continue
        updates.append(update)

    if skipped:
        logger.debug(f"Skipped {skipped} malformed update entries")
    return updates


def load_updates(path: str | Path) -> list[GridUpdate]:
    """Load an update stream from a JSON file."""
    return parse_updates(_read_json(Path(path)))
