"""
Asset index: the sprite groups and image lookup tables the resolver reads.

The index is a read-only value. A reload replaces it wholesale; nothing
in it is mutated during a render pass.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Sequence, cast

import orjson

from ..terrain.kinds import DEFAULT_WATER_VALUES, KindTables, int_keyed
from .models import SpriteGroup

logger = logging.getLogger(__name__)


class AssetBackend(str, Enum):
    """Which lookup the base terrain sprite goes through."""
    GROUPS = "groups"
    IMAGE = "image"

    def __str__(self) -> str:
        return self.value


def image_key(plane: str, kind: str, mask: str, frame: str) -> str:
    return f"{plane}|{kind}|{mask}|{frame}"


def image_base_key(plane: str, kind: str, mask: str) -> str:
    return f"{plane}|{kind}|{mask}"


def _parse_groups(raw: Any) -> dict[str, SpriteGroup]:
    if not isinstance(raw, dict):
        return {}
    groups: dict[str, SpriteGroup] = {}
    for name, entries in cast(dict[str, Any], raw).items():
        if not isinstance(entries, list):
            logger.debug(f"Ignoring sprite group '{name}': expected a list")
            continue
        groups[str(name)] = SpriteGroup.from_list(str(name), cast(list[Any], entries))
    return groups


def _frames_from_index(index: Mapping[str, str]) -> dict[str, tuple[str, ...]]:
    """Derive per-mask frame lists from ``plane|kind|mask|frame`` keys."""
    frames: dict[str, list[str]] = {}
    for key in index:
        parts = key.split("|")
        if len(parts) != 4 or not all(parts):
            continue
        base = "|".join(parts[:3])
        frames.setdefault(base, [])
        if parts[3] not in frames[base]:
            frames[base].append(parts[3])
    return {base: tuple(values) for base, values in frames.items()}


@dataclass(frozen=True)
class AssetIndex:
    """Sprite groups plus the image-keyed lookup for one asset set.

    Attributes:
        backend: Lookup used for base terrain sprites
        terrain_groups: Base terrain sprite groups by name
        overlay_groups: Feature, flag, mineral and special overlay groups
        images: ``plane|kind|mask|frame`` -> opaque path
        frames: ``plane|kind|mask`` -> available frame names
        terrain_names: Base id -> display name
        flag_names: Flag bit -> display name
        kind_overrides: Base id -> kind name
        water_values: Base ids treated as ocean
    """
    backend: AssetBackend = AssetBackend.GROUPS
    terrain_groups: Mapping[str, SpriteGroup] = field(default_factory=lambda: {})
    overlay_groups: Mapping[str, SpriteGroup] = field(default_factory=lambda: {})
    images: Mapping[str, str] = field(default_factory=lambda: {})
    frames: Mapping[str, Sequence[str]] = field(default_factory=lambda: {})
    terrain_names: Mapping[int, str] = field(default_factory=lambda: {})
    flag_names: Mapping[int, str] = field(default_factory=lambda: {})
    kind_overrides: Mapping[int, str] = field(default_factory=lambda: {})
    water_values: frozenset[int] = DEFAULT_WATER_VALUES

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AssetIndex":
        """Create an AssetIndex from a JSON-like dict.

        Args:
            data: Dict with optional ``backend``, ``terrain_groups``,
                ``overlay_groups``, ``images`` (``index`` and ``frames``),
                ``terrain_names``, ``terrain_flag_names``,
                ``terrain_kind_overrides`` and ``terrain_water_values``

        Returns:
            AssetIndex instance
        """
        try:
            backend = AssetBackend(str(data.get("backend", AssetBackend.GROUPS.value)))
        except ValueError:
            logger.warning(f"Unknown asset backend '{data.get('backend')}', using groups")
            backend = AssetBackend.GROUPS

        raw_images = data.get("images") or {}
        images: dict[str, str] = {}
        frames: dict[str, tuple[str, ...]] = {}
        if isinstance(raw_images, dict):
            image_data = cast(dict[str, Any], raw_images)
            raw_index = image_data.get("index")
            if isinstance(raw_index, dict):
                images = {str(k): str(v) for k, v in cast(dict[str, Any], raw_index).items() if v}
            raw_frames = image_data.get("frames")
            if isinstance(raw_frames, dict):
                frames = {
                    str(k): tuple(str(f) for f in v)
                    for k, v in cast(dict[str, Any], raw_frames).items()
                    if isinstance(v, list)
                }
            else:
                frames = _frames_from_index(images)

        tables = KindTables.from_dict(data)
        flag_names = {k: str(v) for k, v in int_keyed(data.get("terrain_flag_names")).items() if v}

        return cls(
            backend=backend,
            terrain_groups=_parse_groups(data.get("terrain_groups")),
            overlay_groups=_parse_groups(data.get("overlay_groups")),
            images=images,
            frames=frames,
            terrain_names=dict(tables.names),
            flag_names=flag_names,
            kind_overrides=dict(tables.overrides),
            water_values=tables.water_values,
        )

    def kind_tables(self) -> KindTables:
        return KindTables(
            overrides=self.kind_overrides,
            water_values=self.water_values,
            names=self.terrain_names,
        )

    @property
    def has_assets(self) -> bool:
        if self.backend is AssetBackend.IMAGE:
            return bool(self.images)
        return bool(self.terrain_groups)

    def image_path(self, plane: str, kind: str, mask: str, frame: str) -> str | None:
        return self.images.get(image_key(plane, kind, mask, frame))

    def frames_for(self, plane: str, kind: str, mask: str) -> Sequence[str]:
        return self.frames.get(image_base_key(plane, kind, mask), ())

    def flag_name(self, bit: int) -> str | None:
        return self.flag_names.get(bit)


def load_asset_index(path: str | Path) -> AssetIndex:
    """Load an :class:`AssetIndex` from a JSON file."""
    index_path = Path(path)
    try:
        with index_path.open("rb") as f:
            data = orjson.loads(f.read())
    except (OSError, orjson.JSONDecodeError) as e:
        raise ValueError(f"Could not read asset index {index_path}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"Asset index must contain an object: {index_path}")
    index = AssetIndex.from_dict(cast(dict[str, Any], data))
    logger.info(
        f"Loaded asset index from {index_path}: backend={index.backend.value}, "
        f"{len(index.terrain_groups)} terrain groups, {len(index.overlay_groups)} overlay groups, "
        f"{len(index.images)} images"
    )
    return index
