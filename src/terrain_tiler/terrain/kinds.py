"""
Terrain kinds and the tables used to derive them from raw base ids.

Resolution order for a base id:

1. explicit override (asset index ``terrain_kind_overrides``);
2. configured water values -> ocean;
3. static id table;
4. keyword match against the terrain's display name;
5. unresolved (callers report ``unknown``).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, cast


class TerrainKind(str, Enum):
    OCEAN = "ocean"
    SHORE = "shore"
    GRASS = "grass"
    FOREST = "forest"
    HILL = "hill"
    MOUNTAIN = "mountain"
    TUNDRA = "tundra"
    SWAMP = "swamp"
    DESERT = "desert"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value

    @property
    def is_water(self) -> bool:
        return self in (TerrainKind.OCEAN, TerrainKind.SHORE)


KIND_BY_BASE_ID: dict[int, TerrainKind] = {
    0: TerrainKind.OCEAN,
    1: TerrainKind.SHORE,
    2: TerrainKind.GRASS,
    3: TerrainKind.FOREST,
    4: TerrainKind.HILL,
    5: TerrainKind.MOUNTAIN,
    6: TerrainKind.TUNDRA,
    7: TerrainKind.SWAMP,
    8: TerrainKind.DESERT,
    9: TerrainKind.GRASS,
    10: TerrainKind.FOREST,
    11: TerrainKind.HILL,
    12: TerrainKind.MOUNTAIN,
    13: TerrainKind.TUNDRA,
    14: TerrainKind.SWAMP,
    15: TerrainKind.DESERT,
}

# Evaluated top to bottom; first table with a substring hit wins
KEYWORD_TABLE: tuple[tuple[tuple[str, ...], TerrainKind], ...] = (
    (("ocean", "sea", "water"), TerrainKind.OCEAN),
    (("shore", "coast", "beach"), TerrainKind.SHORE),
    (("forest", "woods", "jungle"), TerrainKind.FOREST),
    (("desert", "dune", "sand", "waste"), TerrainKind.DESERT),
    (("tundra", "snow", "ice"), TerrainKind.TUNDRA),
    (("swamp", "marsh", "bog"), TerrainKind.SWAMP),
    (("hill", "hills", "highland"), TerrainKind.HILL),
    (("mountain", "peak", "volcano", "crater"), TerrainKind.MOUNTAIN),
    (("grass", "plain", "prairie", "grassland"), TerrainKind.GRASS),
)

KIND_ALIASES: dict[str, TerrainKind] = {
    "grasslands": TerrainKind.GRASS,
    "grassland": TerrainKind.GRASS,
    "plains": TerrainKind.GRASS,
    "hills": TerrainKind.HILL,
    "mountains": TerrainKind.MOUNTAIN,
    "woods": TerrainKind.FOREST,
    "water": TerrainKind.OCEAN,
    "sea": TerrainKind.OCEAN,
}

DEFAULT_WATER_VALUES: frozenset[int] = frozenset({0})


def normalize_kind(value: Any) -> TerrainKind:
    """Map a free-form kind name onto :class:`TerrainKind` (``unknown`` if unrecognized)."""
    text = str(value or "").strip().lower()
    if not text:
        return TerrainKind.UNKNOWN
    if text in KIND_ALIASES:
        return KIND_ALIASES[text]
    try:
        return TerrainKind(text)
    except ValueError:
        return TerrainKind.UNKNOWN


def kind_from_name(name: str) -> TerrainKind | None:
    """Keyword lookup on a terrain display name."""
    text = str(name or "").lower()
    if not text:
        return None
    for keywords, kind in KEYWORD_TABLE:
        if any(keyword in text for keyword in keywords):
            return kind
    return None


def int_keyed(data: Any) -> dict[int, Any]:
    """Convert JSON-style string keys to ints, dropping non-numeric keys."""
    result: dict[int, Any] = {}
    if not isinstance(data, Mapping):
        return result
    for key, value in cast(Mapping[Any, Any], data).items():
        try:
            result[int(key)] = value
        except (TypeError, ValueError):
            continue
    return result


@dataclass(frozen=True)
class KindTables:
    """Lookup tables for base id -> kind resolution.

    ``overrides`` values are free-form names normalized on lookup;
    ``names`` maps base ids to display names used for keyword matching.
    """
    overrides: Mapping[int, str] = field(default_factory=lambda: {})
    water_values: frozenset[int] = DEFAULT_WATER_VALUES
    id_table: Mapping[int, TerrainKind] = field(default_factory=lambda: dict(KIND_BY_BASE_ID))
    names: Mapping[int, str] = field(default_factory=lambda: {})

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "KindTables":
        """Create KindTables from asset-index style keys.

        Args:
            data: Dict with optional ``terrain_kind_overrides``,
                ``terrain_water_values`` and ``terrain_names``

        Returns:
            KindTables instance
        """
        water = data.get("terrain_water_values")
        water_values = (
            frozenset(int(v) for v in water if isinstance(v, int) and not isinstance(v, bool))
            if isinstance(water, list)
            else DEFAULT_WATER_VALUES
        )
        return cls(
            overrides={k: str(v) for k, v in int_keyed(data.get("terrain_kind_overrides")).items()},
            water_values=water_values,
            names={k: str(v) for k, v in int_keyed(data.get("terrain_names")).items()},
        )

    def kind_for_base_id(self, base: int, allow_water: bool = True) -> TerrainKind | None:
        override = self.overrides.get(base)
        if override:
            return normalize_kind(override)
        if allow_water and base in self.water_values:
            return TerrainKind.OCEAN
        mapped = self.id_table.get(base)
        if mapped:
            return normalize_kind(mapped)
        name = self.names.get(base)
        if name:
            return kind_from_name(name)
        return None
