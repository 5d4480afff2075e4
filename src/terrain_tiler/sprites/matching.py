"""
Sprite group naming and variant tag matching.

Group names are tried in priority order, most specific first. Variant tags
are free text written by asset authors; they are matched against an edge
class through a closed table of class names and compass aliases, token by
token.
"""

import re
from functools import lru_cache
from typing import Iterable

from ..autotile.edges import EDGE_ALIASES, EdgeClass

_NON_TOKEN = re.compile(r"[^a-z0-9]+")
_PHASE_TAG = re.compile(r"phase[_:-]?(\d+)", re.IGNORECASE)


def normalize_token(value: object) -> str:
    """Lower-case, collapse runs of non ``[a-z0-9]`` to ``_`` and trim ``_``."""
    text = "" if value is None else str(value)
    return _NON_TOKEN.sub("_", text.strip().lower()).strip("_")


def unique_names(names: Iterable[str]) -> tuple[str, ...]:
    """Drop empty and repeated names, keeping first occurrences."""
    seen: set[str] = set()
    result: list[str] = []
    for name in names:
        if not name or name in seen:
            continue
        seen.add(name)
        result.append(name)
    return tuple(result)


def _boundary(edge: EdgeClass | str | None) -> EdgeClass | None:
    """Edge class that contributes boundary names, or None for interior."""
    if edge is None or edge == "":
        return None
    try:
        parsed = EdgeClass(str(edge))
    except ValueError:
        return None
    return None if parsed is EdgeClass.INTERIOR else parsed


@lru_cache(maxsize=1024)
def group_names_for_kind(kind: str, edge: EdgeClass | str | None) -> tuple[str, ...]:
    """Terrain group names for ``kind``; empty for unknown kinds."""
    if not kind or str(kind) == "unknown":
        return ()
    base = normalize_token(kind)
    boundary = _boundary(edge)
    names: list[str] = []
    if boundary is not None:
        names.append(f"{base}_{boundary.value}")
        if boundary.alias:
            names.append(f"{base}_{boundary.alias}")
        names.append(f"{base}_edge")
    else:
        names.append(f"{base}_interior")
    names.append(base)
    names.append(f"terrain_{base}")
    return unique_names(names)


@lru_cache(maxsize=1024)
def overlay_group_names(base_group: str, edge: EdgeClass | str | None) -> tuple[str, ...]:
    if not base_group:
        return ()
    base = normalize_token(base_group)
    boundary = _boundary(edge)
    names: list[str] = []
    if boundary is not None:
        names.append(f"{base}_{boundary.value}")
        if boundary.alias:
            names.append(f"{base}_{boundary.alias}")
    else:
        names.append(f"{base}_interior")
    names.append(base)
    return unique_names(names)


@lru_cache(maxsize=256)
def feature_group_names(kind: str) -> tuple[str, ...]:
    if not kind or str(kind) == "unknown":
        return ()
    token = normalize_token(kind)
    return unique_names([f"feature_{token}", f"{token}_feature", "feature"])


def flag_base_group(bit: int, name: str | None = None) -> str:
    """``flag_<name>`` when the flag has a usable name, else ``flag_<bit>``."""
    token = normalize_token(name)
    if token:
        return f"flag_{token}"
    return f"flag_{bit}"


def mineral_group_names(value: int) -> tuple[str, ...]:
    return unique_names(
        overlay_group_names(f"resource_{value}", EdgeClass.INTERIOR)
        + overlay_group_names("resource", EdgeClass.INTERIOR)
    )


def special_group_names(value: int) -> tuple[str, ...]:
    return unique_names(
        overlay_group_names(f"special_{value}", EdgeClass.INTERIOR)
        + overlay_group_names("special", EdgeClass.INTERIOR)
    )


def _tokens(text: str) -> tuple[str, ...]:
    return tuple(token for token in _NON_TOKEN.split(text.lower()) if token)


# Every edge class under its name and its compass alias, longest first
_EDGE_TOKEN_TABLE: tuple[tuple[tuple[str, ...], EdgeClass], ...] = tuple(sorted(
    [(_tokens(edge.value), edge) for edge in EdgeClass]
    + [(_tokens(alias), edge) for edge, alias in EDGE_ALIASES.items()],
    key=lambda entry: len(entry[0]),
    reverse=True,
))


@lru_cache(maxsize=1024)
def edge_classes_in_tag(variant: str) -> frozenset[EdgeClass]:
    """Edge classes named by a variant tag.

    The tag is split into ``[a-z0-9]`` tokens and scanned left to right;
    at each position the longest class name or alias from the closed
    table wins and consumes its tokens. Anything else is skipped.
    """
    tokens = _tokens(variant)
    found: set[EdgeClass] = set()
    i = 0
    while i < len(tokens):
        for pattern, edge in _EDGE_TOKEN_TABLE:
            if tokens[i:i + len(pattern)] == pattern:
                found.add(edge)
                i += len(pattern)
                break
        else:
            i += 1
    return frozenset(found)


def variant_matches_edge(variant: str | None, edge: EdgeClass | str | None) -> bool:
    """Whether a variant tag names ``edge``.

    ``edge_n top``, ``N`` and ``NE-2`` name their classes; ``edge_ns``
    does not name ``edge_n`` and ``desert`` names nothing.
    """
    if not variant or not edge:
        return False
    try:
        parsed = EdgeClass(str(edge).lower())
    except ValueError:
        return False
    return parsed in edge_classes_in_tag(str(variant))


def parse_phase_tag(variant: str | None) -> int | None:
    """Animation phase from a ``phase:N`` style tag, or None."""
    if not variant:
        return None
    match = _PHASE_TAG.search(str(variant))
    if not match:
        return None
    return int(match.group(1))
