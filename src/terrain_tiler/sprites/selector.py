"""Variant selection from sprite groups.

Handles deterministic per-cell selection for static tiles and phase-based
selection for animated tiles.
"""

from typing import Mapping, Sequence

from ..autotile.edges import EdgeClass
from .matching import parse_phase_tag, unique_names, variant_matches_edge
from .models import SpriteGroup, SpriteVariant


class SpriteSelector:
    """Picks one variant out of candidate groups for a cell.

    Static picks use the cell index as seed so re-renders are stable;
    animated picks follow the phase index handed in by the renderer.
    """

    def pick_phase_entry(
        self, entries: Sequence[SpriteVariant], phase_index: int
    ) -> SpriteVariant | None:
        """Select the variant for an animation phase.

        Args:
            entries: Candidate pool
            phase_index: Current animation phase (non-negative)

        Returns:
            The single entry, the first entry tagged with the selected
            phase, or ``entries[phase_index % len]`` when nothing is tagged
        """
        if not entries:
            return None
        if len(entries) == 1:
            return entries[0]

        tagged = [(entry, parse_phase_tag(entry.variant)) for entry in entries]
        tagged = [(entry, phase) for entry, phase in tagged if phase is not None]
        if tagged:
            phases = sorted({phase for _, phase in tagged})
            phase = phases[phase_index % len(phases)]
            for entry, entry_phase in tagged:
                if entry_phase == phase:
                    return entry
            return tagged[0][0]

        return entries[phase_index % len(entries)]

    def pick_from_pool(
        self,
        entries: Sequence[SpriteVariant],
        seed: int,
        use_phase: bool = False,
        phase_index: int = 0,
    ) -> SpriteVariant | None:
        if not entries:
            return None
        if use_phase:
            entry = self.pick_phase_entry(entries, phase_index)
            if entry is not None:
                return entry
        return entries[seed % len(entries)]

    def entries_for_edge(
        self, entries: Sequence[SpriteVariant], edge: EdgeClass | str | None
    ) -> list[SpriteVariant]:
        if not edge:
            return []
        return [entry for entry in entries if variant_matches_edge(entry.variant, edge)]

    def pick_from_groups(
        self,
        groups: Mapping[str, SpriteGroup],
        group_names: Sequence[str],
        edge: EdgeClass | str | None,
        seed: int,
        use_phase: bool = False,
        phase_index: int = 0,
    ) -> tuple[str, SpriteVariant] | None:
        """Walk ``group_names`` in order and pick from the first non-empty group.

        Within a group, variants tagged for ``edge`` are preferred; a group
        with no tagged variants falls back to its full pool.

        Returns:
            (group name, variant) or None when no named group has entries
        """
        if not groups or not group_names:
            return None
        for name in unique_names(group_names):
            group = groups.get(name)
            if group is None or not group.variants:
                continue
            edge_entries = self.entries_for_edge(group.variants, edge)
            pool = edge_entries or list(group.variants)
            entry = self.pick_from_pool(pool, seed, use_phase, phase_index)
            if entry is not None:
                return name, entry
        return None
