"""
Sprite resolution: group pools and the image-keyed fallback ladder.

Group-backed kinds pick a variant from the first named group that has
entries. Image-backed kinds look up ``plane|kind|mask|frame`` keys and,
when the exact mask has no asset, walk a fixed ladder of weaker masks:

* non-shore: exact, canonical, canonical with diagonals cleared, all-zero;
* shore: exact, canonical, semantic-preserving diagonal relaxations (each
  as is, then canonical), all-zero.

Every result records which step produced it. Nothing outside the ladder
is ever substituted; an exhausted ladder yields None.
"""

import logging
from typing import Sequence

from ..autotile.canonical import canonicalize
from ..autotile.edges import EdgeClass
from ..autotile.masks import (
    EMPTY_MASK_STRING, clear_diagonal_mask_string, mask_string, mask_string_from_digits,
    normalize_mask_string,
)
from ..autotile.shore import classify_shore_semantics, normalize_shore_digits, semantic_relaxations
from .audit import CoverageAudit
from .index import AssetIndex
from .models import AuditRecord, FallbackStep, ResolvedSprite, ShoreResolution
from .selector import SpriteSelector

SHORE_KIND = "shore"
BASE_FRAME = "0"


def pick_frame(frames: Sequence[str], phase_index: int) -> str:
    """Frame for ``phase_index`` among the non-base frames, or the base frame."""
    usable = [frame for frame in frames if frame != BASE_FRAME]
    if not usable:
        return BASE_FRAME
    return usable[phase_index % len(usable)]


def pick_fallback_frame(frames: Sequence[str]) -> str:
    if not frames:
        return BASE_FRAME
    usable = [frame for frame in frames if frame != BASE_FRAME]
    return usable[0] if usable else frames[0]


class SpriteResolver:
    """Resolves sprites against one :class:`AssetIndex`."""

    def __init__(
        self,
        index: AssetIndex,
        audit: CoverageAudit | None = None,
        selector: SpriteSelector | None = None,
        coast_diagonal_reduction: bool = True,
    ):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.index = index
        self.audit = audit or CoverageAudit()
        self.selector = selector or SpriteSelector()
        self.coast_diagonal_reduction = coast_diagonal_reduction

    # -------------------------------------------------------------------------
    # Group pools
    # -------------------------------------------------------------------------

    def resolve_group(
        self,
        group_names: Sequence[str],
        edge: EdgeClass | str | None,
        seed: int,
        use_phase: bool = False,
        phase_index: int = 0,
        overlay: bool = False,
    ) -> ResolvedSprite | None:
        """Pick a variant from terrain (or overlay) groups by name priority."""
        groups = self.index.overlay_groups if overlay else self.index.terrain_groups
        picked = self.selector.pick_from_groups(
            groups, group_names, edge, seed, use_phase, phase_index
        )
        if picked is None:
            return None
        _, entry = picked
        return ResolvedSprite(
            key=entry.key,
            frame=None,
            mask_used=None,
            rotation_applied=0,
            fallback_step=FallbackStep.EXACT.value,
            fallback_applied=False,
            variant=entry.variant,
        )

    # -------------------------------------------------------------------------
    # Image-keyed ladder
    # -------------------------------------------------------------------------

    def resolve_path(
        self, plane: str, kind: str, mask: str, phase_index: int
    ) -> tuple[str, str] | None:
        """Look up an image for one mask, substituting frames as needed.

        Tries the phase frame, then the base frame ``"0"``, then the first
        usable frame.

        Returns:
            (path, frame) or None
        """
        frames = self.index.frames_for(plane, kind, mask)
        frame = pick_frame(frames, phase_index)
        path = self.index.image_path(plane, kind, mask, frame)
        if path:
            return path, frame

        path = self.index.image_path(plane, kind, mask, BASE_FRAME)
        if path:
            return path, BASE_FRAME

        if frames:
            any_frame = pick_fallback_frame(frames)
            path = self.index.image_path(plane, kind, mask, any_frame)
            if path:
                return path, any_frame
        return None

    def _attempt(
        self, plane: str, kind: str, mask: str, rotation: int, step: str, phase_index: int
    ) -> ResolvedSprite | None:
        found = self.resolve_path(plane, kind, mask, phase_index)
        if found is None:
            return None
        path, frame = found
        return ResolvedSprite(
            key=path,
            frame=frame,
            mask_used=mask,
            rotation_applied=rotation,
            fallback_step=step,
            fallback_applied=step != FallbackStep.EXACT.value,
        )

    def _attempt_zero(self, plane: str, kind: str) -> ResolvedSprite | None:
        path = self.index.image_path(plane, kind, EMPTY_MASK_STRING, BASE_FRAME)
        if not path:
            return None
        return ResolvedSprite(
            key=path,
            frame=BASE_FRAME,
            mask_used=EMPTY_MASK_STRING,
            rotation_applied=0,
            fallback_step=FallbackStep.FALLBACK_ZERO.value,
            fallback_applied=True,
        )

    def resolve_image(
        self, plane: str, kind: str, mask: int | str | Sequence[str], phase_index: int = 0
    ) -> ResolvedSprite | None:
        """Resolve a kind through the image ladder.

        Args:
            plane: World plane name
            kind: Terrain kind
            mask: Gated adjacency mask (int) or mask string; for shore, the
                land digit vector (string or sequence)
            phase_index: Animation phase

        Returns:
            ResolvedSprite, or None when every step fails or a shore
            lookup is handed an integer mask
        """
        if str(kind) == SHORE_KIND:
            if isinstance(mask, int):
                # Shore int masks mark ocean neighbors; the ladder needs land digits
                self.logger.debug(f"Shore lookup needs a digit vector, got int mask {mask}")
                return None
            return self.resolve_shore(plane, mask, phase_index).sprite

        kind = str(kind)
        raw = normalize_mask_string(mask_string(mask) if isinstance(mask, int) else mask)
        resolved = self._attempt(plane, kind, raw, 0, FallbackStep.EXACT.value, phase_index)

        canonical = canonicalize(raw)
        if resolved is None and canonical.mask != raw:
            resolved = self._attempt(
                plane, kind, canonical.mask, canonical.rotation,
                FallbackStep.CANONICAL.value, phase_index,
            )

        if resolved is None:
            cleared = clear_diagonal_mask_string(canonical.mask)
            if cleared != canonical.mask:
                resolved = self._attempt(
                    plane, kind, cleared, canonical.rotation,
                    FallbackStep.CLEAR_DIAGONALS.value, phase_index,
                )

        if resolved is None:
            resolved = self._attempt_zero(plane, kind)

        if resolved is not None:
            self.audit.record_rotation(kind, resolved.rotation_applied)
        return resolved

    def resolve_shore(self, plane: str, digits: object, phase_index: int = 0) -> ShoreResolution:
        """Resolve a shore digit vector through the shore ladder.

        Misses and non-exact results are counted in the coverage audit.
        The returned audit record uses step ``missing`` when nothing
        resolved.
        """
        symbols = normalize_shore_digits(digits)
        raw = normalize_mask_string(mask_string_from_digits(symbols))
        semantic_class = classify_shore_semantics(symbols).cls
        canonical = canonicalize(raw)

        def attempt_with_canonical(mask: str, step: str) -> ResolvedSprite | None:
            found = self._attempt(plane, SHORE_KIND, mask, 0, step, phase_index)
            if found is not None:
                return found
            variant = canonicalize(mask)
            if variant.mask != mask:
                return self._attempt(plane, SHORE_KIND, variant.mask, variant.rotation, step, phase_index)
            return None

        resolved = self._attempt(plane, SHORE_KIND, raw, 0, FallbackStep.EXACT.value, phase_index)
        if resolved is None and canonical.mask != raw:
            resolved = self._attempt(
                plane, SHORE_KIND, canonical.mask, canonical.rotation,
                FallbackStep.CANONICAL.value, phase_index,
            )

        if resolved is None and self.coast_diagonal_reduction:
            for variant in semantic_relaxations(raw, semantic_class):
                resolved = attempt_with_canonical(variant.mask, variant.step)
                if resolved is not None:
                    break

        if resolved is None:
            resolved = self._attempt_zero(plane, SHORE_KIND)
            if resolved is not None and self.audit.enabled:
                fallback_class = classify_shore_semantics(EMPTY_MASK_STRING).cls
                if fallback_class is not semantic_class:
                    self.logger.info(
                        f"Coast fallback crossed semantic class: mask={raw} "
                        f"class={semantic_class.value} fallback_class={fallback_class.value}"
                    )

        if resolved is None or resolved.fallback_applied:
            self.audit.record_missing(plane, SHORE_KIND, raw)
        if resolved is not None:
            self.audit.record_rotation(SHORE_KIND, resolved.rotation_applied)

        record = AuditRecord(
            raw_mask=raw,
            canonical_mask=canonical.mask,
            canonical_rotation=canonical.rotation,
            used_mask=resolved.mask_used if resolved else None,
            fallback_step=resolved.fallback_step if resolved else FallbackStep.MISSING.value,
            fallback_applied=resolved.fallback_applied if resolved else True,
            semantic_class=semantic_class.value,
            key=resolved.key if resolved else None,
        )
        if record.fallback_applied:
            self.audit.record(record)
        return ShoreResolution(sprite=resolved, audit=record)
