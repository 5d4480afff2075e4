"""
High-level service for terrain tiling.

Provides the public API that turns a grid snapshot and an asset index into
per-cell sprite decisions.
Responsibilities:
    * Detect the terrain base source on every full reload
    * Classify cells (kind, masks, edge class, shore semantics)
    * Resolve base and overlay sprites through the fallback ladder
    * Render full passes, one task per row
    * Apply incremental updates and recompute the affected neighborhood
    * Coast audit reports and animation phase-loop detection
"""

import logging
import random
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Optional

from .autotile.directions import ALL_DIRECTIONS
from .autotile.edges import EdgeClass, EdgeMode, edge_class, edge_class_for_kind
from .autotile.masks import mask_string, mask_string_from_digits
from .autotile.canonical import canonicalize
from .autotile.shore import ShoreSemanticClass, classify_shore_semantics
from .config import EngineConfig
from .grid.models import GridUpdate, Layer, TerrainGrid
from .sprites.audit import CoverageAudit
from .sprites.index import AssetBackend, AssetIndex
from .sprites.matching import (
    feature_group_names, flag_base_group, group_names_for_kind, mineral_group_names,
    overlay_group_names, special_group_names,
)
from .sprites.models import AuditRecord, ResolvedSprite
from .sprites.resolver import SpriteResolver
from .terrain.base_source import BaseSource, BaseSourceReport, detect_base_source
from .terrain.classifier import TerrainClassifier
from .terrain.kinds import TerrainKind


@dataclass(frozen=True)
class OverlaySprite:
    """Overlay drawn above the base sprite (feature, flag, mineral or special)."""
    source: str
    group: str
    sprite: ResolvedSprite


@dataclass(frozen=True)
class CellDecision:
    """Everything the renderer needs for one cell.

    ``sprite`` is None when the kind is unknown or the fallback ladder is
    exhausted; :attr:`placeholder` says which placeholder to draw then.
    """
    x: int
    y: int
    kind: TerrainKind
    base_kind: TerrainKind
    mask: int
    edge_class: EdgeClass
    sprite: ResolvedSprite | None = None
    shore_digits: tuple[str, ...] | None = None
    shore_class: ShoreSemanticClass | None = None
    overlays: tuple[OverlaySprite, ...] = field(default_factory=tuple)
    audit: AuditRecord | None = None

    @property
    def mask_string(self) -> str:
        if self.shore_digits is not None:
            return mask_string_from_digits(self.shore_digits)
        return mask_string(self.mask)

    @property
    def missing(self) -> bool:
        return self.sprite is None

    @property
    def placeholder(self) -> str | None:
        if self.kind is TerrainKind.UNKNOWN:
            return "unknown"
        if self.sprite is None:
            return "missing"
        return None

    def signature(self) -> tuple[Any, ...]:
        """Comparable summary of what would be drawn."""
        base = (self.sprite.key, self.sprite.frame) if self.sprite else None
        return (base,) + tuple((o.sprite.key, o.sprite.frame) for o in self.overlays)


@dataclass(frozen=True)
class RenderPass:
    """Decisions for every cell of a snapshot, row-major."""
    width: int
    height: int
    phase_index: int
    rows: tuple[tuple[CellDecision, ...], ...]

    def cell(self, x: int, y: int) -> CellDecision:
        return self.rows[y][x]

    def __iter__(self) -> Iterator[CellDecision]:
        for row in self.rows:
            yield from row

    @property
    def missing_count(self) -> int:
        return sum(1 for decision in self if decision.missing)

    def fallback_counts(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for decision in self:
            step = decision.sprite.fallback_step if decision.sprite else "missing"
            counts[step] = counts.get(step, 0) + 1
        return counts


@dataclass(frozen=True)
class PhaseLoopResult:
    """Outcome of :meth:`TilingService.detect_phase_loop`."""
    status: str
    loop_len: int | None = None
    diff: int | None = None
    max_phases: int = 32
    threshold: int = 0
    reason: str | None = None


class TilingService:
    """Facade for tiling decisions over one grid and one asset index.

    Instantiate with a snapshot and (optionally) an asset index. The base
    source is detected immediately and stays fixed until the next full
    reload; incremental updates keep it.
    """

    def __init__(
        self,
        grid: TerrainGrid,
        assets: Optional[AssetIndex] = None,
        config: Optional[EngineConfig] = None,
        rng: Optional[random.Random] = None,
    ):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.config = config or EngineConfig()
        self._rng = rng
        self.audit = CoverageAudit(
            enabled=self.config.coast_audit,
            missing_log_every=self.config.missing_log_every,
            rotation_log_every=self.config.rotation_log_every,
        )
        self.grid = grid
        self.assets = assets or AssetIndex()
        self.base_source_report = BaseSourceReport()
        self.resolver: SpriteResolver
        self.classifier: TerrainClassifier
        self.reload(grid, self.assets)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def reload(self, grid: Optional[TerrainGrid] = None, assets: Optional[AssetIndex] = None) -> None:
        """Full reload: new snapshot and/or assets, base source re-detected, audit reset."""
        if grid is not None:
            self.grid = grid
        if assets is not None:
            self.assets = assets
            self.resolver = SpriteResolver(
                assets, self.audit, coast_diagonal_reduction=self.config.coast_diagonal_reduction
            )
        self.audit.reset()

        tables = self.assets.kind_tables()
        forced = BaseSource.parse(self.config.base_source)
        if forced is not None:
            self.base_source_report = BaseSourceReport(source=forced)
            self.logger.debug(f"Using configured base source: {forced.value}")
        else:
            rng = self._rng or random.Random(self.config.base_source_seed)
            self.base_source_report = detect_base_source(
                self.grid.values(Layer.TERRAIN),
                tables,
                rng=rng,
                min_samples=self.config.base_source_min_samples,
                max_samples=self.config.base_source_max_samples,
            )
        self.classifier = TerrainClassifier(self.grid, tables, self.base_source_report.source)
        self.logger.info(
            f"Loaded grid {self.grid.width}x{self.grid.height}, "
            f"base source '{self.base_source.value}', backend '{self.assets.backend.value}'"
        )

    @property
    def base_source(self) -> BaseSource:
        return self.base_source_report.source

    # -------------------------------------------------------------------------
    # Per-cell decisions
    # -------------------------------------------------------------------------

    def _phase(self, phase_index: Optional[int], use_phase: Optional[bool]) -> tuple[int, bool]:
        phase = self.config.phase_index if phase_index is None else max(0, int(phase_index))
        animated = self.config.use_phase if use_phase is None else use_phase
        return phase, animated

    def resolve_cell(
        self,
        x: int,
        y: int,
        phase_index: Optional[int] = None,
        use_phase: Optional[bool] = None,
    ) -> CellDecision:
        """Classify one cell and resolve its base and overlay sprites.

        Args:
            x: Column (0 <= x < width)
            y: Row (0 <= y < height)
            phase_index: Animation phase (defaults to config)
            use_phase: Select variants by phase instead of by cell seed

        Returns:
            CellDecision; out-of-range cells classify as unknown
        """
        phase, animated = self._phase(phase_index, use_phase)
        classifier = self.classifier
        if not self.grid.in_bounds(x, y):
            return CellDecision(
                x=x, y=y, kind=TerrainKind.UNKNOWN, base_kind=TerrainKind.UNKNOWN,
                mask=0, edge_class=EdgeClass.INTERIOR,
            )

        seed = self.grid.index(x, y)
        kind = classifier.kind_at(x, y)
        base_kind = classifier.base_kind_at(x, y)
        mask = classifier.sprite_mask(kind, x, y)
        edge = edge_class_for_kind(kind, mask)

        digits: tuple[str, ...] | None = None
        shore_class: ShoreSemanticClass | None = None
        if kind is TerrainKind.SHORE:
            digits = tuple(classifier.shore_digits(x, y))
            shore_class = classify_shore_semantics(digits).cls

        sprite: ResolvedSprite | None = None
        audit: AuditRecord | None = None
        if kind is not TerrainKind.UNKNOWN:
            if self.assets.backend is AssetBackend.IMAGE:
                if digits is not None:
                    if self.audit.enabled and self.audit.take_sample():
                        self._log_mask_sample(x, y, kind, mask, mask_string_from_digits(digits))
                    resolution = self.resolver.resolve_shore(self.config.plane, digits, phase)
                    sprite, audit = resolution.sprite, resolution.audit
                else:
                    sprite = self.resolver.resolve_image(self.config.plane, kind.value, mask, phase)
            else:
                sprite = self.resolver.resolve_group(
                    group_names_for_kind(kind.value, edge), edge, seed, animated, phase
                )

        overlays = self._resolve_overlays(x, y, kind, seed, animated, phase) if self.config.overlays else ()

        return CellDecision(
            x=x,
            y=y,
            kind=kind,
            base_kind=base_kind,
            mask=mask,
            edge_class=edge,
            sprite=sprite,
            shore_digits=digits,
            shore_class=shore_class,
            overlays=overlays,
            audit=audit,
        )

    def _resolve_overlays(
        self, x: int, y: int, kind: TerrainKind, seed: int, animated: bool, phase: int
    ) -> tuple[OverlaySprite, ...]:
        """Features, then flags (bit order), then minerals, then embedded special."""
        if not self.assets.overlay_groups:
            return ()
        overlays: list[OverlaySprite] = []

        def add(source: str, group: str, names: tuple[str, ...], edge: EdgeClass) -> None:
            sprite = self.resolver.resolve_group(names, edge, seed, animated, phase, overlay=True)
            if sprite is not None:
                overlays.append(OverlaySprite(source=source, group=group, sprite=sprite))

        features = feature_group_names(kind.value)
        if features:
            add("feature", features[0], features, EdgeClass.INTERIOR)

        flags = self.grid.value(Layer.TERRAIN_FLAGS, x, y)
        for bit in range(8):
            if not flags & (1 << bit):
                continue
            base_group = flag_base_group(bit, self.assets.flag_name(bit))
            flag_edge = edge_class(self.classifier.adj_mask_for_flag(bit, x, y), EdgeMode.SAME)
            add("flag", base_group, overlay_group_names(base_group, flag_edge), flag_edge)

        mineral = self.grid.value(Layer.MINERALS, x, y)
        if mineral > 0:
            add("mineral", f"resource_{mineral}", mineral_group_names(mineral), EdgeClass.INTERIOR)

        special = self.classifier.special_at(x, y)
        if special > 0:
            add("special", f"special_{special}", special_group_names(special), EdgeClass.INTERIOR)

        return tuple(overlays)

    def _log_mask_sample(self, x: int, y: int, kind: TerrainKind, mask: int, digits: str) -> None:
        neighbors = []
        for direction in ALL_DIRECTIONS:
            coords = self.grid.neighbor(x, y, *direction.offset)
            if coords is None:
                continue
            neighbor_kind = self.classifier.base_kind_at(*coords)
            neighbors.append(f"{direction.name}={neighbor_kind.value}")
        self.logger.debug(
            f"Mask sample ({x},{y}) kind={kind.value} mask={mask} digits={digits} "
            f"neighbors: {', '.join(neighbors)}"
        )

    # -------------------------------------------------------------------------
    # Full passes
    # -------------------------------------------------------------------------

    def render_row(
        self, y: int, phase_index: Optional[int] = None, use_phase: Optional[bool] = None
    ) -> tuple[CellDecision, ...]:
        return tuple(self.resolve_cell(x, y, phase_index, use_phase) for x in range(self.grid.width))

    def render_pass(
        self,
        phase_index: Optional[int] = None,
        use_phase: Optional[bool] = None,
        parallel: bool = True,
    ) -> RenderPass:
        """Resolve every cell of the current snapshot.

        Rows are independent and, when ``parallel`` is set, computed on a
        thread pool; the result is always in row order.
        """
        phase, animated = self._phase(phase_index, use_phase)
        height = self.grid.height
        rows: list[tuple[CellDecision, ...]] = [()] * height

        if parallel and height > 1 and self.config.max_workers > 1:
            with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
                future_to_row = {
                    executor.submit(self.render_row, y, phase, animated): y for y in range(height)
                }
                for future in as_completed(future_to_row):
                    y = future_to_row[future]
                    try:
                        rows[y] = future.result()
                    except Exception as e:
                        self.logger.error(f"Failed to render row {y}: {e}")
                        raise
        else:
            for y in range(height):
                rows[y] = self.render_row(y, phase, animated)

        result = RenderPass(width=self.grid.width, height=height, phase_index=phase, rows=tuple(rows))
        self.logger.debug(
            f"Render pass phase={phase}: {self.grid.size} cells, {result.missing_count} missing"
        )
        return result

    # -------------------------------------------------------------------------
    # Incremental updates
    # -------------------------------------------------------------------------

    def invalidated_cells(self, update: GridUpdate) -> list[tuple[int, int]]:
        """The 3x3 block around the updated cell (x wraps, y clips)."""
        if not self.grid.in_bounds(update.x, update.y):
            return []
        return self.grid.neighborhood(update.x, update.y)

    def apply_update(
        self,
        update: GridUpdate,
        phase_index: Optional[int] = None,
        use_phase: Optional[bool] = None,
    ) -> dict[tuple[int, int], CellDecision]:
        """Apply one delta and recompute the decisions it can affect.

        Out-of-range updates are ignored. The base source is kept.

        Returns:
            Recomputed decisions keyed by (x, y); empty for ignored updates
        """
        new_grid = self.grid.with_update(update)
        if new_grid is None:
            self.logger.debug(f"Ignoring out-of-range update at ({update.x},{update.y})")
            return {}
        self.grid = new_grid
        self.classifier = TerrainClassifier(new_grid, self.classifier.tables, self.base_source)
        return {
            coords: self.resolve_cell(coords[0], coords[1], phase_index, use_phase)
            for coords in self.invalidated_cells(update)
        }

    def apply_updates(
        self,
        updates: Iterable[GridUpdate],
        phase_index: Optional[int] = None,
        use_phase: Optional[bool] = None,
    ) -> dict[tuple[int, int], CellDecision]:
        """Apply a batch of deltas, then recompute the union of their neighborhoods once."""
        touched: list[tuple[int, int]] = []
        grid = self.grid
        applied = 0
        for update in updates:
            new_grid = grid.with_update(update)
            if new_grid is None:
                continue
            grid = new_grid
            applied += 1
            for coords in self.invalidated_cells(update):
                if coords not in touched:
                    touched.append(coords)
        if not applied:
            return {}
        self.grid = grid
        self.classifier = TerrainClassifier(grid, self.classifier.tables, self.base_source)
        self.logger.debug(f"Applied {applied} updates, recomputing {len(touched)} cells")
        return {
            coords: self.resolve_cell(coords[0], coords[1], phase_index, use_phase)
            for coords in touched
        }

    # -------------------------------------------------------------------------
    # Diagnostics
    # -------------------------------------------------------------------------

    def coast_audit(self, x: int, y: int, phase_index: Optional[int] = None) -> dict[str, Any] | None:
        """Detailed shore report for one cell, logged at INFO.

        Does not count toward coverage statistics. Returns None for
        out-of-range cells.
        """
        if not self.grid.in_bounds(x, y):
            return None
        phase, _ = self._phase(phase_index, None)
        kind = self.classifier.kind_at(x, y)
        base_kind = self.classifier.base_kind_at(x, y)
        if kind is not TerrainKind.SHORE:
            report: dict[str, Any] = {
                "x": x, "y": y, "kind": kind.value, "base_kind": base_kind.value, "note": "not shore",
            }
            self.logger.info(f"Coast audit: {report}")
            return report

        neighbors = []
        for direction in ALL_DIRECTIONS:
            coords = self.grid.neighbor(x, y, *direction.offset)
            if coords is None:
                continue
            neighbor_base = self.classifier.base_kind_at(*coords)
            neighbors.append({
                "dir": direction.name,
                "x": coords[0],
                "y": coords[1],
                "kind": self.classifier.kind_at(*coords).value,
                "base_kind": neighbor_base.value,
                "water": neighbor_base.is_water,
            })

        digits = self.classifier.shore_digits(x, y)
        raw = mask_string_from_digits(digits)
        canonical = canonicalize(raw)
        semantic = classify_shore_semantics(digits)
        # Audit-only lookup: a detached audit keeps the shared counters untouched
        resolver = SpriteResolver(
            self.assets, CoverageAudit(), coast_diagonal_reduction=self.config.coast_diagonal_reduction
        )
        resolution = resolver.resolve_shore(self.config.plane, digits, phase)
        sprite = resolution.sprite

        report = {
            "tile": {"x": x, "y": y, "kind": kind.value, "base_kind": base_kind.value},
            "neighbors": neighbors,
            "raw_adjacency_digits": digits,
            "raw_mask": raw,
            "semantic_class": semantic.cls.value,
            "canonical_mask": canonical.mask,
            "canonical_rotation": canonical.rotation,
            "used_mask": sprite.mask_used if sprite else None,
            "used_rotation": sprite.rotation_applied if sprite else None,
            "fallback_step": resolution.audit.fallback_step,
            "fallback_applied": resolution.audit.fallback_applied,
            "path": sprite.key if sprite else None,
        }
        self.logger.info(f"Coast audit: {report}")
        return report

    def detect_phase_loop(
        self, max_phases: int = 32, threshold: int = 0, fallback: int = 8
    ) -> PhaseLoopResult:
        """Find the animation loop length by comparing passes against phase 0.

        The first phase whose pass differs from phase 0 in at most
        ``threshold`` cells is the loop length. Without a match the loop
        length is assumed to be ``fallback``.
        """
        max_phases = max_phases if max_phases > 0 else 32
        threshold = max(0, threshold)
        fallback = fallback if fallback > 0 else 8
        if not self.assets.has_assets:
            return PhaseLoopResult(
                status="error", max_phases=max_phases, threshold=threshold, reason="missing_assets"
            )

        baseline = [d.signature() for d in self.render_pass(phase_index=0, use_phase=True)]
        for phase in range(1, max_phases + 1):
            current = self.render_pass(phase_index=phase, use_phase=True)
            diff = sum(1 for a, b in zip(baseline, current) if a != b.signature())
            if diff <= threshold:
                self.logger.info(f"Phase loop detected: length {phase} (diff {diff})")
                return PhaseLoopResult(
                    status="detected", loop_len=phase, diff=diff,
                    max_phases=max_phases, threshold=threshold,
                )

        self.logger.info(f"No phase loop within {max_phases} phases, assuming {fallback}")
        return PhaseLoopResult(
            status="assumed", loop_len=fallback, max_phases=max_phases, threshold=threshold
        )
