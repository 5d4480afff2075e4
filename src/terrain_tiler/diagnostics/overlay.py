"""
Debug classification map.

Draws one square per cell, tinted by terrain kind and (optionally) by the
shore semantic class, with missing sprites shown in magenta. The image is
a diagnostic aid only; real sprite compositing is left to the renderer.
"""

import logging
from pathlib import Path
from typing import Optional

from PIL import Image, ImageColor, ImageDraw

from ..autotile.shore import ShoreSemanticClass
from ..service import CellDecision, RenderPass
from ..terrain.kinds import TerrainKind

logger = logging.getLogger(__name__)

BACKGROUND = "#020617"
LABEL_COLOR = "#0f172a"
MISSING_COLOR = "#ff00ff"
TINT_ALPHA = 0.35
LABEL_MIN_SIZE = 18
MISSING_LABEL_MIN_SIZE = 12

KIND_COLORS: dict[TerrainKind, str] = {
    TerrainKind.OCEAN: "#0ea5e9",
    TerrainKind.SHORE: "#38bdf8",
    TerrainKind.GRASS: "#84cc16",
    TerrainKind.FOREST: "#22c55e",
    TerrainKind.HILL: "#f97316",
    TerrainKind.MOUNTAIN: "#94a3b8",
    TerrainKind.DESERT: "#f59e0b",
    TerrainKind.TUNDRA: "#e2e8f0",
    TerrainKind.SWAMP: "#10b981",
    TerrainKind.UNKNOWN: "#ff00ff",
}

SHORE_SEMANTIC_COLORS: dict[ShoreSemanticClass, str] = {
    ShoreSemanticClass.STRAIGHT_EDGE: "#38bdf8",
    ShoreSemanticClass.CONVEX_CORNER: "#f59e0b",
    ShoreSemanticClass.CONCAVE_INLET: "#f472b6",
    ShoreSemanticClass.PENINSULA: "#a3e635",
    ShoreSemanticClass.ISLAND_TIP: "#22d3ee",
    ShoreSemanticClass.CHANNEL: "#cbd5f5",
    ShoreSemanticClass.UNKNOWN: "#facc15",
}


def _rgb(color: str) -> tuple[int, int, int]:
    r, g, b = ImageColor.getrgb(color)[:3]
    return r, g, b


def blend(base: tuple[int, int, int], tint: str, alpha: float = TINT_ALPHA) -> tuple[int, int, int]:
    """Color of ``tint`` drawn over the ``base`` RGB color with opacity ``alpha``."""
    tint_rgb = _rgb(tint)
    r, g, b = (round(b_c + (t_c - b_c) * alpha) for b_c, t_c in zip(base, tint_rgb))
    return r, g, b


def cell_color(
    decision: CellDecision, show_kinds: bool = True, show_shore_semantics: bool = False
) -> tuple[int, int, int]:
    """Fill color for one cell of the debug map."""
    if decision.missing and decision.kind is not TerrainKind.UNKNOWN:
        return _rgb(MISSING_COLOR)
    color = _rgb(BACKGROUND)
    if show_kinds:
        color = blend(color, KIND_COLORS.get(decision.kind, MISSING_COLOR))
    if show_shore_semantics and decision.shore_class is not None:
        tint = SHORE_SEMANTIC_COLORS.get(decision.shore_class, SHORE_SEMANTIC_COLORS[ShoreSemanticClass.UNKNOWN])
        color = blend(color, tint)
    return color


def _label_for(decision: CellDecision, show_kinds: bool, show_shore_semantics: bool) -> Optional[str]:
    if decision.missing and decision.kind is not TerrainKind.UNKNOWN:
        return decision.placeholder or "?"
    if show_shore_semantics and decision.shore_class is not None:
        return decision.shore_class.label
    if show_kinds:
        return decision.kind.value
    return None


def render_debug_map(
    render: RenderPass,
    tile_size: int = 16,
    show_kinds: bool = True,
    show_shore_semantics: bool = False,
    show_labels: bool = True,
) -> Image.Image:
    """Draw a classification map for a finished render pass.

    Args:
        render: Render pass to visualize
        tile_size: Pixel size of one cell
        show_kinds: Tint cells by terrain kind
        show_shore_semantics: Tint shore cells by semantic class
        show_labels: Write labels into cells large enough to hold them

    Returns:
        RGB image of ``width * tile_size`` by ``height * tile_size`` pixels
    """
    size = max(1, int(tile_size))
    image = Image.new("RGB", (max(1, render.width * size), max(1, render.height * size)), BACKGROUND)
    draw = ImageDraw.Draw(image)

    for decision in render:
        x0, y0 = decision.x * size, decision.y * size
        draw.rectangle(
            (x0, y0, x0 + size - 1, y0 + size - 1),
            fill=cell_color(decision, show_kinds, show_shore_semantics),
        )
        if not show_labels:
            continue
        label = _label_for(decision, show_kinds, show_shore_semantics)
        min_size = MISSING_LABEL_MIN_SIZE if decision.missing else LABEL_MIN_SIZE
        if label and size >= min_size:
            draw.text((x0 + 2, y0 + 2), label, fill=LABEL_COLOR)

    logger.debug(f"Debug map {image.width}x{image.height} for {render.width}x{render.height} cells")
    return image


def save_debug_map(render: RenderPass, path: str | Path, **options) -> Path:
    """Render and save a debug map as PNG; returns the written path."""
    output = Path(path)
    output.parent.mkdir(parents=True, exist_ok=True)
    image = render_debug_map(render, **options)
    image.save(output, format="PNG")
    logger.info(f"Saved debug map to {output}")
    return output
