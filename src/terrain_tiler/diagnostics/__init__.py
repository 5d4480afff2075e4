"""
Diagnostic views over render passes.
"""

from .overlay import KIND_COLORS, SHORE_SEMANTIC_COLORS, cell_color, render_debug_map, save_debug_map

__all__ = [
    'KIND_COLORS',
    'SHORE_SEMANTIC_COLORS',
    'cell_color',
    'render_debug_map',
    'save_debug_map',
]
