"""
Grid package: layered terrain snapshots and their update stream.
"""

from .models import Layer, LayerType, LAYER_STACK, GridUpdate, TerrainGrid
from .loaders import load_grid, load_updates, parse_updates

__all__ = [
    'Layer',
    'LayerType',
    'LAYER_STACK',
    'GridUpdate',
    'TerrainGrid',
    'load_grid',
    'load_updates',
    'parse_updates',
]
