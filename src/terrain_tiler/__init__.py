"""
terrain_tiler: terrain autotiling and coastal adjacency classification.

Turns layered per-cell terrain values into sprite decisions: terrain kinds,
8-neighbor masks, edge and shore classes, rotation-canonical masks and a
documented fallback ladder for missing assets.
"""

__version__ = "0.1.0"
__author__ = "terrain_tiler Contributors"

# Core service imports
from .service import TilingService, CellDecision, OverlaySprite, RenderPass, PhaseLoopResult
from .config import EngineConfig, ConfigError
from .utils.logging_config import setup_logging

# Main data models
from .grid import TerrainGrid, GridUpdate, Layer, load_grid, load_updates
from .sprites import AssetIndex, ResolvedSprite, AuditRecord, load_asset_index
from .terrain import TerrainKind, BaseSource

__all__ = [
    # Services
    'TilingService',
    'CellDecision',
    'OverlaySprite',
    'RenderPass',
    'PhaseLoopResult',

    # Configuration and logging
    'EngineConfig',
    'ConfigError',
    'setup_logging',

    # Data models
    'TerrainGrid',
    'GridUpdate',
    'Layer',
    'load_grid',
    'load_updates',
    'AssetIndex',
    'ResolvedSprite',
    'AuditRecord',
    'load_asset_index',
    'TerrainKind',
    'BaseSource',
]
