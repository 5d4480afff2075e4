"""
Sprites package: asset index, group naming, variant selection and the
fallback ladder that turns classified cells into sprite choices.
"""

from .models import (
    SpriteVariant, SpriteGroup, FallbackStep, ResolvedSprite, AuditRecord, ShoreResolution,
)
from .index import AssetBackend, AssetIndex, load_asset_index
from .matching import (
    normalize_token, group_names_for_kind, overlay_group_names, feature_group_names,
    flag_base_group, mineral_group_names, special_group_names,
    variant_matches_edge, parse_phase_tag,
)
from .selector import SpriteSelector
from .audit import CoverageAudit
from .resolver import SpriteResolver

__all__ = [
    'SpriteVariant',
    'SpriteGroup',
    'FallbackStep',
    'ResolvedSprite',
    'AuditRecord',
    'ShoreResolution',
    'AssetBackend',
    'AssetIndex',
    'load_asset_index',
    'normalize_token',
    'group_names_for_kind',
    'overlay_group_names',
    'feature_group_names',
    'flag_base_group',
    'mineral_group_names',
    'special_group_names',
    'variant_matches_edge',
    'parse_phase_tag',
    'SpriteSelector',
    'CoverageAudit',
    'SpriteResolver',
]
