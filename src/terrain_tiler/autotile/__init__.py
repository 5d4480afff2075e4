"""
Autotiling geometry: neighbor directions, masks, rotations and the edge and
shoreline classifiers built on them. Everything here is pure and operates
on plain integers and strings.
"""

from .directions import Direction, CARDINALS, DIAGONALS
from .masks import (
    mask_string, mask_string_from_digits, normalize_mask_string,
    rotate_mask, rotate_mask_digits, gate_diagonal_mask, gate_diagonal_digits,
)
from .canonical import CanonicalMask, canonicalize, mask_rotations
from .edges import EdgeClass, EdgeMode, edge_class, edge_class_for_kind, edge_mode_for_kind
from .shore import (
    ShoreSemanticClass, ShoreSemantics, MaskVariant,
    classify_shore_semantics, semantic_relaxations,
)

__all__ = [
    'Direction',
    'CARDINALS',
    'DIAGONALS',
    'mask_string',
    'mask_string_from_digits',
    'normalize_mask_string',
    'rotate_mask',
    'rotate_mask_digits',
    'gate_diagonal_mask',
    'gate_diagonal_digits',
    'CanonicalMask',
    'canonicalize',
    'mask_rotations',
    'EdgeClass',
    'EdgeMode',
    'edge_class',
    'edge_class_for_kind',
    'edge_mode_for_kind',
    'ShoreSemanticClass',
    'ShoreSemantics',
    'MaskVariant',
    'classify_shore_semantics',
    'semantic_relaxations',
]
