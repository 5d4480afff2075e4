"""
Terrain package: kind resolution, base-source detection and per-cell
classification.
"""

from .kinds import TerrainKind, KindTables, normalize_kind, kind_from_name
from .base_source import BaseSource, BaseSourceReport, CandidateScore, detect_base_source
from .classifier import TerrainClassifier

__all__ = [
    'TerrainKind',
    'KindTables',
    'normalize_kind',
    'kind_from_name',
    'BaseSource',
    'BaseSourceReport',
    'CandidateScore',
    'detect_base_source',
    'TerrainClassifier',
]
