"""Spatial Join Resolution

Centroid-in-region containment joins between glaciers and region families,
with deterministic tie-breaking and an optional STRtree index.
"""

from .join_models import (
    TieBreakPolicy,
    SpatialIndexMode,
    RegionFamilySpec,
    RegionCandidate,
    JoinMetrics,
    FamilyJoinResult,
    JoinSettings,
)
from .resolver import (
    RegionTable,
    SpatialJoinResolver,
    NaiveSpatialJoinResolver,
    IndexedSpatialJoinResolver,
    apply_tie_break,
    create_resolver,
)
from .performance_optimizations import PerformanceMonitor, PerformanceMetrics

__all__ = [
    'TieBreakPolicy',
    'SpatialIndexMode',
    'RegionFamilySpec',
    'RegionCandidate',
    'JoinMetrics',
    'FamilyJoinResult',
    'JoinSettings',
    'RegionTable',
    'SpatialJoinResolver',
    'NaiveSpatialJoinResolver',
    'IndexedSpatialJoinResolver',
    'apply_tie_break',
    'create_resolver',
    'PerformanceMonitor',
    'PerformanceMetrics',
]
