"""Canonical Row Materialization

Builds the one-row-per-glacier canonical set and the immutable snapshots it
is published in.
"""

from .view_models import BASE_OUTPUT_COLUMNS, CanonicalRow, ViewSnapshot, compute_fingerprint
from .row_materializer import (
    BuildResult,
    MaterializationStats,
    RowMaterializer,
    build_canonical_rows,
    collapse_duplicates,
    decode_entities,
)

__all__ = [
    'BASE_OUTPUT_COLUMNS',
    'CanonicalRow',
    'ViewSnapshot',
    'compute_fingerprint',
    'BuildResult',
    'MaterializationStats',
    'RowMaterializer',
    'build_canonical_rows',
    'collapse_duplicates',
    'decode_entities',
]
