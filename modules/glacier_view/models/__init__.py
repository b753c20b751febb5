"""Glacier View Data Models

This package contains Pydantic data models for the glacier view module,
providing validation and type safety for glacier entities, region boundaries
and refresh run metadata.
"""

from .glacier_entity import GlacierEntity, Region, region_sort_key
from .refresh_metadata import RefreshMetadata, check_view_name

__all__ = ['GlacierEntity', 'Region', 'region_sort_key', 'RefreshMetadata', 'check_view_name']
