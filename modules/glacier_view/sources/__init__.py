"""Input Sources and Snapshot Export

Readers for the entity and region tables, and the GeoPackage exporter for
published snapshots.
"""

from .base import EntitySource, RegionSource
from .in_memory import InMemoryEntitySource, InMemoryRegionSource
from .geo_file import GeoFileReader, GeoFileEntitySource, GeoFileRegionSource
from .export import export_snapshot

__all__ = [
    'EntitySource',
    'RegionSource',
    'InMemoryEntitySource',
    'InMemoryRegionSource',
    'GeoFileReader',
    'GeoFileEntitySource',
    'GeoFileRegionSource',
    'export_snapshot',
]
