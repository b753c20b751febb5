"""Canonical Row and Snapshot Models

A canonical row is the denormalized record the glacier view publishes for one
glacier. A snapshot is an immutable, versioned set of those rows together with
a content fingerprint used to tell whether a refresh changed anything.
"""

import hashlib
import json
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

import geopandas as gpd
from pydantic import BaseModel, ConfigDict, Field
from shapely.geometry.base import BaseGeometry

from ..decoding import TerminusType

# Output column names of the fixed part of the view, in publication order
BASE_OUTPUT_COLUMNS: Tuple[str, ...] = (
    'glimsid', 'ergiid', 'area', 'geometry', 'name', 'max', 'min', 'gltype', 'surge'
)


class CanonicalRow(BaseModel):
    """One published glacier row.

    Attributes:
        entity_id: Stable unique identifier (published as ``glimsid``)
        secondary_id: ERGI inventory identifier (``ergiid``)
        geometry: Glacier outline
        area: Glacier area
        name: Display name
        max_elevation: Maximum surface elevation (``max``)
        min_elevation: Minimum surface elevation (``min``)
        terminus_type: Decoded terminus type (``gltype`` as 0/1/2 or null)
        is_surging: Decoded surge flag (``surge``)
        region_labels: Output column -> region label, one entry per region family
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    entity_id: str
    secondary_id: Optional[str] = None
    geometry: BaseGeometry
    area: float
    name: Optional[str] = None
    max_elevation: Optional[float] = None
    min_elevation: Optional[float] = None
    terminus_type: TerminusType = TerminusType.UNKNOWN
    is_surging: bool = False
    region_labels: Dict[str, Optional[str]] = Field(default_factory=dict)

    def region(self, output_column: str) -> Optional[str]:
        return self.region_labels.get(output_column)

    def to_record(self) -> Dict[str, Any]:
        """Row keyed by published column names."""
        record = {
            'glimsid': self.entity_id,
            'ergiid': self.secondary_id,
            'area': self.area,
            'geometry': self.geometry,
            'name': self.name,
            'max': self.max_elevation,
            'min': self.min_elevation,
            'gltype': self.terminus_type.code,
            'surge': self.is_surging,
        }
        record.update(self.region_labels)
        return record

    def canonical_form(self) -> Dict[str, Any]:
        """JSON-serializable form with the geometry as hex WKB."""
        record = self.to_record()
        record['geometry'] = self.geometry.wkb_hex
        return record


def compute_fingerprint(rows: Iterable[CanonicalRow]) -> str:
    """SHA-256 over the canonical form of ``rows`` in entity id order.

    Input order does not matter, so rebuilding the same rows from the same
    inputs always yields the same fingerprint.
    """
    digest = hashlib.sha256()
    for row in sorted(rows, key=lambda r: r.entity_id):
        digest.update(json.dumps(row.canonical_form(), sort_keys=True, default=str).encode('utf-8'))
        digest.update(b'\n')
    return digest.hexdigest()


@dataclass(frozen=True)
class ViewSnapshot:
    """Immutable published row set.

    Build instances with :meth:`create`, which freezes the row mapping and
    computes the fingerprint.
    """
    version: int
    rows: Mapping[str, CanonicalRow]
    fingerprint: str
    region_columns: Tuple[str, ...] = ()
    crs: Optional[str] = None
    published_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def create(cls, version: int, rows: Mapping[str, CanonicalRow],
               region_columns: Iterable[str] = (), crs: Optional[str] = None,
               fingerprint: Optional[str] = None) -> 'ViewSnapshot':
        frozen_rows = MappingProxyType(dict(rows))
        return cls(
            version=version,
            rows=frozen_rows,
            fingerprint=fingerprint or compute_fingerprint(frozen_rows.values()),
            region_columns=tuple(region_columns),
            crs=crs
        )

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[CanonicalRow]:
        return iter(self.rows.values())

    def get_row(self, entity_id: str) -> Optional[CanonicalRow]:
        return self.rows.get(str(entity_id))

    @property
    def columns(self) -> List[str]:
        return list(BASE_OUTPUT_COLUMNS) + list(self.region_columns)

    def to_geodataframe(self) -> gpd.GeoDataFrame:
        """Published rows as a GeoDataFrame ordered by entity id."""
        records = [self.rows[entity_id].to_record() for entity_id in sorted(self.rows)]
        gdf = gpd.GeoDataFrame(records, columns=self.columns, geometry='geometry', crs=self.crs)
        gdf['gltype'] = gdf['gltype'].astype('Int64')
        return gdf
