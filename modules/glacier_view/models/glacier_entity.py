"""GlacierEntity and Region Data Models

This module defines the Pydantic data models for the two kinds of input rows
the glacier view is derived from: glacier polygons from the ERGI inventory and
region boundary polygons used for spatial attribution.
"""

import re
from typing import Optional, Tuple, Union, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from shapely.geometry import MultiPolygon, Polygon
from shapely.geometry.base import BaseGeometry

PolygonalGeometry = Union[Polygon, MultiPolygon]


def _validate_polygonal(v: Any) -> BaseGeometry:
    if not isinstance(v, BaseGeometry):
        raise ValueError('Geometry must be a shapely geometry')
    if not isinstance(v, (Polygon, MultiPolygon)):
        raise ValueError(f'Geometry must be a Polygon or MultiPolygon, got {v.geom_type}')
    if v.is_empty:
        raise ValueError('Geometry cannot be empty')
    return v


_NUMERIC_ID = re.compile(r'-?[0-9]+')


def region_sort_key(region_id: str) -> Tuple[int, Union[int, str], str]:
    """Total order over region identifiers.

    Numeric identifiers sort numerically and before non-numeric ones, which
    sort lexically. ``"9"`` therefore precedes ``"10"``. Identifiers with the
    same numeric value (``"7"`` and ``"07"``) fall back to their text.
    """
    stripped = region_id.strip()
    if _NUMERIC_ID.fullmatch(stripped):
        return (0, int(stripped), region_id)
    return (1, stripped, region_id)


class GlacierEntity(BaseModel):
    """Data model for a glacier polygon from the ERGI inventory.

    Entities are created and updated by the external ingestion process and
    treated as read-only input by the view, hence the frozen model.

    Attributes:
        entity_id: Stable unique identifier (GLIMS id)
        secondary_id: ERGI inventory identifier
        geometry: Glacier outline in a projected (equal-area) coordinate system
        area: Glacier area
        name: Display name, when the glacier has one
        max_elevation: Maximum surface elevation
        min_elevation: Minimum surface elevation
        classification_code: Packed 4-character RGI classification code
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    entity_id: str = Field(..., description="Stable unique identifier (GLIMS id)", min_length=1)
    secondary_id: Optional[str] = Field(None, description="ERGI inventory identifier")
    geometry: PolygonalGeometry = Field(..., description="Glacier outline in a projected CRS")
    area: float = Field(..., description="Glacier area", ge=0)
    name: Optional[str] = Field(None, description="Glacier display name")
    max_elevation: Optional[float] = Field(None, description="Maximum surface elevation")
    min_elevation: Optional[float] = Field(None, description="Minimum surface elevation")
    classification_code: Optional[str] = Field(None, description="Packed RGI classification code")

    @field_validator('entity_id', 'secondary_id', mode='before')
    @classmethod
    def coerce_identifier(cls, v: Any) -> Optional[str]:
        """Identifiers arrive as integers from some tables; store them as stripped strings."""
        if v is None:
            return None
        return str(v).strip()

    @field_validator('geometry', mode='before')
    @classmethod
    def validate_geometry(cls, v: Any) -> BaseGeometry:
        return _validate_polygonal(v)

    @property
    def centroid(self):
        """Representative point used for region containment."""
        return self.geometry.centroid

    def record_key(self) -> tuple:
        """Comparable tuple of every attribute, geometry included as WKB."""
        return (
            self.entity_id,
            self.secondary_id,
            self.geometry.wkb,
            self.area,
            self.name,
            self.max_elevation,
            self.min_elevation,
            self.classification_code,
        )


class Region(BaseModel):
    """Data model for a region boundary polygon.

    A region belongs to one region family (one regionalization scheme). Its
    ``label`` is the attribute copied onto glacier rows whose centroid falls
    inside it.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    region_id: str = Field(..., description="Stable region identifier", min_length=1)
    label: Optional[str] = Field(None, description="Attribute copied to matched glacier rows")
    geometry: PolygonalGeometry = Field(..., description="Region boundary in the entity CRS")

    @field_validator('region_id', 'label', mode='before')
    @classmethod
    def coerce_text(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        return str(v).strip()

    @field_validator('geometry', mode='before')
    @classmethod
    def validate_geometry(cls, v: Any) -> BaseGeometry:
        return _validate_polygonal(v)

    @property
    def sort_key(self) -> Tuple[int, Union[int, str], str]:
        return region_sort_key(self.region_id)
