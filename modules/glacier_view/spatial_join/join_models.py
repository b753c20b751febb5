"""Spatial Join Models for the Glacier View

Data models describing region families, join candidates, tie-break policies
and per-family join results, using Pydantic for validation and serialization.
"""

from typing import Dict, List, Optional
from datetime import datetime
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator


class TieBreakPolicy(str, Enum):
    """Rule choosing one region when several contain the same centroid.

    Both policies are total orders over the candidates, so the outcome never
    depends on the order regions were loaded in.
    """
    LOWEST_REGION_ID = "lowest_region_id"
    SMALLEST_REGION_AREA = "smallest_region_area"


class SpatialIndexMode(str, Enum):
    """Whether region containment lookups go through an STRtree."""
    AUTO = "auto"
    ALWAYS = "always"
    NEVER = "never"


class RegionFamilySpec(BaseModel):
    """One region family joined onto the glacier view.

    A family is one regionalization scheme: a single region table whose
    ``label`` ends up in a single nullable output column.
    """
    name: str = Field(..., min_length=1, description="Family name used in logs and errors")
    layer: str = Field(..., min_length=1, description="Layer name in environment and field mapping config")
    output_column: str = Field(..., min_length=1, description="Column receiving the region label")

    @field_validator('output_column')
    @classmethod
    def validate_output_column(cls, v: str) -> str:
        if not v.replace('_', '').isalnum():
            raise ValueError('Output column must contain only alphanumeric characters and underscores')
        return v


class RegionCandidate(BaseModel):
    """A region whose polygon contains a glacier centroid."""

    model_config = ConfigDict(frozen=True)

    region_id: str = Field(..., description="Identifier of the containing region")
    label: Optional[str] = Field(None, description="Label copied onto the glacier row")
    region_area: float = Field(..., ge=0, description="Area of the containing region")


class JoinMetrics(BaseModel):
    """Counters collected while joining one region family."""
    entities_processed: int = Field(0, ge=0)
    matched: int = Field(0, ge=0, description="Entities with exactly one surviving region")
    unmatched: int = Field(0, ge=0, description="Entities whose centroid lies outside every region")
    tie_breaks_applied: int = Field(0, ge=0, description="Entities claimed by more than one region")
    containment_tests: int = Field(0, ge=0, description="Exact point-in-polygon tests performed")
    duration: float = Field(0.0, ge=0)

    def get_match_rate(self) -> float:
        if self.entities_processed == 0:
            return 0.0
        return self.matched / self.entities_processed


class FamilyJoinResult(BaseModel):
    """Resolved region candidates for every entity of one region family.

    ``assignments`` maps entity id to the candidates surviving the tie-break:
    an empty list when no region matched, a single candidate otherwise.
    """
    family: RegionFamilySpec
    tie_break: TieBreakPolicy
    resolver: str = Field(..., description="Resolver implementation that produced the result")
    assignments: Dict[str, List[RegionCandidate]] = Field(default_factory=dict)
    metrics: JoinMetrics = Field(default_factory=JoinMetrics)
    completed_at: datetime = Field(default_factory=datetime.now)

    def get_label(self, entity_id: str) -> Optional[str]:
        candidates = self.assignments.get(entity_id) or []
        return candidates[0].label if candidates else None

    def get_summary(self) -> str:
        return (f"{self.family.name}: {self.metrics.matched} matched, "
                f"{self.metrics.unmatched} unmatched, "
                f"{self.metrics.tie_breaks_applied} tie-breaks ({self.resolver}, {self.tie_break.value})")


class JoinSettings(BaseModel):
    """Spatial join settings from the ``processing`` section of the view config."""
    tie_break: TieBreakPolicy = Field(TieBreakPolicy.LOWEST_REGION_ID)
    spatial_index: SpatialIndexMode = Field(SpatialIndexMode.AUTO)
    index_threshold: int = Field(2000, ge=0, description="Row count above which AUTO uses the index")
    repair_invalid_geometry: bool = Field(True, description="Repair invalid region polygons with make_valid")
