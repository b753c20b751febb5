"""RefreshMetadata Data Model

This module defines the Pydantic data model recorded for every view refresh
run. The refresh controller keeps a bounded history of these records so an
operator can see when the published snapshot was last rebuilt and why a
refresh failed without re-running it.
"""

from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Literal, Optional, Dict, Any, List


def check_view_name(name: str) -> str:
    """Strip ``name`` and check that it is usable as an SQL identifier.

    Raises:
        ValueError: If the name is longer than 63 characters or contains
            anything but letters, digits and underscores
    """
    name = name.strip()
    if len(name) > 63:
        raise ValueError('View name must be at most 63 characters')
    if not name or not name.replace('_', '').isalnum() or not name.isascii():
        raise ValueError('View name must contain only alphanumeric characters and underscores')
    return name


class RefreshMetadata(BaseModel):
    """Data model for view refresh run metadata.

    Attributes:
        process_timestamp: Refresh start time
        view_name: Name of the materialized view that was refreshed
        region_families: Output columns of the region families joined in this run
        process_status: Refresh completion status (Success/Error)
        records_processed: Count of canonical rows built
        processing_duration: Time taken for the refresh in seconds
        snapshot_version: Version published by this run, if it published
        fingerprint: Content fingerprint of the rows built, if the build completed
        dry_run: Whether publication was skipped on purpose
        error_message: Error message if the refresh failed
        metadata_details: Additional details (malformed codes, unmatched counts)
    """

    process_timestamp: datetime = Field(
        ...,
        description="Refresh start time"
    )

    view_name: str = Field(
        ...,
        description="Name of the materialized view",
        min_length=1,
        max_length=63
    )

    region_families: List[str] = Field(
        default_factory=list,
        description="Output columns of the region families joined in this run"
    )

    process_status: Literal['Success', 'Error'] = Field(
        ...,
        description="Refresh completion status"
    )

    records_processed: int = Field(
        ...,
        description="Count of canonical rows built during this run",
        ge=0
    )

    processing_duration: Optional[float] = Field(
        None,
        description="Refresh duration in seconds",
        ge=0.0
    )

    snapshot_version: Optional[int] = Field(
        None,
        description="Snapshot version published by this run",
        ge=1
    )

    fingerprint: Optional[str] = Field(
        None,
        description="SHA-256 fingerprint of the rows built"
    )

    dry_run: bool = Field(
        False,
        description="Whether publication was skipped on purpose"
    )

    error_message: Optional[str] = Field(
        None,
        description="Error message if the refresh failed",
        max_length=1000
    )

    metadata_details: Dict[str, Any] = Field(
        default_factory=dict,
        description="Additional refresh details and statistics"
    )

    @field_validator('view_name')
    @classmethod
    def validate_view_name(cls, v: str) -> str:
        return check_view_name(v)

    @field_validator('error_message', mode='before')
    @classmethod
    def validate_error_message(cls, v: Optional[str]) -> Optional[str]:
        """Blank messages become None; long ones are truncated to fit."""
        if v is None or not str(v).strip():
            return None
        return str(v)[:1000]

    def is_successful(self) -> bool:
        return self.process_status == 'Success'

    def get_processing_summary(self) -> str:
        """Get a summary string for this refresh run.

        Returns:
            A formatted string summarizing the run
        """
        status_text = "Success" if self.is_successful() else "Error"
        duration_text = f" ({self.processing_duration:.1f}s)" if self.processing_duration else ""
        mode_text = " [dry run]" if self.dry_run else ""

        summary = f"{status_text}{mode_text}: {self.records_processed} rows built for {self.view_name}{duration_text}"

        if self.snapshot_version is not None:
            summary += f", published version {self.snapshot_version}"
        if self.error_message:
            summary += f" - {self.error_message}"

        return summary
