"""Tests for Glacier View data models."""

import pytest
from datetime import datetime
from pydantic import ValidationError
from shapely.geometry import LineString, MultiPolygon, Point, Polygon, box

from modules.glacier_view.models import GlacierEntity, Region, RefreshMetadata, region_sort_key


class TestGlacierEntity:
    """Test cases for GlacierEntity Pydantic model."""

    def test_valid_entity(self):
        entity = GlacierEntity(
            entity_id="G012345E45678N",
            secondary_id=42,
            geometry=box(0, 0, 10, 10),
            area=1.5,
            name="Example Glacier",
            max_elevation=2500.0,
            min_elevation=1200.0,
            classification_code="0100"
        )

        assert entity.entity_id == "G012345E45678N"
        assert entity.secondary_id == "42"
        assert entity.centroid.equals(Point(5, 5))

    def test_minimal_entity(self):
        entity = GlacierEntity(entity_id="G1", geometry=box(0, 0, 1, 1), area=0)

        assert entity.name is None
        assert entity.classification_code is None

    def test_multipolygon_geometry(self):
        geometry = MultiPolygon([box(0, 0, 1, 1), box(2, 2, 3, 3)])
        entity = GlacierEntity(entity_id="G1", geometry=geometry, area=2)
        assert entity.geometry.geom_type == "MultiPolygon"

    @pytest.mark.parametrize("geometry", [
        Point(0, 0),
        LineString([(0, 0), (1, 1)]),
        Polygon(),
        "POLYGON ((0 0, 1 0, 1 1, 0 0))",
    ])
    def test_invalid_geometry_rejected(self, geometry):
        with pytest.raises(ValidationError):
            GlacierEntity(entity_id="G1", geometry=geometry, area=1)

    def test_negative_area_rejected(self):
        with pytest.raises(ValidationError):
            GlacierEntity(entity_id="G1", geometry=box(0, 0, 1, 1), area=-1)

    def test_entity_is_frozen(self):
        entity = GlacierEntity(entity_id="G1", geometry=box(0, 0, 1, 1), area=1)
        with pytest.raises(ValidationError):
            entity.area = 2

    def test_record_key_compares_geometry(self):
        first = GlacierEntity(entity_id="G1", geometry=box(0, 0, 1, 1), area=1)
        same = GlacierEntity(entity_id="G1", geometry=box(0, 0, 1, 1), area=1)
        moved = GlacierEntity(entity_id="G1", geometry=box(5, 5, 6, 6), area=1)

        assert first.record_key() == same.record_key()
        assert first.record_key() != moved.record_key()


class TestRegion:
    """Test cases for Region Pydantic model."""

    def test_identifiers_are_strings(self):
        region = Region(region_id=7, label=" Alaska ", geometry=box(0, 0, 1, 1))

        assert region.region_id == "7"
        assert region.label == "Alaska"

    def test_label_optional(self):
        assert Region(region_id="R1", geometry=box(0, 0, 1, 1)).label is None

    def test_sort_key_is_numeric_aware(self):
        ids = ["10", "R2", "9", "R10", "-1"]
        assert sorted(ids, key=region_sort_key) == ["-1", "9", "10", "R10", "R2"]

    def test_sort_key_is_total(self):
        assert region_sort_key("07") != region_sort_key("7")
        assert sorted(["7", "07"], key=region_sort_key) == sorted(["07", "7"], key=region_sort_key)
        assert region_sort_key("--1")[0] == 1
        assert region_sort_key("²")[0] == 1


class TestRefreshMetadata:
    """Test cases for RefreshMetadata Pydantic model."""

    def test_successful_refresh(self):
        metadata = RefreshMetadata(
            process_timestamp=datetime(2024, 1, 15, 10, 30),
            view_name="ergi_mat_view",
            region_families=["region", "arendtregion"],
            process_status="Success",
            records_processed=215547,
            processing_duration=42.5,
            snapshot_version=3,
            fingerprint="abc"
        )

        assert metadata.is_successful()
        summary = metadata.get_processing_summary()
        assert "215547 rows" in summary
        assert "published version 3" in summary
        assert "42.5s" in summary

    def test_failed_refresh(self):
        metadata = RefreshMetadata(
            process_timestamp=datetime.now(),
            view_name="ergi_mat_view",
            process_status="Error",
            records_processed=0,
            error_message="Input source 'entities' is empty or unreachable"
        )

        assert not metadata.is_successful()
        assert metadata.get_processing_summary().startswith("Error")
        assert "unreachable" in metadata.get_processing_summary()

    def test_dry_run_summary(self):
        metadata = RefreshMetadata(
            process_timestamp=datetime.now(),
            view_name="ergi_mat_view",
            process_status="Success",
            records_processed=5,
            dry_run=True
        )
        assert "[dry run]" in metadata.get_processing_summary()

    def test_view_name_validation(self):
        with pytest.raises(ValidationError):
            RefreshMetadata(
                process_timestamp=datetime.now(),
                view_name="ergi mat-view",
                process_status="Success",
                records_processed=0
            )

    def test_error_message_normalized(self):
        blank = RefreshMetadata(
            process_timestamp=datetime.now(), view_name="v", process_status="Error",
            records_processed=0, error_message="   "
        )
        long = RefreshMetadata(
            process_timestamp=datetime.now(), view_name="v", process_status="Error",
            records_processed=0, error_message="x" * 1500
        )

        assert blank.error_message is None
        assert len(long.error_message) == 1000

    def test_invalid_status(self):
        with pytest.raises(ValidationError):
            RefreshMetadata(
                process_timestamp=datetime.now(), view_name="v",
                process_status="Partial", records_processed=0
            )
