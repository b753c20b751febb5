"""GeoFile Sources

Entity and region sources backed by any vector file geopandas can read
(GeoPackage, shapefile, GeoJSON). Source column names come from
``field_mapping.json`` so the models never see table-specific names.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import geopandas as gpd
import pandas as pd
from pydantic import ValidationError
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from src.config.config_loader import ConfigLoader
from src.exceptions import ERGIValidationError
from ..exceptions import EmptyInputError
from ..models import GlacierEntity, Region
from .base import EntitySource, RegionSource

logger = logging.getLogger(__name__)

IDENTIFIER_FIELDS = frozenset(['entity_id', 'secondary_id', 'region_id'])


def _clean_value(key: str, value: Any) -> Any:
    """Convert pandas missing values to None and float-typed identifiers to ints."""
    if value is None:
        return None
    if not isinstance(value, (list, tuple, dict)) and pd.isna(value):
        return None
    if key in IDENTIFIER_FIELDS and isinstance(value, float) and value.is_integer():
        return int(value)
    return value


class GeoFileReader:
    """Reads one layer of a vector file into records keyed by logical field.

    Args:
        path: Path to the vector file
        layer: Layer name inside the file, for multi-layer formats
        column_mapping: Logical field key -> source column name
        required_fields: Logical field keys that must exist in the file
        retries: Read attempts before giving up
        retry_wait: Seconds between attempts
    """

    def __init__(self, path: Path, layer: Optional[str], column_mapping: Dict[str, str],
                 required_fields: Iterable[str] = (), retries: int = 3, retry_wait: float = 2.0):
        self.path = Path(path)
        self.layer = layer
        self.column_mapping = dict(column_mapping)
        self.required_fields = list(required_fields)
        self.retries = max(retries, 1)
        self.retry_wait = retry_wait
        self.crs: Optional[str] = None

    @property
    def source_name(self) -> str:
        return f"{self.path}:{self.layer}" if self.layer else str(self.path)

    def _read_frame(self) -> gpd.GeoDataFrame:
        kwargs = {"layer": self.layer} if self.layer else {}
        retryer = Retrying(
            stop=stop_after_attempt(self.retries),
            wait=wait_fixed(self.retry_wait),
            retry=retry_if_exception_type(OSError),
            reraise=True
        )
        return retryer(gpd.read_file, self.path, **kwargs)

    def read_records(self) -> List[Dict[str, Any]]:
        """Read the layer and rename its columns to logical field keys.

        Raises:
            EmptyInputError: If the file is missing, unreadable or has no rows
            ERGIValidationError: If a required column is missing
        """
        if not self.path.exists():
            raise EmptyInputError(self.source_name, "file not found")

        try:
            frame = self._read_frame()
        except Exception as e:
            logger.error(f"Failed to read {self.source_name}: {e}")
            raise EmptyInputError(self.source_name, str(e)) from e

        if frame.empty:
            raise EmptyInputError(self.source_name, "no rows")

        missing = [key for key in self.required_fields if self.column_mapping[key] not in frame.columns]
        if missing:
            raise ERGIValidationError(
                f"Source {self.source_name} is missing required columns",
                {"missing": [self.column_mapping[key] for key in missing]}
            )

        self.crs = frame.crs.to_string() if frame.crs is not None else None

        records = []
        geometry_column = frame.geometry.name
        for _, row in frame.iterrows():
            record = {"geometry": row[geometry_column]}
            for key, column in self.column_mapping.items():
                record[key] = _clean_value(key, row[column]) if column in frame.columns else None
            records.append(record)

        logger.info(f"Read {len(records)} records from {self.source_name}")
        return records


def _reader_from_config(config_loader: ConfigLoader, environment: str, layer_name: str,
                        retries: Optional[int] = None) -> GeoFileReader:
    location = config_loader.get_layer_location(environment, layer_name)
    fields = config_loader.get_layer_config(layer_name)["fields"]
    if retries is None:
        retries = config_loader.load_environment_config(environment)["processing"].get("load_retries", 3)
    return GeoFileReader(
        path=location["path"],
        layer=location["layer"],
        column_mapping=config_loader.get_column_mapping(layer_name),
        required_fields=[key for key, spec in fields.items() if spec.get("required")],
        retries=retries
    )


class GeoFileEntitySource(EntitySource):
    """Glacier entities read from a vector file."""

    def __init__(self, reader: GeoFileReader, name: str = "entities"):
        self.reader = reader
        self.name = name

    @classmethod
    def from_config(cls, config_loader: ConfigLoader, environment: str,
                    layer_name: str = "entities") -> 'GeoFileEntitySource':
        return cls(_reader_from_config(config_loader, environment, layer_name), name=layer_name)

    @property
    def crs(self) -> Optional[str]:
        return self.reader.crs

    def load_entities(self) -> List[GlacierEntity]:
        entities = []
        for index, record in enumerate(self.reader.read_records()):
            try:
                entities.append(GlacierEntity(**record))
            except ValidationError as e:
                raise ERGIValidationError(
                    f"Invalid entity record in {self.reader.source_name}",
                    {"row": index, "entity_id": record.get("entity_id"), "errors": e.error_count()}
                ) from e
        return entities


class GeoFileRegionSource(RegionSource):
    """Regions of one family read from a vector file."""

    def __init__(self, reader: GeoFileReader, name: str = "regions"):
        self.reader = reader
        self.name = name

    @classmethod
    def from_config(cls, config_loader: ConfigLoader, environment: str,
                    layer_name: str) -> 'GeoFileRegionSource':
        return cls(_reader_from_config(config_loader, environment, layer_name), name=layer_name)

    @property
    def crs(self) -> Optional[str]:
        return self.reader.crs

    def load_regions(self) -> List[Region]:
        regions = []
        for index, record in enumerate(self.reader.read_records()):
            try:
                regions.append(Region(**record))
            except ValidationError as e:
                raise ERGIValidationError(
                    f"Invalid region record in {self.reader.source_name}",
                    {"row": index, "region_id": record.get("region_id"), "errors": e.error_count()}
                ) from e
        return regions
