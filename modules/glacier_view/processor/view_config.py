"""Glacier View Configuration Model

Pydantic model for ``view_config.json``: the view name, the region families
joined onto it and the spatial join settings.
"""

import json
import logging
from pathlib import Path
from typing import List, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from src.exceptions import ERGIConfigurationError
from ..models import check_view_name
from ..spatial_join import JoinSettings, RegionFamilySpec
from ..refresh.refresh_controller import DEFAULT_HISTORY_SIZE

logger = logging.getLogger(__name__)

DEFAULT_VIEW_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "view_config.json"


class ProcessingSettings(JoinSettings):
    """Join settings plus refresh bookkeeping options."""
    history_size: int = Field(DEFAULT_HISTORY_SIZE, ge=1, description="Refresh metadata records kept")
    export_on_publish: bool = Field(True, description="Export each published snapshot to the output path")


class ViewConfig(BaseModel):
    """Configuration of one materialized glacier view."""
    view_name: str = Field(..., min_length=1, max_length=63)
    entity_layer: str = Field("entities", description="Layer holding the glacier entities")
    region_families: List[RegionFamilySpec] = Field(default_factory=list)
    processing: ProcessingSettings = Field(default_factory=ProcessingSettings)

    @field_validator('view_name')
    @classmethod
    def validate_view_name(cls, v: str) -> str:
        return check_view_name(v)

    @field_validator('region_families')
    @classmethod
    def validate_unique_families(cls, v: List[RegionFamilySpec]) -> List[RegionFamilySpec]:
        names = [family.name for family in v]
        columns = [family.output_column for family in v]
        if len(set(names)) != len(names):
            raise ValueError('Region family names must be unique')
        if len(set(columns)) != len(columns):
            raise ValueError('Region family output columns must be unique')
        return v


def load_view_config(path: Union[str, Path] = DEFAULT_VIEW_CONFIG_PATH) -> ViewConfig:
    """Load and validate a view configuration file.

    Raises:
        ERGIConfigurationError: If the file is missing, not JSON or fails validation
    """
    path = Path(path)
    try:
        with open(path, 'r') as f:
            config_data = json.load(f)
    except FileNotFoundError:
        logger.error(f"View configuration file not found: {path}")
        raise ERGIConfigurationError(f"View configuration file not found: {path}")
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in view configuration {path}: {e}")
        raise ERGIConfigurationError(f"Invalid JSON in view configuration: {e}", {"path": str(path)})

    try:
        config = ViewConfig(**config_data)
    except ValidationError as e:
        raise ERGIConfigurationError(
            "Invalid view configuration",
            {"path": str(path), "errors": e.error_count()}
        ) from e

    logger.debug(f"Loaded view configuration for {config.view_name} from {path}")
    return config
