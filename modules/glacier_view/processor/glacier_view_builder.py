"""GlacierViewBuilder Implementation

This module implements the GlacierViewBuilder class, which rebuilds the ERGI
glacier attribute view (``ergi_mat_view``) by implementing the ModuleProcessor
interface.

A run loads the glacier entity table and every configured region family,
decodes classification codes, attributes each glacier to at most one region
per family and publishes the resulting rows as a new snapshot, optionally
exporting it to a GeoPackage for downstream readers.
"""

import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from src.config.config_loader import ConfigLoader
from src.exceptions import ERGIBaseException
from src.interfaces.module_processor import ModuleProcessor, ModuleStatus, ProcessingResult
from src.utils import log_performance
from ..materialize import BuildResult, build_canonical_rows
from ..models import GlacierEntity
from ..refresh import ReadOnlyView, RefreshController, RefreshOutcome
from ..sources import (
    EntitySource, GeoFileEntitySource, GeoFileRegionSource, RegionSource, export_snapshot
)
from ..spatial_join import RegionFamilySpec, RegionTable
from .view_config import DEFAULT_VIEW_CONFIG_PATH, ViewConfig, load_view_config

logger = logging.getLogger(__name__)


class GlacierViewBuilder(ModuleProcessor):
    """Glacier view builder implementing the ModuleProcessor interface.

    Sources are read from the locations in ``environment_config.json`` unless
    they are passed in, which is how tests and notebooks drive the builder
    with in-memory data.
    """

    def __init__(self, config_loader: ConfigLoader, environment: str = "development",
                 view_config_path: Union[str, Path] = DEFAULT_VIEW_CONFIG_PATH,
                 entity_source: Optional[EntitySource] = None,
                 region_sources: Optional[Dict[str, RegionSource]] = None):
        """Initialize the glacier view builder.

        Args:
            config_loader: ConfigLoader instance providing access to framework configuration
            environment: Environment whose data locations are used
            view_config_path: Path to the view configuration file
            entity_source: Entity source overriding the configured one
            region_sources: Region sources keyed by family name, overriding the configured ones
        """
        self.config_loader = config_loader
        self.environment = environment
        self.view_config_path = Path(view_config_path)
        self._entity_source = entity_source
        self._region_sources = dict(region_sources or {})
        self._view_config: Optional[ViewConfig] = None
        self._configuration_valid: Optional[bool] = None
        self._controller: Optional[RefreshController] = None
        self._last_run: Optional[datetime] = None
        self._last_error: Optional[str] = None

        logger.info(f"GlacierViewBuilder initialized for {environment}")

    def _get_view_config(self) -> ViewConfig:
        if self._view_config is None:
            self._view_config = load_view_config(self.view_config_path)
        return self._view_config

    def validate_configuration(self) -> bool:
        """Validate view configuration against the framework configuration.

        Checks that the view configuration parses, that the environment
        configuration loads, and that the entity layer and every region
        family layer have a field mapping.

        Returns:
            bool: True if configuration is valid and complete, False otherwise
        """
        if self._configuration_valid is not None:
            return self._configuration_valid

        try:
            view_config = self._get_view_config()
            self.config_loader.validate_environment_variables(self.environment)
            layers = [view_config.entity_layer] + [f.layer for f in view_config.region_families]
            for layer in layers:
                self.config_loader.get_layer_config(layer)
        except ERGIBaseException as e:
            logger.error(f"Configuration validation failed: {e}")
            self._configuration_valid = False
            return False

        self._configuration_valid = True
        logger.info("Glacier view configuration validated successfully")
        return True

    def _build_sources(self, view_config: ViewConfig) -> Tuple[EntitySource, List[Tuple[RegionFamilySpec, RegionSource]]]:
        entity_source = self._entity_source or GeoFileEntitySource.from_config(
            self.config_loader, self.environment, view_config.entity_layer
        )

        region_sources = []
        for family in view_config.region_families:
            source = self._region_sources.get(family.name) or GeoFileRegionSource.from_config(
                self.config_loader, self.environment, family.layer
            )
            region_sources.append((family, source))

        return entity_source, region_sources

    def get_controller(self) -> RefreshController:
        """Refresh controller for this view, created on first use."""
        if self._controller is None:
            view_config = self._get_view_config()
            entity_source, region_sources = self._build_sources(view_config)
            self._controller = RefreshController(
                view_name=view_config.view_name,
                entity_source=entity_source,
                region_sources=region_sources,
                settings=view_config.processing,
                history_size=view_config.processing.history_size
            )
        return self._controller

    @property
    def view(self) -> ReadOnlyView:
        return self.get_controller().view

    @log_performance
    def build_rows(self, entities: Sequence[GlacierEntity], region_tables: Sequence[RegionTable]) -> BuildResult:
        """Run decode, join and materialization without touching the published view."""
        return build_canonical_rows(entities, region_tables, self._get_view_config().processing)

    def _export(self, outcome: RefreshOutcome) -> Optional[Path]:
        view_config = self._get_view_config()
        if outcome.snapshot is None or not view_config.processing.export_on_publish:
            return None

        env_config = self.config_loader.load_environment_config(self.environment)
        output_path = env_config["processing"].get("output_path")
        if not output_path:
            return None

        path = Path(output_path)
        if not path.is_absolute():
            path = Path(env_config["data_dir"]) / path
        return export_snapshot(outcome.snapshot, path, layer=view_config.view_name)

    def process(self, dry_run: bool = False) -> ProcessingResult:
        """Refresh the glacier view.

        Args:
            dry_run: If True, build the rows and report them without publishing

        Returns:
            ProcessingResult: Standardized result object with success status, metrics, and errors
        """
        start_time = time.time()
        logger.info(f"Starting glacier view refresh (dry_run={dry_run})")

        if not self.validate_configuration():
            return ProcessingResult(
                success=False,
                records_processed=0,
                errors=["Configuration validation failed"],
                execution_time=time.time() - start_time
            )

        try:
            outcome = self.get_controller().refresh(dry_run=dry_run)
            export_path = self._export(outcome)
        except ERGIBaseException as e:
            self._last_error = str(e)
            logger.error(f"Glacier view refresh failed: {e}")
            return ProcessingResult(
                success=False,
                records_processed=0,
                errors=[e.message],
                error_context={"error_type": type(e).__name__, **e.context},
                execution_time=time.time() - start_time
            )

        self._last_run = datetime.now()
        self._last_error = None

        metadata: Dict[str, Any] = {
            "view_name": outcome.metadata.view_name,
            "dry_run": dry_run,
            "changed": outcome.changed,
            "fingerprint": outcome.fingerprint,
            "snapshot_version": outcome.snapshot.version if outcome.snapshot else None,
            "malformed_codes": outcome.stats.malformed_codes,
            "unmatched_by_family": outcome.stats.unmatched_by_family,
        }
        if export_path is not None:
            metadata["export_path"] = str(export_path)

        return ProcessingResult(
            success=True,
            records_processed=outcome.rows_built,
            metadata=metadata,
            execution_time=time.time() - start_time
        )

    def get_status(self) -> ModuleStatus:
        """Get current view status.

        Returns:
            ModuleStatus: Current module status and health information
        """
        is_configured = self.validate_configuration()
        details: Dict[str, Any] = {"environment": self.environment}

        controller = None
        if is_configured:
            try:
                controller = self.get_controller()
            except ERGIBaseException as e:
                logger.error(f"Could not create refresh controller: {e}")
                details["error"] = str(e)

        if controller is None:
            return ModuleStatus(
                module_name="glacier_view",
                is_configured=is_configured,
                last_run=self._last_run,
                status="error",
                health_check=False,
                details=details
            )

        details["version"] = controller.view.version
        if controller.last_refresh is not None:
            details["last_refresh"] = controller.last_refresh.get_processing_summary()

        return ModuleStatus(
            module_name="glacier_view",
            is_configured=True,
            last_run=self._last_run,
            status="error" if self._last_error else controller.state.value,
            health_check=self._last_error is None,
            details=details
        )
