"""View Refresh Controller

Rebuilds the glacier view from its sources and publishes the result as a new
snapshot. The rebuild happens on a private working copy; publication is a
single swap in the snapshot store and is the commit point of a refresh.
Any failure or cancellation before the swap leaves the previously published
snapshot untouched.
"""

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Deque, List, Optional, Sequence, Tuple

from src.exceptions import ERGIValidationError
from src.utils import log_phase
from ..exceptions import EmptyInputError, PublicationConflictError, RefreshCancelledError
from ..materialize import MaterializationStats, ViewSnapshot, build_canonical_rows, compute_fingerprint
from ..models import GlacierEntity, RefreshMetadata, check_view_name
from ..sources import EntitySource, RegionSource
from ..spatial_join import JoinSettings, PerformanceMonitor, RegionFamilySpec, RegionTable
from .snapshot_store import ReadOnlyView, SnapshotStore

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_SIZE = 20


class ViewState(str, Enum):
    """Lifecycle state of the published view."""
    STALE = "stale"
    REFRESHING = "refreshing"
    PUBLISHED = "published"


@dataclass
class RefreshOutcome:
    """Result of one refresh.

    Attributes:
        snapshot: Snapshot published by this refresh; None for a dry run
        fingerprint: Fingerprint of the rows built
        changed: Whether the rows differ from the previously published snapshot
        rows_built: Number of canonical rows built
        dry_run: Whether publication was skipped on purpose
        stats: Build statistics
        metadata: Run record appended to the controller history
    """
    snapshot: Optional[ViewSnapshot]
    fingerprint: str
    changed: bool
    rows_built: int
    dry_run: bool
    stats: MaterializationStats
    metadata: RefreshMetadata

    @property
    def published(self) -> bool:
        return self.snapshot is not None


class RefreshController:
    """Coordinates full-recompute refreshes of the glacier view.

    At most one refresh runs at a time; a second request while one is in
    flight is rejected with PublicationConflictError rather than queued.

    Args:
        view_name: Name of the view, used in logs, errors and metadata
        entity_source: Source of glacier entities
        region_sources: (family, source) pairs, one per region family
        settings: Spatial join settings
        history_size: Number of RefreshMetadata records kept
        store: Snapshot store to publish into; a new one by default

    Raises:
        ERGIValidationError: If the view name is not a valid identifier or two
            families share an output column
    """

    def __init__(self, view_name: str, entity_source: EntitySource,
                 region_sources: Sequence[Tuple[RegionFamilySpec, RegionSource]],
                 settings: Optional[JoinSettings] = None,
                 history_size: int = DEFAULT_HISTORY_SIZE,
                 store: Optional[SnapshotStore] = None):
        try:
            view_name = check_view_name(view_name)
        except ValueError as e:
            raise ERGIValidationError(str(e), {"view_name": view_name}) from e

        columns = [family.output_column for family, _ in region_sources]
        if len(set(columns)) != len(columns):
            raise ERGIValidationError("Region families must use distinct output columns",
                                      {"view_name": view_name, "columns": columns})

        self.view_name = view_name
        self.entity_source = entity_source
        self.region_sources = list(region_sources)
        self.settings = settings or JoinSettings()
        self.store = store or SnapshotStore()
        self._refresh_lock = threading.Lock()
        self._state = ViewState.PUBLISHED if self.store.current() else ViewState.STALE
        self._history: Deque[RefreshMetadata] = deque(maxlen=max(history_size, 1))
        self._view = ReadOnlyView(self.store)

    @property
    def state(self) -> ViewState:
        return self._state

    @property
    def view(self) -> ReadOnlyView:
        """Read-only access to the published snapshot."""
        return self._view

    @property
    def history(self) -> List[RefreshMetadata]:
        return list(self._history)

    @property
    def last_refresh(self) -> Optional[RefreshMetadata]:
        return self._history[-1] if self._history else None

    @property
    def region_columns(self) -> List[str]:
        return [family.output_column for family, _ in self.region_sources]

    def refresh(self, cancel_event: Optional[threading.Event] = None,
                dry_run: bool = False) -> RefreshOutcome:
        """Rebuild the view and publish it.

        Args:
            cancel_event: Event checked between phases; once set, the refresh
                stops before publication
            dry_run: Build and report the rows without publishing them

        Returns:
            RefreshOutcome describing the run

        Raises:
            PublicationConflictError: If another refresh is in flight
            RefreshCancelledError: If ``cancel_event`` was set before publication
            ViewRefreshError: For empty inputs, duplicate entities or ambiguous joins
        """
        if not self._refresh_lock.acquire(blocking=False):
            logger.warning(f"Rejected refresh of {self.view_name}: another refresh is in flight")
            raise PublicationConflictError(self.view_name)

        started_at = datetime.now()
        start_time = time.perf_counter()
        monitor = PerformanceMonitor()
        self._state = ViewState.REFRESHING
        logger.info(f"Starting {'dry-run ' if dry_run else ''}refresh of {self.view_name}")

        def checkpoint(phase: str):
            if cancel_event is not None and cancel_event.is_set():
                logger.info(f"Refresh of {self.view_name} cancelled before {phase}")
                raise RefreshCancelledError(self.view_name, phase)

        try:
            checkpoint("load")
            with log_phase(logger, "load"):
                entities, tables, crs = self._load_inputs()

            with log_phase(logger, "build"):
                build = build_canonical_rows(entities, tables, self.settings, monitor, checkpoint)
            fingerprint = compute_fingerprint(build.rows.values())

            previous = self.store.current()
            changed = previous is None or previous.fingerprint != fingerprint

            checkpoint("publish")
            snapshot = None
            if not dry_run:
                snapshot = self.store.publish(build.rows, fingerprint, self.region_columns, crs)

        except Exception as e:
            self._record(RefreshMetadata(
                process_timestamp=started_at,
                view_name=self.view_name,
                region_families=self.region_columns,
                process_status='Error',
                records_processed=0,
                processing_duration=time.perf_counter() - start_time,
                dry_run=dry_run,
                error_message=str(e),
                metadata_details={"error_type": type(e).__name__}
            ))
            logger.error(f"Refresh of {self.view_name} failed: {e}")
            raise

        finally:
            self._state = ViewState.PUBLISHED if self.store.current() else ViewState.STALE
            self._refresh_lock.release()

        metadata = RefreshMetadata(
            process_timestamp=started_at,
            view_name=self.view_name,
            region_families=self.region_columns,
            process_status='Success',
            records_processed=build.stats.rows_built,
            processing_duration=time.perf_counter() - start_time,
            snapshot_version=snapshot.version if snapshot else None,
            fingerprint=fingerprint,
            dry_run=dry_run,
            metadata_details={
                "changed": changed,
                "statistics": build.stats.model_dump(),
                "performance": monitor.get_performance_summary()
            }
        )
        self._record(metadata)
        logger.info(metadata.get_processing_summary())

        return RefreshOutcome(
            snapshot=snapshot,
            fingerprint=fingerprint,
            changed=changed,
            rows_built=build.stats.rows_built,
            dry_run=dry_run,
            stats=build.stats,
            metadata=metadata
        )

    def _record(self, metadata: RefreshMetadata):
        self._history.append(metadata)

    def _load_inputs(self) -> Tuple[List[GlacierEntity], List[RegionTable], Optional[str]]:
        """Load every source in full before any computation starts.

        Raises:
            EmptyInputError: If any source returns no rows
            ERGIValidationError: If sources disagree on their coordinate system
        """
        entities = self.entity_source.load_entities()
        if not entities:
            raise EmptyInputError(self.entity_source.name)

        loaded = []
        for family, source in self.region_sources:
            regions = source.load_regions()
            if not regions:
                raise EmptyInputError(source.name)
            loaded.append((family, source, regions))

        crs = self.entity_source.crs
        for family, source, _ in loaded:
            if crs and source.crs and source.crs != crs:
                raise ERGIValidationError(
                    f"Region family '{family.name}' uses a different coordinate system than the entities",
                    {"entities": crs, family.name: source.crs}
                )

        tables = [
            RegionTable(family, regions, repair_invalid_geometry=self.settings.repair_invalid_geometry)
            for family, _, regions in loaded
        ]
        logger.debug(f"Loaded {len(entities)} entities and {len(tables)} region families")
        return entities, tables, crs
