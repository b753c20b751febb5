"""Snapshot Store

Holds the currently published snapshot. Publication replaces the reference
to the whole snapshot in one assignment, so a reader holding the result of
``current()`` keeps a consistent row set for as long as it needs it.
"""

import logging
import threading
from typing import Iterable, Mapping, Optional

from ..materialize import CanonicalRow, ViewSnapshot

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Versioned holder of the published snapshot."""

    def __init__(self):
        self._lock = threading.Lock()
        self._current: Optional[ViewSnapshot] = None

    def current(self) -> Optional[ViewSnapshot]:
        return self._current

    @property
    def version(self) -> int:
        snapshot = self._current
        return snapshot.version if snapshot else 0

    def publish(self, rows: Mapping[str, CanonicalRow], fingerprint: str,
                region_columns: Iterable[str] = (), crs: Optional[str] = None) -> ViewSnapshot:
        """Publish ``rows`` as the next snapshot version.

        Args:
            rows: Complete canonical row set
            fingerprint: Fingerprint of ``rows``
            region_columns: Region output columns, in configuration order
            crs: Coordinate reference system of the row geometries

        Returns:
            The snapshot now visible to readers
        """
        with self._lock:
            snapshot = ViewSnapshot.create(
                version=self.version + 1,
                rows=rows,
                region_columns=region_columns,
                crs=crs,
                fingerprint=fingerprint
            )
            self._current = snapshot

        logger.info(f"Published snapshot version {snapshot.version} with {len(snapshot)} rows")
        return snapshot


class ReadOnlyView:
    """Read access to the published glacier view.

    Readers never block on a refresh in progress; they see the last
    published snapshot until the next one replaces it.
    """

    def __init__(self, store: SnapshotStore):
        self._store = store

    def current(self) -> Optional[ViewSnapshot]:
        return self._store.current()

    def get_row(self, entity_id: str) -> Optional[CanonicalRow]:
        snapshot = self._store.current()
        if snapshot is None:
            return None
        return snapshot.get_row(entity_id)

    @property
    def version(self) -> int:
        return self._store.version
