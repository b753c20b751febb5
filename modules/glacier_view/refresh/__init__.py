"""View Refresh and Publication

Full-recompute refreshes with atomic snapshot publication.
"""

from .snapshot_store import SnapshotStore, ReadOnlyView
from .refresh_controller import RefreshController, RefreshOutcome, ViewState

__all__ = ['SnapshotStore', 'ReadOnlyView', 'RefreshController', 'RefreshOutcome', 'ViewState']
