"""Glacier View Specific Exceptions

Extends the framework exception hierarchy with the failures that can abort a
view refresh. Every one of them leaves the previously published snapshot in
place and carries the identifiers needed to diagnose it in ``context``.
"""

from typing import List, Optional, Sequence
from src.exceptions import ERGIProcessingError


class ViewRefreshError(ERGIProcessingError):
    """Base exception for view refresh failures."""
    pass


class JoinAmbiguityError(ViewRefreshError):
    """More than one region candidate reached the materializer for an entity."""

    def __init__(self, entity_id: str, family: str, candidate_ids: Sequence[str]):
        self.entity_id = entity_id
        self.family = family
        self.candidate_ids: List[str] = list(candidate_ids)
        super().__init__(
            f"Entity {entity_id} has {len(self.candidate_ids)} surviving region candidates",
            {"entity_id": entity_id, "family": family, "candidates": self.candidate_ids}
        )


class DuplicateEntityError(ViewRefreshError):
    """The entity table holds conflicting records for one identifier."""

    def __init__(self, entity_id: str, record_count: int):
        self.entity_id = entity_id
        self.record_count = record_count
        super().__init__(
            f"Entity {entity_id} appears {record_count} times with differing attributes",
            {"entity_id": entity_id, "record_count": record_count}
        )


class EmptyInputError(ViewRefreshError):
    """An entity or region source was empty or could not be read."""

    def __init__(self, source: str, reason: Optional[str] = None):
        self.source = source
        context = {"source": source}
        if reason:
            context["reason"] = reason
        super().__init__(f"Input source '{source}' is empty or unreachable", context)


class PublicationConflictError(ViewRefreshError):
    """A refresh was requested while another one is in flight."""

    def __init__(self, view_name: str):
        self.view_name = view_name
        super().__init__(
            f"A refresh of {view_name} is already in progress",
            {"view_name": view_name}
        )


class RefreshCancelledError(ViewRefreshError):
    """The refresh was cancelled before its snapshot was published."""

    def __init__(self, view_name: str, phase: str):
        self.view_name = view_name
        self.phase = phase
        super().__init__(
            f"Refresh of {view_name} cancelled during {phase}",
            {"view_name": view_name, "phase": phase}
        )
