"""Row Materializer

Combines glacier static fields, decoded classification attributes and the
per-family region assignments into exactly one canonical row per glacier.

The module also carries ``build_canonical_rows``, the decode -> join ->
materialize pipeline a refresh runs over freshly loaded inputs.
"""

import logging
import warnings
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, Field

from ..decoding import DecodedAttributes, MalformedCodeWarning, decode_classification_code
from ..exceptions import DuplicateEntityError, JoinAmbiguityError
from ..models import GlacierEntity
from ..spatial_join import (
    FamilyJoinResult, JoinSettings, PerformanceMonitor, RegionTable, create_resolver
)
from .view_models import CanonicalRow

logger = logging.getLogger(__name__)


class MaterializationStats(BaseModel):
    """Counters describing one row build."""
    entities_loaded: int = Field(0, ge=0, description="Entity records read from the source")
    duplicates_collapsed: int = Field(0, ge=0, description="Identical duplicate records dropped")
    rows_built: int = Field(0, ge=0)
    malformed_codes: int = Field(0, ge=0, description="Codes decoded through the malformed fallback")
    unmatched_by_family: Dict[str, int] = Field(default_factory=dict)
    tie_breaks_by_family: Dict[str, int] = Field(default_factory=dict)


def collapse_duplicates(entities: Sequence[GlacierEntity]) -> Tuple[Dict[str, GlacierEntity], int]:
    """Reduce the entity list to one record per entity id.

    Records sharing an id collapse when every attribute is identical.

    Returns:
        Tuple of (entity id -> entity, number of records dropped)

    Raises:
        DuplicateEntityError: If records sharing an id disagree on any attribute
    """
    unique: Dict[str, GlacierEntity] = {}
    dropped = 0

    for entity in entities:
        existing = unique.get(entity.entity_id)
        if existing is None:
            unique[entity.entity_id] = entity
        elif existing.record_key() == entity.record_key():
            dropped += 1
        else:
            record_count = sum(1 for e in entities if e.entity_id == entity.entity_id)
            raise DuplicateEntityError(entity.entity_id, record_count)

    if dropped:
        logger.info(f"Collapsed {dropped} identical duplicate entity records")
    return unique, dropped


def decode_entities(entities: Mapping[str, GlacierEntity]) -> Tuple[Dict[str, DecodedAttributes], int]:
    """Decode every entity's classification code.

    Returns:
        Tuple of (entity id -> decoded attributes, number of malformed codes)
    """
    decoded: Dict[str, DecodedAttributes] = {}
    malformed = 0

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", MalformedCodeWarning)
        for entity_id, entity in entities.items():
            decoded[entity_id] = decode_classification_code(entity.classification_code)
        malformed = sum(1 for w in caught if issubclass(w.category, MalformedCodeWarning))

    if malformed:
        logger.warning(f"{malformed} classification codes were malformed and decoded as Unknown")
    return decoded, malformed


class RowMaterializer:
    """Builds canonical rows from decoded attributes and join results."""

    def materialize(self, entities: Union[Sequence[GlacierEntity], Mapping[str, GlacierEntity]],
                    decoded_by_entity: Mapping[str, DecodedAttributes],
                    joins_by_family: Sequence[FamilyJoinResult]) -> Dict[str, CanonicalRow]:
        """Emit exactly one row per distinct entity id.

        Args:
            entities: Entity records, possibly containing identical duplicates,
                or a mapping of entity id to entity already passed through
                collapse_duplicates
            decoded_by_entity: Decoded attributes keyed by entity id
            joins_by_family: One join result per region family

        Returns:
            Dictionary of entity id -> CanonicalRow

        Raises:
            DuplicateEntityError: If duplicate entity records disagree
            JoinAmbiguityError: If a family left more than one candidate for an entity
        """
        if isinstance(entities, Mapping):
            unique = entities
        else:
            unique, _ = collapse_duplicates(entities)
        rows: Dict[str, CanonicalRow] = {}

        for entity_id, entity in unique.items():
            decoded = decoded_by_entity.get(entity_id)
            if decoded is None:
                decoded = decode_classification_code(entity.classification_code)

            labels: Dict[str, Optional[str]] = {}
            for join in joins_by_family:
                candidates = join.assignments.get(entity_id) or []
                if len(candidates) > 1:
                    raise JoinAmbiguityError(entity_id, join.family.name,
                                             [c.region_id for c in candidates])
                labels[join.family.output_column] = candidates[0].label if candidates else None

            rows[entity_id] = CanonicalRow(
                entity_id=entity.entity_id,
                secondary_id=entity.secondary_id,
                geometry=entity.geometry,
                area=entity.area,
                name=entity.name,
                max_elevation=entity.max_elevation,
                min_elevation=entity.min_elevation,
                terminus_type=decoded.terminus_type,
                is_surging=decoded.is_surging,
                region_labels=labels
            )

        logger.debug(f"Materialized {len(rows)} rows across {len(joins_by_family)} region families")
        return rows


@dataclass
class BuildResult:
    """Outcome of one full row build."""
    rows: Dict[str, CanonicalRow]
    stats: MaterializationStats
    join_results: List[FamilyJoinResult] = field(default_factory=list)


def build_canonical_rows(entities: Sequence[GlacierEntity],
                         region_tables: Sequence[RegionTable],
                         settings: Optional[JoinSettings] = None,
                         monitor: Optional[PerformanceMonitor] = None,
                         checkpoint: Optional[Callable[[str], None]] = None) -> BuildResult:
    """Run decode, spatial join and materialization over loaded inputs.

    Args:
        entities: Entity records
        region_tables: One table per region family
        settings: Join settings; defaults apply when omitted
        monitor: Performance monitor shared across family joins
        checkpoint: Called with the name of each phase before it starts, so a
            caller can abort between phases by raising

    Returns:
        BuildResult with the rows and build statistics
    """
    settings = settings or JoinSettings()
    monitor = monitor or PerformanceMonitor()
    stats = MaterializationStats(entities_loaded=len(entities))

    def _enter(phase: str):
        if checkpoint is not None:
            checkpoint(phase)

    _enter("deduplicate")
    unique, stats.duplicates_collapsed = collapse_duplicates(entities)
    unique_entities = list(unique.values())

    _enter("decode")
    decoded, stats.malformed_codes = decode_entities(unique)

    join_results = []
    for table in region_tables:
        _enter(f"join:{table.family.name}")
        resolver = create_resolver(settings, len(unique_entities), len(table))
        result = resolver.resolve_family(unique_entities, table, monitor=monitor)
        stats.unmatched_by_family[table.family.output_column] = result.metrics.unmatched
        stats.tie_breaks_by_family[table.family.output_column] = result.metrics.tie_breaks_applied
        join_results.append(result)

    _enter("materialize")
    rows = RowMaterializer().materialize(unique, decoded, join_results)
    stats.rows_built = len(rows)

    return BuildResult(rows=rows, stats=stats, join_results=join_results)
