"""Spatial Join Resolver

Finds, for each glacier, the regions of a region family whose polygon contains
the glacier's centroid, and reduces multiple matches to one with an explicit
tie-break policy.

Containment is strict (shapely ``contains``): a centroid lying exactly on a
region boundary is not inside that region, and a glacier whose centroid is
outside every region gets no region even when its outline overlaps one.

Two implementations return identical results:

- ``NaiveSpatialJoinResolver`` tests every region for every glacier.
- ``IndexedSpatialJoinResolver`` pre-filters regions through an STRtree
  keyed on region bounding boxes before running the exact test.
"""

import logging
import time
from abc import ABC, abstractmethod
from collections import Counter
from typing import Iterable, List, Optional, Sequence

from shapely import STRtree
from shapely.geometry import Point
from shapely.validation import make_valid

from src.exceptions import ERGIValidationError
from ..models import GlacierEntity, Region, region_sort_key
from .join_models import (
    FamilyJoinResult, JoinMetrics, JoinSettings, RegionCandidate, RegionFamilySpec,
    SpatialIndexMode, TieBreakPolicy
)
from .performance_optimizations import PerformanceMonitor

logger = logging.getLogger(__name__)


class RegionTable:
    """The regions of one family, validated and ready for containment tests.

    Args:
        family: Region family the regions belong to
        regions: Region rows loaded from the family's table
        repair_invalid_geometry: Run invalid polygons through ``make_valid``

    Raises:
        ERGIValidationError: If two regions share an identifier, since the
            tie-break could no longer order them
    """

    def __init__(self, family: RegionFamilySpec, regions: Sequence[Region],
                 repair_invalid_geometry: bool = True):
        self.family = family
        self.regions: List[Region] = list(regions)

        duplicates = [rid for rid, count in Counter(r.region_id for r in self.regions).items() if count > 1]
        if duplicates:
            raise ERGIValidationError(
                f"Region family '{family.name}' has duplicate region identifiers",
                {"family": family.name, "region_ids": sorted(duplicates, key=region_sort_key)}
            )

        self.geometries = []
        repaired = 0
        for region in self.regions:
            geometry = region.geometry
            if not geometry.is_valid and repair_invalid_geometry:
                geometry = make_valid(geometry)
                repaired += 1
            self.geometries.append(geometry)

        if repaired:
            logger.warning(f"Repaired {repaired} invalid region geometries in family '{family.name}'")

        self._tree: Optional[STRtree] = None

    def __len__(self) -> int:
        return len(self.regions)

    @property
    def spatial_index(self) -> STRtree:
        """STRtree over the region geometries, built on first use."""
        if self._tree is None:
            self._tree = STRtree(self.geometries)
            logger.debug(f"Built spatial index over {len(self.geometries)} regions of '{self.family.name}'")
        return self._tree

    def candidate(self, index: int) -> RegionCandidate:
        region = self.regions[index]
        return RegionCandidate(
            region_id=region.region_id,
            label=region.label,
            region_area=self.geometries[index].area
        )


def tie_break_key(policy: TieBreakPolicy):
    """Sort key ordering candidates from winner to loser under ``policy``."""
    if policy == TieBreakPolicy.SMALLEST_REGION_AREA:
        return lambda c: (c.region_area, region_sort_key(c.region_id))
    return lambda c: region_sort_key(c.region_id)


def apply_tie_break(candidates: Sequence[RegionCandidate],
                    policy: TieBreakPolicy) -> List[RegionCandidate]:
    """Reduce candidates to at most one survivor."""
    if len(candidates) <= 1:
        return list(candidates)
    return [min(candidates, key=tie_break_key(policy))]


class SpatialJoinResolver(ABC):
    """Base class for centroid-in-region resolvers.

    Subclasses only decide which regions get the exact containment test;
    candidate ordering and tie-breaking live here so every implementation
    resolves ambiguity the same way.
    """

    name = "base"

    def __init__(self, tie_break: TieBreakPolicy = TieBreakPolicy.LOWEST_REGION_ID):
        self.tie_break = tie_break
        self._containment_tests = 0

    @abstractmethod
    def _indices_to_test(self, point: Point, table: RegionTable) -> Iterable[int]:
        """Indices of regions that might contain ``point``."""

    def _containing_indices(self, point: Point, table: RegionTable) -> List[int]:
        hits = []
        for index in self._indices_to_test(point, table):
            self._containment_tests += 1
            if table.geometries[index].contains(point):
                hits.append(index)
        return hits

    def resolve(self, entity: GlacierEntity, table: RegionTable) -> List[RegionCandidate]:
        """Every region containing the entity's centroid, winner first.

        Args:
            entity: Glacier to attribute
            table: Regions of one family

        Returns:
            Candidates ordered by the tie-break policy; empty when the centroid
            falls outside every region
        """
        point = entity.centroid
        candidates = [table.candidate(i) for i in self._containing_indices(point, table)]
        return sorted(candidates, key=tie_break_key(self.tie_break))

    def resolve_one(self, entity: GlacierEntity, table: RegionTable) -> Optional[RegionCandidate]:
        """The single region the entity is attributed to, or None."""
        survivors = apply_tie_break(self.resolve(entity, table), self.tie_break)
        return survivors[0] if survivors else None

    def resolve_family(self, entities: Sequence[GlacierEntity], table: RegionTable,
                       monitor: Optional[PerformanceMonitor] = None) -> FamilyJoinResult:
        """Resolve every entity against one region family.

        Args:
            entities: Glaciers to attribute
            table: Regions of the family
            monitor: Optional performance monitor for the join

        Returns:
            FamilyJoinResult with at most one candidate per entity
        """
        monitor = monitor or PerformanceMonitor()
        metrics = JoinMetrics()
        assignments = {}
        self._containment_tests = 0
        start_time = time.perf_counter()

        with monitor.monitor_operation(f"spatial_join:{table.family.name}", len(entities)):
            for entity in entities:
                candidates = self.resolve(entity, table)
                if len(candidates) > 1:
                    metrics.tie_breaks_applied += 1
                    logger.debug(f"Entity {entity.entity_id} lies in {len(candidates)} "
                                 f"'{table.family.name}' regions; {candidates[0].region_id} wins")

                survivors = apply_tie_break(candidates, self.tie_break)
                assignments[entity.entity_id] = survivors
                metrics.entities_processed += 1
                if survivors:
                    metrics.matched += 1
                else:
                    metrics.unmatched += 1

        metrics.containment_tests = self._containment_tests
        metrics.duration = time.perf_counter() - start_time

        result = FamilyJoinResult(
            family=table.family,
            tie_break=self.tie_break,
            resolver=self.name,
            assignments=assignments,
            metrics=metrics
        )
        logger.info(f"Spatial join completed: {result.get_summary()}")
        return result


class NaiveSpatialJoinResolver(SpatialJoinResolver):
    """Reference resolver testing every region for every glacier."""

    name = "naive"

    def _indices_to_test(self, point: Point, table: RegionTable) -> Iterable[int]:
        return range(len(table))


class IndexedSpatialJoinResolver(SpatialJoinResolver):
    """Resolver pre-filtering regions by bounding box through an STRtree."""

    name = "indexed"

    def _indices_to_test(self, point: Point, table: RegionTable) -> Iterable[int]:
        if len(table) == 0:
            return []
        # Bounding-box hits only; the exact test follows. Sorted so the order
        # of containment tests is reproducible.
        return sorted(int(i) for i in table.spatial_index.query(point))


def create_resolver(settings: JoinSettings, entity_count: int, region_count: int) -> SpatialJoinResolver:
    """Pick the resolver implementation for a join of the given size.

    Args:
        settings: Join settings from the view configuration
        entity_count: Number of glaciers being joined
        region_count: Number of regions in the family

    Returns:
        Configured resolver
    """
    if settings.spatial_index == SpatialIndexMode.ALWAYS:
        use_index = True
    elif settings.spatial_index == SpatialIndexMode.NEVER:
        use_index = False
    else:
        use_index = entity_count + region_count > settings.index_threshold

    resolver_class = IndexedSpatialJoinResolver if use_index else NaiveSpatialJoinResolver
    logger.debug(f"Using {resolver_class.name} resolver for {entity_count} entities x {region_count} regions")
    return resolver_class(tie_break=settings.tie_break)
