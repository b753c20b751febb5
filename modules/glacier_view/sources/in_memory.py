"""In-memory sources, used by tests and by callers that already hold the rows."""

from typing import Iterable, List, Optional

from ..models import GlacierEntity, Region
from .base import EntitySource, RegionSource


class InMemoryEntitySource(EntitySource):

    def __init__(self, entities: Iterable[GlacierEntity], name: str = "entities",
                 crs: Optional[str] = None):
        self.entities = list(entities)
        self.name = name
        self.crs = crs

    def load_entities(self) -> List[GlacierEntity]:
        return list(self.entities)


class InMemoryRegionSource(RegionSource):

    def __init__(self, regions: Iterable[Region], name: str = "regions",
                 crs: Optional[str] = None):
        self.regions = list(regions)
        self.name = name
        self.crs = crs

    def load_regions(self) -> List[Region]:
        return list(self.regions)
