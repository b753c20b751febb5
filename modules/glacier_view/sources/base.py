"""Input Source Interfaces

Abstract readers for the entity table and the region tables. A refresh loads
every source fully before any computation, so sources only need to produce
complete lists.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from ..models import GlacierEntity, Region


class EntitySource(ABC):
    """Reader for glacier entity records.

    Attributes:
        name: Source name used in logs and errors
        crs: Coordinate reference system of the geometries, when known
    """

    name: str = "entities"
    crs: Optional[str] = None

    @abstractmethod
    def load_entities(self) -> List[GlacierEntity]:
        """Read every entity record.

        Raises:
            EmptyInputError: If the source cannot be read
        """
        pass


class RegionSource(ABC):
    """Reader for the regions of one region family."""

    name: str = "regions"
    crs: Optional[str] = None

    @abstractmethod
    def load_regions(self) -> List[Region]:
        """Read every region record.

        Raises:
            EmptyInputError: If the source cannot be read
        """
        pass
