"""Port interface for technician reads."""

from abc import ABC, abstractmethod
from datetime import timedelta

from autoassign.domain.entities.technician import Technician


class TechnicianRepository(ABC):
    @abstractmethod
    async def get_active(self, max_age: timedelta | None = None) -> list[Technician]:
        """Active technicians with shifts, performance and current load populated.

        *max_age* is a hint for caching implementations: data older than this
        must be refreshed. Uncached implementations always read fresh data.
        """
        ...

    def invalidate(self) -> None:
        """Drop any cached technician data. No-op for uncached repositories."""
