"""Port interface for the append-only assignment log."""

from abc import ABC, abstractmethod

from autoassign.domain.entities.assignment_log import AutoAssignmentLog


class AssignmentLogRepository(ABC):
    @abstractmethod
    async def add(self, log: AutoAssignmentLog) -> AutoAssignmentLog:
        """Insert a new log row. There is deliberately no update method."""
        ...

    @abstractmethod
    async def get_recent(
        self, work_order_id: str | None = None, limit: int = 100
    ) -> list[AutoAssignmentLog]:
        """Newest first, optionally restricted to one work order."""
        ...
