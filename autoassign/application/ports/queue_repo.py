"""Port interface for the assignment queue."""

from abc import ABC, abstractmethod
from datetime import datetime

from autoassign.domain.entities.queue_item import AssignmentQueueItem


class AssignmentQueueRepository(ABC):
    @abstractmethod
    async def get_open_for_work_order(self, work_order_id: str) -> AssignmentQueueItem | None:
        """The pending or processing item for this work order, if any."""
        ...

    @abstractmethod
    async def add(self, item: AssignmentQueueItem) -> AssignmentQueueItem:
        ...

    @abstractmethod
    async def get_due(self, now: datetime, limit: int) -> list[AssignmentQueueItem]:
        """Pending items ready to run, by (priority DESC, added_at ASC)."""
        ...

    @abstractmethod
    async def update(self, item: AssignmentQueueItem) -> AssignmentQueueItem:
        ...
