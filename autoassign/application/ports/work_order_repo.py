"""Port interface for work-order reads and the assignment write."""

from abc import ABC, abstractmethod

from autoassign.domain.entities.work_order import WorkOrder


class WorkOrderRepository(ABC):
    @abstractmethod
    async def get_by_id(self, work_order_id: str) -> WorkOrder | None:
        ...

    @abstractmethod
    async def assign_if_unassigned(self, work_order_id: str, technician_id: str) -> bool:
        """Conditionally assign the technician.

        The write only succeeds while the work order still has no technician,
        re-checked at write time. Returns False when another writer won.
        """
        ...
