"""Port interface for transaction boundaries around an evaluation."""

from abc import ABC, abstractmethod
from typing import AsyncContextManager


class UnitOfWork(ABC):
    @abstractmethod
    def savepoint(self) -> AsyncContextManager[None]:
        """Scope whose writes are undone if the block raises.

        On exit by exception the transaction is left usable for the next
        statement, and the exception propagates.
        """
        ...

    @abstractmethod
    async def commit(self) -> None:
        ...
