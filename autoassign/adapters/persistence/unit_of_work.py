"""SQLAlchemy unit of work: SAVEPOINT per evaluation on the request session."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession

from autoassign.application.ports.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class SqlUnitOfWork(UnitOfWork):
    def __init__(self, session: AsyncSession):
        self._session = session

    @asynccontextmanager
    async def savepoint(self) -> AsyncIterator[None]:
        nested = await self._session.begin_nested()
        try:
            yield
        except BaseException:
            try:
                await nested.rollback()
            except Exception:
                # Connection invalidated (e.g. a query cancelled by a timeout):
                # only a full rollback makes the session usable again.
                logger.warning("Savepoint rollback failed, rolling back transaction", exc_info=True)
                await self._session.rollback()
            raise
        else:
            await nested.commit()

    async def commit(self) -> None:
        await self._session.commit()
