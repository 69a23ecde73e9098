"""Caching decorator for TechnicianRepository — honours the settings TTL."""

from __future__ import annotations

import logging
import time
from datetime import timedelta

from autoassign.application.ports.technician_repo import TechnicianRepository
from autoassign.domain.entities.technician import Technician

logger = logging.getLogger(__name__)


class TechnicianSnapshot:
    """Process-wide holder for the last technician read.

    Shared across requests; each request wraps its own session-bound
    repository around the same snapshot.
    """

    def __init__(self):
        self._technicians: list[Technician] | None = None
        self._fetched_at: float = 0.0

    def get(self, max_age: timedelta) -> list[Technician] | None:
        if self._technicians is None:
            return None
        if time.monotonic() - self._fetched_at > max_age.total_seconds():
            return None
        return self._technicians

    def put(self, technicians: list[Technician]) -> None:
        self._technicians = technicians
        self._fetched_at = time.monotonic()

    def clear(self) -> None:
        self._technicians = None


class CachedTechnicianRepository(TechnicianRepository):
    def __init__(self, inner: TechnicianRepository, snapshot: TechnicianSnapshot):
        self._inner = inner
        self._snapshot = snapshot

    async def get_active(self, max_age: timedelta | None = None) -> list[Technician]:
        if max_age is not None and max_age > timedelta(0):
            cached = self._snapshot.get(max_age)
            if cached is not None:
                logger.debug("Technician cache hit (%d technicians)", len(cached))
                return cached

        technicians = await self._inner.get_active()
        self._snapshot.put(technicians)
        return technicians

    def invalidate(self) -> None:
        self._snapshot.clear()
