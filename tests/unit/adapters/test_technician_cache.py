"""Tests for the technician snapshot cache."""

from datetime import timedelta

import pytest

from autoassign.adapters.persistence.technician_cache import (
    CachedTechnicianRepository,
    TechnicianSnapshot,
)
from autoassign.domain.entities.technician import Technician
from tests.fakes import FakeTechnicianRepo


@pytest.fixture
def inner():
    return FakeTechnicianRepo([Technician(id="t1", name="Tom")])


@pytest.mark.asyncio
async def test_second_read_within_ttl_is_cached(inner):
    repo = CachedTechnicianRepository(inner, TechnicianSnapshot())

    first = await repo.get_active(max_age=timedelta(minutes=5))
    second = await repo.get_active(max_age=timedelta(minutes=5))

    assert first == second
    assert inner.calls == 1


@pytest.mark.asyncio
async def test_zero_ttl_always_reads_through(inner):
    repo = CachedTechnicianRepository(inner, TechnicianSnapshot())

    await repo.get_active(max_age=timedelta(0))
    await repo.get_active(max_age=timedelta(0))

    assert inner.calls == 2


@pytest.mark.asyncio
async def test_invalidate_forces_fresh_read(inner):
    repo = CachedTechnicianRepository(inner, TechnicianSnapshot())

    await repo.get_active(max_age=timedelta(minutes=5))
    repo.invalidate()
    await repo.get_active(max_age=timedelta(minutes=5))

    assert inner.calls == 2


@pytest.mark.asyncio
async def test_snapshot_shared_between_request_scoped_repos(inner):
    snapshot = TechnicianSnapshot()
    other_inner = FakeTechnicianRepo([])

    await CachedTechnicianRepository(inner, snapshot).get_active(max_age=timedelta(minutes=5))
    cached = await CachedTechnicianRepository(other_inner, snapshot).get_active(
        max_age=timedelta(minutes=5)
    )

    assert [t.id for t in cached] == ["t1"]
    assert other_inner.calls == 0


def test_snapshot_expires():
    snapshot = TechnicianSnapshot()
    snapshot.put([Technician(id="t1", name="Tom")])

    assert snapshot.get(timedelta(minutes=5)) is not None
    assert snapshot.get(timedelta(seconds=-1)) is None
