"""ProcessAssignmentQueueUseCase — scheduled sweep over queued work orders."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable

from autoassign.application.outcomes import Assigned, Failed, Skipped
from autoassign.application.ports.queue_repo import AssignmentQueueRepository
from autoassign.application.ports.settings_repo import SettingsRepository
from autoassign.application.ports.unit_of_work import UnitOfWork
from autoassign.application.use_cases.auto_assign import AutoAssignWorkOrderUseCase
from autoassign.domain.entities.queue_item import AssignmentQueueItem
from autoassign.domain.entities.settings import AutoAssignmentSettings
from autoassign.domain.value_objects.enums import QueueStatus, SkipReason

logger = logging.getLogger(__name__)


@dataclass
class SweepItemResult:
    work_order_id: str
    queue_status: QueueStatus
    success: bool
    message: str | None = None
    assigned_technician_id: str | None = None


@dataclass
class SweepSummary:
    """Summary of one sweep."""

    processed: int = 0
    assigned: int = 0
    retrying: int = 0
    failed: int = 0
    expired: int = 0
    results: list[SweepItemResult] = field(default_factory=list)

    def add(self, result: SweepItemResult) -> None:
        self.results.append(result)
        self.processed += 1
        if result.queue_status == QueueStatus.ASSIGNED:
            self.assigned += 1
        elif result.queue_status == QueueStatus.PENDING:
            self.retrying += 1
        elif result.queue_status == QueueStatus.FAILED:
            self.failed += 1
        elif result.queue_status == QueueStatus.EXPIRED:
            self.expired += 1


class ProcessAssignmentQueueUseCase:
    """Re-evaluate due queue items; drive each through its status lifecycle.

    pending → processing → assigned | failed | expired, or back to pending
    with ``next_retry_at`` pushed out by the configured retry delay.

    Each item runs in its own savepoint and is committed before the next one,
    so a database error on one item cannot undo or block the others.
    """

    def __init__(
        self,
        auto_assign: AutoAssignWorkOrderUseCase,
        queue_repo: AssignmentQueueRepository,
        settings_repo: SettingsRepository,
        unit_of_work: UnitOfWork,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._auto_assign = auto_assign
        self._queue = queue_repo
        self._settings = settings_repo
        self._uow = unit_of_work
        self._clock = clock

    async def execute(self, now: datetime | None = None) -> SweepSummary:
        now = now or self._clock()
        summary = SweepSummary()

        settings = await self._settings.get()
        if not settings.auto_assignment_enabled:
            logger.info("Queue sweep skipped: auto-assignment is disabled")
            return summary

        items = await self._queue.get_due(now, settings.max_auto_assignments_per_run)
        logger.info("Queue sweep: %d due item(s)", len(items))

        ttl = timedelta(hours=settings.queue_item_ttl_hours)
        retry_delay = timedelta(minutes=settings.assignment_retry_delay_minutes)

        for item in items:
            try:
                async with self._uow.savepoint():
                    result = await self._process_item(item, settings, now, ttl, retry_delay)
            except Exception as e:
                # Item rolled back to its stored state; the next sweep retries it
                logger.exception("Queue item %s (work order %s) failed", item.id, item.work_order_id)
                result = SweepItemResult(
                    work_order_id=item.work_order_id,
                    queue_status=QueueStatus.PENDING,
                    success=False,
                    message=str(e) or type(e).__name__,
                )
            summary.add(result)
            await self._uow.commit()

        logger.info(
            "Queue sweep complete: %d processed, %d assigned, %d retrying, %d failed, %d expired",
            summary.processed, summary.assigned, summary.retrying, summary.failed, summary.expired,
        )
        return summary

    async def _process_item(
        self,
        item: AssignmentQueueItem,
        settings: AutoAssignmentSettings,
        now: datetime,
        ttl: timedelta,
        retry_delay: timedelta,
    ) -> SweepItemResult:
        if item.is_expired(now, ttl):
            item.mark_expired()
            await self._queue.update(item)
            return SweepItemResult(
                work_order_id=item.work_order_id,
                queue_status=item.status,
                success=False,
                message=item.failed_reason,
            )

        item.mark_processing()
        await self._queue.update(item)

        result = await self._auto_assign.evaluate(item.work_order_id, settings=settings, now=now)
        return await self._settle(item, result.outcome, result.response.message, now, retry_delay)

    async def _settle(
        self,
        item: AssignmentQueueItem,
        outcome,
        message: str | None,
        now: datetime,
        retry_delay: timedelta,
    ) -> SweepItemResult:
        assigned_to = None
        if isinstance(outcome, Assigned):
            item.mark_assigned(now)
            assigned_to = outcome.winner.technician_id
        elif isinstance(outcome, Skipped) and outcome.reason == SkipReason.ALREADY_ASSIGNED:
            item.mark_assigned(now)
        elif isinstance(outcome, Failed) and outcome.superseded:
            item.mark_assigned(now)
        else:
            item.record_miss(now, retry_delay, message or "No suitable technician found")

        await self._queue.update(item)
        return SweepItemResult(
            work_order_id=item.work_order_id,
            queue_status=item.status,
            success=isinstance(outcome, Assigned),
            message=message,
            assigned_technician_id=assigned_to,
        )
