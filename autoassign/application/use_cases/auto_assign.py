"""AutoAssignWorkOrderUseCase — rules → pool → scores → assign or fall back."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Union

from autoassign.application.outcomes import (
    Assigned,
    EvaluationResult,
    Failed,
    FellBack,
    Outcome,
    Skipped,
)
from autoassign.application.ports.log_repo import AssignmentLogRepository
from autoassign.application.ports.notification_port import NotificationPort
from autoassign.application.ports.queue_repo import AssignmentQueueRepository
from autoassign.application.ports.rule_repo import RuleRepository
from autoassign.application.ports.settings_repo import SettingsRepository
from autoassign.application.ports.technician_repo import TechnicianRepository
from autoassign.application.ports.unit_of_work import UnitOfWork
from autoassign.application.ports.work_order_repo import WorkOrderRepository
from autoassign.domain.entities.assignment_log import AssignmentCandidate, AutoAssignmentLog
from autoassign.domain.entities.notification import MANAGER_ROLE, Notification
from autoassign.domain.entities.queue_item import AssignmentQueueItem, queue_priority_for
from autoassign.domain.entities.rule import AutoAssignmentRule
from autoassign.domain.entities.settings import AutoAssignmentSettings
from autoassign.domain.entities.work_order import WorkOrder
from autoassign.domain.policies.candidate_pool import (
    filter_pool,
    order_rules,
    rule_applies,
    truncate_pool,
)
from autoassign.domain.policies.scoring import score_pool
from autoassign.domain.policies.selection import rank_candidates, select_best
from autoassign.domain.value_objects.enums import (
    AssignmentStatus,
    FallbackAction,
    SkipReason,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0


class WorkOrderNotFoundError(LookupError):
    pass


@dataclass
class _Attempt:
    """Request-scoped bookkeeping shared between the decide and apply phases."""

    work_order_id: str
    now: datetime
    started: float
    rule_id: str | None = None

    def elapsed_ms(self) -> int:
        return int(round((time.monotonic() - self.started) * 1000))


@dataclass(frozen=True)
class _Selection:
    rule: AutoAssignmentRule
    winner: AssignmentCandidate
    candidates: tuple[AssignmentCandidate, ...]


@dataclass(frozen=True)
class _Exhaustion:
    work_order: WorkOrder
    rule: AutoAssignmentRule
    candidates: tuple[AssignmentCandidate, ...]
    reason: str
    settings: AutoAssignmentSettings = field(repr=False)


_Decision = Union[_Selection, _Exhaustion, Skipped]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AutoAssignWorkOrderUseCase:
    """Picks the best technician for one work order.

    The evaluation runs in two phases:
      1. decide — reads only (settings, work order, rules, technicians) and
         pure scoring, bounded by a wall-clock timeout;
      2. apply — the conditional assignment write or the fallback action,
         followed by exactly one log insert.

    Both phases run inside one savepoint, so the assignment write, the queue
    entry and the log row land together or not at all. Nothing escapes
    ``evaluate``: every failure rolls the savepoint back and becomes a
    ``Failed`` outcome with a ``failed`` log row.
    """

    def __init__(
        self,
        work_order_repo: WorkOrderRepository,
        technician_repo: TechnicianRepository,
        rule_repo: RuleRepository,
        log_repo: AssignmentLogRepository,
        queue_repo: AssignmentQueueRepository,
        settings_repo: SettingsRepository,
        notifier: NotificationPort,
        unit_of_work: UnitOfWork,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._work_orders = work_order_repo
        self._technicians = technician_repo
        self._rules = rule_repo
        self._logs = log_repo
        self._queue = queue_repo
        self._settings = settings_repo
        self._notifier = notifier
        self._uow = unit_of_work
        self._timeout = timeout_seconds
        self._clock = clock

    async def evaluate(
        self,
        work_order_id: str,
        settings: AutoAssignmentSettings | None = None,
        now: datetime | None = None,
    ) -> EvaluationResult:
        """Evaluate one work order and return a well-formed result. Never raises.

        Args:
            work_order_id: id of the work order to assign.
            settings: global settings for this run; loaded once if omitted.
            now: evaluation instant (shift and business-hours checks).
        """
        attempt = _Attempt(
            work_order_id=work_order_id,
            now=now or self._clock(),
            started=time.monotonic(),
        )

        try:
            async with self._uow.savepoint():
                return await self._run(attempt, settings)
        except asyncio.TimeoutError:
            reason = f"Evaluation timed out after {self._timeout:g}s"
            logger.error("Work order %s: %s", work_order_id, reason)
        except Exception as e:
            logger.exception("Error evaluating work order %s", work_order_id)
            reason = _describe(e)
        return await self._fail(attempt, reason)

    async def _run(
        self,
        attempt: _Attempt,
        settings: AutoAssignmentSettings | None,
    ) -> EvaluationResult:
        decision = await asyncio.wait_for(self._decide(attempt, settings), timeout=self._timeout)

        if isinstance(decision, Skipped):
            logger.info("Work order %s: skipped (%s)", attempt.work_order_id, decision.message)
            return EvaluationResult(
                work_order_id=attempt.work_order_id,
                outcome=decision,
                execution_time_ms=attempt.elapsed_ms(),
            )
        if isinstance(decision, _Selection):
            return await self._apply_selection(attempt, decision)
        return await self._apply_fallback(attempt, decision)

    # ─── Phase 1: decide ─────────────────────────────────────────────

    async def _decide(
        self,
        attempt: _Attempt,
        settings: AutoAssignmentSettings | None,
    ) -> _Decision:
        if settings is None:
            settings = await self._settings.get()
        if not settings.auto_assignment_enabled:
            return Skipped(SkipReason.DISABLED, "Auto-assignment is disabled")

        work_order = await self._work_orders.get_by_id(attempt.work_order_id)
        if work_order is None:
            raise WorkOrderNotFoundError(f"Work order not found: {attempt.work_order_id}")

        if work_order.is_assigned():
            return Skipped(SkipReason.ALREADY_ASSIGNED, "Work order is already assigned")
        if not settings.triggers_on(work_order.status):
            return Skipped(
                SkipReason.STATUS_NOT_ELIGIBLE,
                f"Status '{work_order.status}' does not trigger auto-assignment",
            )
        if settings.business_hours_only and not settings.within_business_hours(attempt.now):
            return Skipped(SkipReason.OUTSIDE_BUSINESS_HOURS, "Outside business hours")

        rules = order_rules(await self._rules.get_active())
        if not rules:
            return Skipped(SkipReason.NO_ACTIVE_RULES, "No active assignment rules found")
        for rule in rules:
            rule.validate()

        applicable = [r for r in rules if rule_applies(r, work_order)]
        if not applicable:
            return Skipped(
                SkipReason.NO_APPLICABLE_RULE,
                f"No active rule covers priority '{work_order.priority}'",
            )

        technicians = await self._technicians.get_active(
            max_age=timedelta(minutes=settings.cache_technician_data_minutes)
        )

        exhaustion: _Exhaustion | None = None
        for rule in applicable:
            attempt.rule_id = rule.id
            pool = filter_pool(rule, technicians)
            members = truncate_pool(pool, work_order, settings.max_candidates_to_evaluate)
            ranked = rank_candidates(score_pool(rule, members, work_order, attempt.now))
            best = select_best(ranked)
            # ranking uses full precision; only the stored snapshot is rounded
            candidates = tuple(c.rounded() for c in ranked)
            winner = best.rounded() if best is not None else None

            logger.debug(
                "Work order %s: rule %s evaluated %d candidate(s), %d eligible",
                work_order.id, rule.name, len(candidates),
                sum(1 for c in candidates if c.eligible),
            )

            if winner is not None:
                return _Selection(rule=rule, winner=winner, candidates=candidates)

            if exhaustion is None:
                reason = (
                    "No available technicians found"
                    if not candidates
                    else "No suitable technicians found after scoring"
                )
                exhaustion = _Exhaustion(
                    work_order=work_order,
                    rule=rule,
                    candidates=candidates,
                    reason=reason,
                    settings=settings,
                )

        attempt.rule_id = exhaustion.rule.id
        return exhaustion

    # ─── Phase 2: apply ──────────────────────────────────────────────

    async def _apply_selection(self, attempt: _Attempt, selection: _Selection) -> EvaluationResult:
        winner = selection.winner
        assigned = await self._work_orders.assign_if_unassigned(
            attempt.work_order_id, winner.technician_id
        )

        if not assigned:
            reason = "Superseded: work order was assigned by a concurrent evaluation"
            logger.warning("Work order %s: %s", attempt.work_order_id, reason)
            log = await self._logs.add(
                AutoAssignmentLog(
                    work_order_id=attempt.work_order_id,
                    status=AssignmentStatus.FAILED,
                    assigned_at=attempt.now,
                    rule_id=selection.rule.id,
                    candidates_evaluated=len(selection.candidates),
                    candidates_data=selection.candidates,
                    failure_reason=reason,
                    execution_time_ms=attempt.elapsed_ms(),
                )
            )
            return EvaluationResult(
                work_order_id=attempt.work_order_id,
                outcome=Failed(reason=reason, superseded=True),
                execution_time_ms=log.execution_time_ms,
                log=log,
            )

        self._technicians.invalidate()
        log = await self._logs.add(
            AutoAssignmentLog.for_success(
                work_order_id=attempt.work_order_id,
                rule_id=selection.rule.id,
                winner=winner,
                candidates=selection.candidates,
                assigned_at=attempt.now,
                execution_time_ms=attempt.elapsed_ms(),
            )
        )

        logger.info(
            "Work order %s → technician %s (score %.2f, rule %s, %d candidate(s))",
            attempt.work_order_id, winner.technician_name, winner.total_score,
            selection.rule.name, len(selection.candidates),
        )

        return EvaluationResult(
            work_order_id=attempt.work_order_id,
            outcome=Assigned(
                winner=winner,
                rule_id=selection.rule.id,
                candidates_evaluated=len(selection.candidates),
            ),
            execution_time_ms=log.execution_time_ms,
            log=log,
        )

    async def _apply_fallback(self, attempt: _Attempt, exhaustion: _Exhaustion) -> EvaluationResult:
        rule = exhaustion.rule
        action = rule.fallback_action

        if action == FallbackAction.QUEUE:
            await self._enqueue(exhaustion.work_order, attempt.now, exhaustion.settings)

        logger.info(
            "Work order %s: %s → fallback '%s' (rule %s)",
            attempt.work_order_id, exhaustion.reason, action.value, rule.name,
        )

        log = await self._logs.add(
            AutoAssignmentLog(
                work_order_id=attempt.work_order_id,
                status=AssignmentStatus.FALLBACK,
                assigned_at=attempt.now,
                rule_id=rule.id,
                candidates_evaluated=len(exhaustion.candidates),
                candidates_data=exhaustion.candidates,
                failure_reason=exhaustion.reason,
                fallback_action_taken=action,
                execution_time_ms=attempt.elapsed_ms(),
            )
        )

        # Notify only after the log row is written
        notification_sent = False
        if action != FallbackAction.QUEUE:
            notification_sent = await self._notify(exhaustion)

        return EvaluationResult(
            work_order_id=attempt.work_order_id,
            outcome=FellBack(
                action=action,
                reason=exhaustion.reason,
                rule_id=rule.id,
                candidates_evaluated=len(exhaustion.candidates),
                notification_sent=notification_sent,
            ),
            execution_time_ms=log.execution_time_ms,
            log=log,
        )

    async def _enqueue(
        self,
        work_order: WorkOrder,
        now: datetime,
        settings: AutoAssignmentSettings,
    ) -> AssignmentQueueItem:
        existing = await self._queue.get_open_for_work_order(work_order.id)
        if existing is not None:
            logger.debug("Work order %s already queued (item %s)", work_order.id, existing.id)
            return existing
        return await self._queue.add(
            AssignmentQueueItem(
                id=None,
                work_order_id=work_order.id,
                added_at=now,
                priority=queue_priority_for(work_order.priority),
                max_retries=settings.queue_max_retries,
            )
        )

    async def _notify(self, exhaustion: _Exhaustion) -> bool:
        """Dispatch the escalation / manager notice. Delivery failure is not fatal."""
        settings = exhaustion.settings
        if not settings.notify_on_fallback or not settings.notification_channels:
            logger.info(
                "Work order %s: fallback notifications disabled, nothing sent",
                exhaustion.work_order.id,
            )
            return False

        rule = exhaustion.rule
        work_order = exhaustion.work_order
        if rule.fallback_action == FallbackAction.ESCALATE:
            title = f"Work order {work_order.id} escalated"
            priority = "high"
        else:
            title = f"Work order {work_order.id} needs manual assignment"
            priority = "normal"

        notification = Notification(
            work_order_id=work_order.id,
            action=rule.fallback_action,
            title=title,
            body=f"{exhaustion.reason} (rule: {rule.name}).",
            recipient_user_id=rule.fallback_user_id,
            recipient_role=None if rule.fallback_user_id else MANAGER_ROLE,
            channels=tuple(settings.notification_channels),
            priority=priority,
        )

        try:
            await self._notifier.send(notification)
        except Exception:
            logger.warning(
                "Notification delivery failed for work order %s (%s)",
                work_order.id, notification.recipient(), exc_info=True,
            )
            return False
        return True

    # ─── Failure path ────────────────────────────────────────────────

    async def _fail(self, attempt: _Attempt, reason: str) -> EvaluationResult:
        outcome: Outcome = Failed(reason=reason)
        log = AutoAssignmentLog(
            work_order_id=attempt.work_order_id,
            status=AssignmentStatus.FAILED,
            assigned_at=attempt.now,
            rule_id=attempt.rule_id,
            failure_reason=reason,
            execution_time_ms=attempt.elapsed_ms(),
        )
        try:
            async with self._uow.savepoint():
                log = await self._logs.add(log)
        except Exception:
            logger.exception("Could not write failure log for work order %s", attempt.work_order_id)
            return EvaluationResult(
                work_order_id=attempt.work_order_id,
                outcome=outcome,
                execution_time_ms=attempt.elapsed_ms(),
            )
        return EvaluationResult(
            work_order_id=attempt.work_order_id,
            outcome=outcome,
            execution_time_ms=log.execution_time_ms,
            log=log,
        )


def _describe(error: Exception) -> str:
    return str(error) or type(error).__name__
