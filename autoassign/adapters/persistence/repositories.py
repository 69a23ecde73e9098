"""SQLAlchemy repository implementations."""

from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload, selectinload

from autoassign.adapters.persistence.models import (
    AssignmentQueueModel,
    AutoAssignmentLogModel,
    AutoAssignmentRuleModel,
    AutoAssignmentSettingsModel,
    TechnicianModel,
    WorkOrderModel,
)
from autoassign.application.ports.log_repo import AssignmentLogRepository
from autoassign.application.ports.queue_repo import AssignmentQueueRepository
from autoassign.application.ports.rule_repo import RuleRepository
from autoassign.application.ports.settings_repo import SettingsRepository
from autoassign.application.ports.technician_repo import TechnicianRepository
from autoassign.application.ports.work_order_repo import WorkOrderRepository
from autoassign.domain.entities.assignment_log import AssignmentCandidate, AutoAssignmentLog
from autoassign.domain.entities.queue_item import AssignmentQueueItem
from autoassign.domain.entities.rule import AutoAssignmentRule
from autoassign.domain.entities.settings import AutoAssignmentSettings
from autoassign.domain.entities.technician import PerformanceStats, Shift, Technician
from autoassign.domain.entities.work_order import WorkOrder
from autoassign.domain.value_objects.enums import (
    ACTIVE_WORK_ORDER_STATUSES,
    ASSIGNED_WORK_ORDER_STATUS,
    AssignmentStatus,
    FallbackAction,
    NotificationChannel,
    QueueStatus,
    ShiftStatus,
)
from autoassign.domain.value_objects.geo_point import GeoPoint

# ─── Mappers ─────────────────────────────────────────────────────────


def _point(lat: float | None, lng: float | None) -> GeoPoint | None:
    if lat is None or lng is None:
        return None
    return GeoPoint(lat=lat, lng=lng)


def _work_order_to_domain(m: WorkOrderModel) -> WorkOrder:
    category = m.service_category
    return WorkOrder(
        id=m.id,
        status=m.status,
        priority=m.priority,
        location_id=m.location_id,
        location=_point(m.customer_lat, m.customer_lng),
        service_category_id=m.service_category_id,
        required_specialization=category.specialization_required if category else None,
        assigned_technician_id=m.assigned_technician_id,
    )


def _technician_to_domain(m: TechnicianModel, active_orders: int) -> Technician:
    performance = None
    if m.completion_rate is not None or m.sla_adherence_rate is not None:
        performance = PerformanceStats(
            completion_rate=m.completion_rate,
            sla_adherence_rate=m.sla_adherence_rate,
        )
    return Technician(
        id=m.id,
        name=m.name,
        location_id=m.location_id,
        location=_point(m.lat, m.lng),
        specializations=set(m.specializations) if m.specializations else set(),
        active_work_orders=active_orders,
        max_concurrent_orders=m.max_concurrent_orders,
        shifts=[
            Shift(start=s.start_datetime, end=s.end_datetime, status=ShiftStatus(s.status))
            for s in m.shifts
        ],
        performance=performance,
        registered_at=m.created_at,
    )


def _fallback_action(raw: str) -> FallbackAction | str:
    try:
        return FallbackAction(raw)
    except ValueError:
        return raw  # rejected later by AutoAssignmentRule.validate()


def _rule_to_domain(m: AutoAssignmentRuleModel) -> AutoAssignmentRule:
    return AutoAssignmentRule(
        id=m.id,
        name=m.name,
        description=m.description,
        is_active=m.is_active,
        priority=m.priority,
        weight_availability=m.weight_availability,
        weight_specialization=m.weight_specialization,
        weight_proximity=m.weight_proximity,
        weight_workload=m.weight_workload,
        weight_performance=m.weight_performance,
        max_distance_km=m.max_distance_km,
        require_specialization_match=m.require_specialization_match,
        respect_max_concurrent_orders=m.respect_max_concurrent_orders,
        allowed_locations=list(m.allowed_locations) if m.allowed_locations else None,
        allowed_service_categories=(
            list(m.allowed_service_categories) if m.allowed_service_categories else None
        ),
        priority_levels=list(m.priority_levels) if m.priority_levels else None,
        fallback_action=_fallback_action(m.fallback_action),
        fallback_user_id=m.fallback_user_id,
    )


def _rule_values(rule: AutoAssignmentRule) -> dict:
    action = rule.fallback_action
    return {
        "name": rule.name,
        "description": rule.description,
        "is_active": rule.is_active,
        "priority": rule.priority,
        **rule.weights(),
        "max_distance_km": rule.max_distance_km,
        "require_specialization_match": rule.require_specialization_match,
        "respect_max_concurrent_orders": rule.respect_max_concurrent_orders,
        "allowed_locations": rule.allowed_locations,
        "allowed_service_categories": rule.allowed_service_categories,
        "priority_levels": rule.priority_levels,
        "fallback_action": action.value if isinstance(action, FallbackAction) else action,
        "fallback_user_id": rule.fallback_user_id,
    }


def _log_to_domain(m: AutoAssignmentLogModel) -> AutoAssignmentLog:
    return AutoAssignmentLog(
        id=m.id,
        work_order_id=m.work_order_id,
        status=AssignmentStatus(m.status),
        assigned_at=m.assigned_at,
        rule_id=m.rule_id,
        assigned_technician_id=m.assigned_technician_id,
        assignment_score=m.assignment_score,
        availability_score=m.availability_score,
        specialization_score=m.specialization_score,
        proximity_score=m.proximity_score,
        workload_score=m.workload_score,
        performance_score=m.performance_score,
        candidates_evaluated=m.candidates_evaluated,
        candidates_data=tuple(AssignmentCandidate.from_dict(c) for c in (m.candidates_data or [])),
        failure_reason=m.failure_reason,
        fallback_action_taken=(
            FallbackAction(m.fallback_action_taken) if m.fallback_action_taken else None
        ),
        execution_time_ms=m.execution_time_ms,
    )


def _queue_to_domain(m: AssignmentQueueModel) -> AssignmentQueueItem:
    return AssignmentQueueItem(
        id=m.id,
        work_order_id=m.work_order_id,
        added_at=m.added_at,
        priority=m.priority,
        retry_count=m.retry_count,
        max_retries=m.max_retries,
        next_retry_at=m.next_retry_at,
        status=QueueStatus(m.status),
        assigned_at=m.assigned_at,
        failed_reason=m.failed_reason,
    )


_SETTINGS_FIELDS = (
    "auto_assignment_enabled",
    "auto_assign_on_status",
    "notify_on_fallback",
    "max_candidates_to_evaluate",
    "cache_technician_data_minutes",
    "business_hours_only",
    "business_hours_start",
    "business_hours_end",
    "business_days",
    "max_auto_assignments_per_run",
    "assignment_retry_delay_minutes",
    "queue_max_retries",
    "queue_item_ttl_hours",
)


def _settings_to_domain(m: AutoAssignmentSettingsModel) -> AutoAssignmentSettings:
    values = {name: getattr(m, name) for name in _SETTINGS_FIELDS}
    values["auto_assign_on_status"] = list(m.auto_assign_on_status or [])
    values["business_days"] = list(m.business_days or [])
    return AutoAssignmentSettings(
        id=m.id,
        notification_channels=[NotificationChannel(c) for c in (m.notification_channels or [])],
        **values,
    )


# ─── Repositories ────────────────────────────────────────────────────


class SqlWorkOrderRepository(WorkOrderRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def get_by_id(self, work_order_id: str) -> WorkOrder | None:
        result = await self._s.execute(
            select(WorkOrderModel)
            .options(joinedload(WorkOrderModel.service_category))
            .where(WorkOrderModel.id == work_order_id)
        )
        m = result.scalar_one_or_none()
        return _work_order_to_domain(m) if m else None

    async def assign_if_unassigned(self, work_order_id: str, technician_id: str) -> bool:
        # The IS NULL predicate is evaluated under the row lock taken by UPDATE,
        # so exactly one of two racing writers matches.
        result = await self._s.execute(
            update(WorkOrderModel)
            .where(WorkOrderModel.id == work_order_id)
            .where(WorkOrderModel.assigned_technician_id.is_(None))
            .values(
                assigned_technician_id=technician_id,
                status=ASSIGNED_WORK_ORDER_STATUS,
                updated_at=func.now(),
            )
        )
        await self._s.flush()
        return result.rowcount == 1


class SqlTechnicianRepository(TechnicianRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def get_active(self, max_age: timedelta | None = None) -> list[Technician]:
        result = await self._s.execute(
            select(TechnicianModel)
            .options(selectinload(TechnicianModel.shifts))
            .where(TechnicianModel.status == "active")
            .order_by(TechnicianModel.id)
        )
        models = list(result.scalars())
        if not models:
            return []

        load_result = await self._s.execute(
            select(WorkOrderModel.assigned_technician_id, func.count())
            .where(WorkOrderModel.status.in_(ACTIVE_WORK_ORDER_STATUSES))
            .where(WorkOrderModel.assigned_technician_id.in_([m.id for m in models]))
            .group_by(WorkOrderModel.assigned_technician_id)
        )
        loads = {tech_id: count for tech_id, count in load_result.all()}
        return [_technician_to_domain(m, loads.get(m.id, 0)) for m in models]


class SqlRuleRepository(RuleRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def get_active(self) -> list[AutoAssignmentRule]:
        result = await self._s.execute(
            select(AutoAssignmentRuleModel)
            .where(AutoAssignmentRuleModel.is_active.is_(True))
            .order_by(AutoAssignmentRuleModel.priority, AutoAssignmentRuleModel.id)
        )
        return [_rule_to_domain(m) for m in result.scalars()]

    async def get_all(self) -> list[AutoAssignmentRule]:
        result = await self._s.execute(
            select(AutoAssignmentRuleModel).order_by(
                AutoAssignmentRuleModel.priority, AutoAssignmentRuleModel.id
            )
        )
        return [_rule_to_domain(m) for m in result.scalars()]

    async def get_by_id(self, rule_id: str) -> AutoAssignmentRule | None:
        m = await self._s.get(AutoAssignmentRuleModel, rule_id)
        return _rule_to_domain(m) if m else None

    async def save(self, rule: AutoAssignmentRule) -> AutoAssignmentRule:
        m = await self._s.get(AutoAssignmentRuleModel, rule.id) if rule.id else None
        if m is None:
            m = AutoAssignmentRuleModel(**_rule_values(rule))
            if rule.id:
                m.id = rule.id
            self._s.add(m)
        else:
            for key, value in _rule_values(rule).items():
                setattr(m, key, value)
        await self._s.flush()
        rule.id = m.id
        return rule

    async def set_active(self, rule_id: str, is_active: bool) -> bool:
        result = await self._s.execute(
            update(AutoAssignmentRuleModel)
            .where(AutoAssignmentRuleModel.id == rule_id)
            .values(is_active=is_active)
        )
        await self._s.flush()
        return result.rowcount == 1

    async def delete(self, rule_id: str) -> bool:
        # auto_assignment_logs.rule_id is ON DELETE SET NULL
        result = await self._s.execute(
            delete(AutoAssignmentRuleModel).where(AutoAssignmentRuleModel.id == rule_id)
        )
        await self._s.flush()
        return result.rowcount == 1


class SqlAssignmentLogRepository(AssignmentLogRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def add(self, log: AutoAssignmentLog) -> AutoAssignmentLog:
        m = AutoAssignmentLogModel(
            work_order_id=log.work_order_id,
            rule_id=log.rule_id,
            assigned_technician_id=log.assigned_technician_id,
            assignment_score=log.assignment_score,
            availability_score=log.availability_score,
            specialization_score=log.specialization_score,
            proximity_score=log.proximity_score,
            workload_score=log.workload_score,
            performance_score=log.performance_score,
            candidates_evaluated=log.candidates_evaluated,
            candidates_data=[c.to_dict() for c in log.candidates_data],
            status=log.status.value,
            failure_reason=log.failure_reason,
            fallback_action_taken=(
                log.fallback_action_taken.value if log.fallback_action_taken else None
            ),
            assigned_at=log.assigned_at,
            execution_time_ms=log.execution_time_ms,
        )
        self._s.add(m)
        await self._s.flush()
        return _log_to_domain(m)

    async def get_recent(
        self, work_order_id: str | None = None, limit: int = 100
    ) -> list[AutoAssignmentLog]:
        query = select(AutoAssignmentLogModel).order_by(AutoAssignmentLogModel.assigned_at.desc())
        if work_order_id:
            query = query.where(AutoAssignmentLogModel.work_order_id == work_order_id)
        result = await self._s.execute(query.limit(limit))
        return [_log_to_domain(m) for m in result.scalars()]


class SqlAssignmentQueueRepository(AssignmentQueueRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def get_open_for_work_order(self, work_order_id: str) -> AssignmentQueueItem | None:
        result = await self._s.execute(
            select(AssignmentQueueModel)
            .where(AssignmentQueueModel.work_order_id == work_order_id)
            .where(
                AssignmentQueueModel.status.in_(
                    [QueueStatus.PENDING.value, QueueStatus.PROCESSING.value]
                )
            )
            .limit(1)
        )
        m = result.scalar_one_or_none()
        return _queue_to_domain(m) if m else None

    async def add(self, item: AssignmentQueueItem) -> AssignmentQueueItem:
        m = AssignmentQueueModel(
            work_order_id=item.work_order_id,
            priority=item.priority,
            added_at=item.added_at,
            retry_count=item.retry_count,
            max_retries=item.max_retries,
            next_retry_at=item.next_retry_at,
            status=item.status.value,
        )
        self._s.add(m)
        await self._s.flush()
        item.id = m.id
        return item

    async def get_due(self, now: datetime, limit: int) -> list[AssignmentQueueItem]:
        result = await self._s.execute(
            select(AssignmentQueueModel)
            .where(AssignmentQueueModel.status == QueueStatus.PENDING.value)
            .where(
                (AssignmentQueueModel.next_retry_at.is_(None))
                | (AssignmentQueueModel.next_retry_at <= now)
            )
            .order_by(AssignmentQueueModel.priority.desc(), AssignmentQueueModel.added_at)
            .limit(limit)
            .with_for_update(skip_locked=True)
        )
        return [_queue_to_domain(m) for m in result.scalars()]

    async def update(self, item: AssignmentQueueItem) -> AssignmentQueueItem:
        await self._s.execute(
            update(AssignmentQueueModel)
            .where(AssignmentQueueModel.id == item.id)
            .values(
                retry_count=item.retry_count,
                next_retry_at=item.next_retry_at,
                status=item.status.value,
                assigned_at=item.assigned_at,
                failed_reason=item.failed_reason,
            )
        )
        await self._s.flush()
        return item


class SqlSettingsRepository(SettingsRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def get(self) -> AutoAssignmentSettings:
        result = await self._s.execute(select(AutoAssignmentSettingsModel).limit(1))
        m = result.scalar_one_or_none()
        return _settings_to_domain(m) if m else AutoAssignmentSettings()

    async def save(self, settings: AutoAssignmentSettings) -> AutoAssignmentSettings:
        result = await self._s.execute(select(AutoAssignmentSettingsModel).limit(1))
        m = result.scalar_one_or_none()
        if m is None:
            m = AutoAssignmentSettingsModel()
            self._s.add(m)
        for name in _SETTINGS_FIELDS:
            setattr(m, name, getattr(settings, name))
        m.notification_channels = [c.value for c in settings.notification_channels]
        await self._s.flush()
        settings.id = m.id
        return settings
