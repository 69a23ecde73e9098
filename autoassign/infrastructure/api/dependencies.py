"""FastAPI dependency injection — wires adapters into use cases."""

from __future__ import annotations

import logging

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from autoassign.adapters.notifications.log_notifier import LogNotifier
from autoassign.adapters.notifications.webhook_notifier import WebhookNotifier
from autoassign.adapters.persistence.database import get_session
from autoassign.adapters.persistence.repositories import (
    SqlAssignmentLogRepository,
    SqlAssignmentQueueRepository,
    SqlRuleRepository,
    SqlSettingsRepository,
    SqlTechnicianRepository,
    SqlWorkOrderRepository,
)
from autoassign.adapters.persistence.technician_cache import (
    CachedTechnicianRepository,
    TechnicianSnapshot,
)
from autoassign.adapters.persistence.unit_of_work import SqlUnitOfWork
from autoassign.application.ports.notification_port import NotificationPort
from autoassign.application.use_cases.auto_assign import AutoAssignWorkOrderUseCase
from autoassign.application.use_cases.process_queue import ProcessAssignmentQueueUseCase
from autoassign.config import settings

logger = logging.getLogger(__name__)

# Process-wide singletons
_technician_snapshot = TechnicianSnapshot()

_notifier: NotificationPort
if settings.notification_webhook_url:
    _notifier = WebhookNotifier()
    logger.info("Using webhook notifier: %s", settings.notification_webhook_url)
else:
    _notifier = LogNotifier()


def build_auto_assign_uc(session: AsyncSession) -> AutoAssignWorkOrderUseCase:
    """Wire the engine onto one session; shared by the API and the CLI."""
    return AutoAssignWorkOrderUseCase(
        work_order_repo=SqlWorkOrderRepository(session),
        technician_repo=CachedTechnicianRepository(
            SqlTechnicianRepository(session), _technician_snapshot
        ),
        rule_repo=SqlRuleRepository(session),
        log_repo=SqlAssignmentLogRepository(session),
        queue_repo=SqlAssignmentQueueRepository(session),
        settings_repo=SqlSettingsRepository(session),
        notifier=_notifier,
        unit_of_work=SqlUnitOfWork(session),
        timeout_seconds=settings.evaluation_timeout_seconds,
    )


def build_process_queue_uc(session: AsyncSession) -> ProcessAssignmentQueueUseCase:
    return ProcessAssignmentQueueUseCase(
        auto_assign=build_auto_assign_uc(session),
        queue_repo=SqlAssignmentQueueRepository(session),
        settings_repo=SqlSettingsRepository(session),
        unit_of_work=SqlUnitOfWork(session),
    )


def get_rule_repo(session: AsyncSession = Depends(get_session)) -> SqlRuleRepository:
    return SqlRuleRepository(session)


def get_settings_repo(session: AsyncSession = Depends(get_session)) -> SqlSettingsRepository:
    return SqlSettingsRepository(session)


def get_log_repo(session: AsyncSession = Depends(get_session)) -> SqlAssignmentLogRepository:
    return SqlAssignmentLogRepository(session)


def get_auto_assign_uc(
    session: AsyncSession = Depends(get_session),
) -> AutoAssignWorkOrderUseCase:
    return build_auto_assign_uc(session)


def get_process_queue_uc(
    session: AsyncSession = Depends(get_session),
) -> ProcessAssignmentQueueUseCase:
    return build_process_queue_uc(session)
