"""AutoAssignmentSettings — global configuration gating the engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, time

from autoassign.domain.value_objects.enums import NotificationChannel


def _default_statuses() -> list[str]:
    return ["Open"]


def _default_channels() -> list[NotificationChannel]:
    return [NotificationChannel.IN_APP]


def _default_business_days() -> list[int]:
    return [1, 2, 3, 4, 5]


@dataclass
class AutoAssignmentSettings:
    id: str | None = None
    auto_assignment_enabled: bool = False
    auto_assign_on_status: list[str] = field(default_factory=_default_statuses)

    notify_on_fallback: bool = True
    notification_channels: list[NotificationChannel] = field(default_factory=_default_channels)

    max_candidates_to_evaluate: int = 50
    cache_technician_data_minutes: int = 5

    business_hours_only: bool = False
    business_hours_start: time = time(8, 0)
    business_hours_end: time = time(18, 0)
    business_days: list[int] = field(default_factory=_default_business_days)

    max_auto_assignments_per_run: int = 50
    assignment_retry_delay_minutes: int = 15
    queue_max_retries: int = 3
    queue_item_ttl_hours: int = 24

    def triggers_on(self, status: str) -> bool:
        return status in self.auto_assign_on_status

    def within_business_hours(self, moment: datetime) -> bool:
        """True when *moment* falls on a business day inside the daily window.

        Days are ISO weekday numbers (Monday=1 .. Sunday=7). The window is
        inclusive of the start and exclusive of the end.
        """
        if moment.isoweekday() not in self.business_days:
            return False
        return self.business_hours_start <= moment.time() < self.business_hours_end
