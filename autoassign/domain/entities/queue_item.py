"""AssignmentQueueItem — a work order parked for later re-evaluation."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from autoassign.domain.value_objects.enums import QueueStatus

# Work-order priority label → queue priority (higher runs first).
QUEUE_PRIORITY_RANKS: dict[str, int] = {
    "low": 1,
    "medium": 2,
    "high": 3,
    "critical": 4,
    "urgent": 4,
    "emergency": 5,
}


def queue_priority_for(priority: str | None) -> int:
    if not priority:
        return 0
    return QUEUE_PRIORITY_RANKS.get(priority.strip().lower(), 0)


@dataclass
class AssignmentQueueItem:
    id: str | None
    work_order_id: str
    added_at: datetime
    priority: int = 0
    retry_count: int = 0
    max_retries: int = 3
    next_retry_at: datetime | None = None
    status: QueueStatus = QueueStatus.PENDING
    assigned_at: datetime | None = None
    failed_reason: str | None = None

    def is_open(self) -> bool:
        return self.status in (QueueStatus.PENDING, QueueStatus.PROCESSING)

    def is_due(self, now: datetime) -> bool:
        return self.status == QueueStatus.PENDING and (
            self.next_retry_at is None or self.next_retry_at <= now
        )

    def is_expired(self, now: datetime, ttl: timedelta) -> bool:
        return now - self.added_at > ttl

    def mark_processing(self) -> None:
        self.status = QueueStatus.PROCESSING

    def mark_assigned(self, now: datetime) -> None:
        self.status = QueueStatus.ASSIGNED
        self.assigned_at = now

    def mark_expired(self) -> None:
        self.status = QueueStatus.EXPIRED
        self.failed_reason = "Queue item expired before a technician was found"

    def record_miss(self, now: datetime, retry_delay: timedelta, reason: str) -> None:
        """Count one unsuccessful attempt: retry later, or fail after max_retries."""
        self.retry_count += 1
        if self.retry_count >= self.max_retries:
            self.status = QueueStatus.FAILED
            self.failed_reason = f"{reason} (after {self.retry_count} attempts)"
            self.next_retry_at = None
        else:
            self.status = QueueStatus.PENDING
            self.next_retry_at = now + retry_delay
