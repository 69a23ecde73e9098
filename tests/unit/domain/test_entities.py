"""Tests for domain entities: settings, queue items, technicians, logs."""

from datetime import datetime, time, timedelta, timezone

import pytest

from autoassign.domain.entities.assignment_log import AssignmentCandidate, AutoAssignmentLog
from autoassign.domain.entities.notification import Notification
from autoassign.domain.entities.queue_item import AssignmentQueueItem, queue_priority_for
from autoassign.domain.entities.settings import AutoAssignmentSettings
from autoassign.domain.entities.technician import Technician
from autoassign.domain.entities.work_order import WorkOrder
from autoassign.domain.value_objects.enums import (
    AssignmentStatus,
    FallbackAction,
    QueueStatus,
)

UTC = timezone.utc


# ─── Settings ───────────────────────────────────────────────────────


def test_settings_defaults_are_disabled():
    s = AutoAssignmentSettings()
    assert s.auto_assignment_enabled is False
    assert s.triggers_on("Open")
    assert not s.triggers_on("Closed")


def test_business_hours_window():
    s = AutoAssignmentSettings(business_hours_start=time(8, 0), business_hours_end=time(18, 0))
    wednesday = datetime(2026, 3, 4, tzinfo=UTC)
    assert s.within_business_hours(wednesday.replace(hour=8))
    assert s.within_business_hours(wednesday.replace(hour=17, minute=59))
    assert not s.within_business_hours(wednesday.replace(hour=18))
    assert not s.within_business_hours(wednesday.replace(hour=7, minute=59))


def test_business_days_are_iso_weekdays():
    s = AutoAssignmentSettings(business_days=[1, 2, 3, 4, 5])
    saturday = datetime(2026, 3, 7, 10, 0, tzinfo=UTC)
    assert not s.within_business_hours(saturday)
    s.business_days = [6]
    assert s.within_business_hours(saturday)


# ─── Queue item ─────────────────────────────────────────────────────


def _item(**overrides) -> AssignmentQueueItem:
    values = dict(id="q1", work_order_id="wo-1", added_at=datetime(2026, 3, 4, 9, tzinfo=UTC))
    values.update(overrides)
    return AssignmentQueueItem(**values)


@pytest.mark.parametrize(
    "priority,expected",
    [("low", 1), ("Medium", 2), ("high", 3), ("critical", 4), ("emergency", 5), (None, 0), ("?", 0)],
)
def test_queue_priority_ranks(priority, expected):
    assert queue_priority_for(priority) == expected


def test_queue_item_due_and_expiry():
    now = datetime(2026, 3, 4, 10, tzinfo=UTC)
    item = _item()
    assert item.is_due(now)
    assert not item.is_expired(now, timedelta(hours=24))
    assert item.is_expired(now + timedelta(days=2), timedelta(hours=24))

    item.next_retry_at = now + timedelta(minutes=5)
    assert not item.is_due(now)


def test_record_miss_schedules_retry():
    now = datetime(2026, 3, 4, 10, tzinfo=UTC)
    item = _item(max_retries=3)
    item.mark_processing()
    item.record_miss(now, timedelta(minutes=15), "No suitable technicians")

    assert item.status == QueueStatus.PENDING
    assert item.retry_count == 1
    assert item.next_retry_at == now + timedelta(minutes=15)


def test_record_miss_fails_after_max_retries():
    now = datetime(2026, 3, 4, 10, tzinfo=UTC)
    item = _item(max_retries=2, retry_count=1)
    item.record_miss(now, timedelta(minutes=15), "No suitable technicians")

    assert item.status == QueueStatus.FAILED
    assert item.failed_reason == "No suitable technicians (after 2 attempts)"
    assert not item.is_open()


def test_mark_assigned_and_expired():
    now = datetime(2026, 3, 4, 10, tzinfo=UTC)
    item = _item()
    item.mark_assigned(now)
    assert item.status == QueueStatus.ASSIGNED
    assert item.assigned_at == now

    other = _item()
    other.mark_expired()
    assert other.status == QueueStatus.EXPIRED
    assert other.failed_reason


# ─── Technician / work order ────────────────────────────────────────


def test_technician_generalist_detection():
    assert Technician(id="t", name="T").is_generalist()
    assert Technician(id="t", name="T", specializations={"generalist"}).is_generalist()
    assert not Technician(id="t", name="T", specializations={"hvac"}).is_generalist()


def test_work_order_assignment_flag():
    wo = WorkOrder(id="wo", status="Open")
    assert not wo.is_assigned()
    wo.assigned_technician_id = "t1"
    assert wo.is_assigned()


# ─── Log / notification ─────────────────────────────────────────────


def test_success_log_embeds_winner_scores():
    winner = AssignmentCandidate(
        technician_id="t1",
        technician_name="Ann",
        availability_score=100.0,
        specialization_score=100.0,
        proximity_score=66.67,
        workload_score=100.0,
        performance_score=50.0,
        total_score=88.33,
        distance_km=5.0,
    )
    log = AutoAssignmentLog.for_success(
        work_order_id="wo-1",
        rule_id="r1",
        winner=winner,
        candidates=(winner,),
        assigned_at=datetime(2026, 3, 4, tzinfo=UTC),
        execution_time_ms=12,
    )
    assert log.status == AssignmentStatus.SUCCESS
    assert log.assignment_score == 88.33
    assert log.proximity_score == 66.67
    assert log.candidates_evaluated == 1
    with pytest.raises(AttributeError):
        log.status = AssignmentStatus.FAILED


def test_candidate_dict_round_trip():
    c = AssignmentCandidate("t1", "Ann", 1.0, 2.0, 3.0, 4.0, 5.0, 3.0, None, False, "At capacity")
    assert AssignmentCandidate.from_dict(c.to_dict()) == c


def test_notification_recipient():
    n = Notification(work_order_id="wo", action=FallbackAction.ESCALATE, title="t", body="b")
    assert n.recipient() == "role:manager"
    n2 = Notification(
        work_order_id="wo",
        action=FallbackAction.ESCALATE,
        title="t",
        body="b",
        recipient_user_id="u1",
    )
    assert n2.recipient() == "user:u1"
