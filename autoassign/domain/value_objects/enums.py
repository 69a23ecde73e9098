"""Domain enums — pure Python, no external dependencies."""

from enum import Enum


class AssignmentStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    FALLBACK = "fallback"


class FallbackAction(str, Enum):
    ESCALATE = "escalate"
    QUEUE = "queue"
    NOTIFY_MANAGER = "notify_manager"


class QueueStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    ASSIGNED = "assigned"
    FAILED = "failed"
    EXPIRED = "expired"


class NotificationChannel(str, Enum):
    IN_APP = "in_app"
    EMAIL = "email"
    PUSH = "push"
    SMS = "sms"


class ShiftStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class SkipReason(str, Enum):
    """Why an evaluation did not run. None of these are logged as failures."""

    DISABLED = "disabled"
    STATUS_NOT_ELIGIBLE = "status_not_eligible"
    ALREADY_ASSIGNED = "already_assigned"
    NO_ACTIVE_RULES = "no_active_rules"
    NO_APPLICABLE_RULE = "no_applicable_rule"
    OUTSIDE_BUSINESS_HOURS = "outside_business_hours"


# Work-order statuses counted as "active load" for a technician.
ACTIVE_WORK_ORDER_STATUSES: tuple[str, ...] = ("In Progress", "Ready")

# Status written together with the technician on a successful assignment.
ASSIGNED_WORK_ORDER_STATUS = "In Progress"
