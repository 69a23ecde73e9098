"""Notification — an outbound message produced by a fallback action."""

from dataclasses import dataclass, field

from autoassign.domain.value_objects.enums import FallbackAction, NotificationChannel

MANAGER_ROLE = "manager"


@dataclass(frozen=True)
class Notification:
    work_order_id: str
    action: FallbackAction
    title: str
    body: str
    recipient_user_id: str | None = None
    recipient_role: str | None = None
    channels: tuple[NotificationChannel, ...] = field(default_factory=tuple)
    priority: str = "normal"

    def recipient(self) -> str:
        if self.recipient_user_id:
            return f"user:{self.recipient_user_id}"
        return f"role:{self.recipient_role or MANAGER_ROLE}"
