"""Logging notifier — used when no webhook endpoint is configured."""

import logging

from autoassign.application.ports.notification_port import NotificationPort
from autoassign.domain.entities.notification import Notification

logger = logging.getLogger(__name__)


class LogNotifier(NotificationPort):
    async def send(self, notification: Notification) -> None:
        logger.warning(
            "[%s] %s → %s on %s: %s",
            notification.priority.upper(),
            notification.title,
            notification.recipient(),
            ", ".join(c.value for c in notification.channels) or "no channels",
            notification.body,
        )
