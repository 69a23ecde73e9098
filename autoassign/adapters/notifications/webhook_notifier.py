"""Webhook notifier adapter — implements NotificationPort over HTTP."""

from __future__ import annotations

import logging

import httpx

from autoassign.application.ports.notification_port import NotificationPort
from autoassign.config import settings
from autoassign.domain.entities.notification import Notification

logger = logging.getLogger(__name__)


class WebhookNotifier(NotificationPort):
    """POST one JSON message per channel to the configured dispatch endpoint.

    The endpoint (e.g. a push-notification edge function) fans the message
    out to the real channel provider.
    """

    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._url = url or settings.notification_webhook_url
        self._timeout = timeout or settings.notification_timeout_seconds
        self._transport = transport

    async def send(self, notification: Notification) -> None:
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            for channel in notification.channels:
                response = await client.post(self._url, json=self._payload(notification, channel.value))
                response.raise_for_status()
                logger.info(
                    "Notification sent: work order %s → %s via %s",
                    notification.work_order_id, notification.recipient(), channel.value,
                )

    @staticmethod
    def _payload(notification: Notification, channel: str) -> dict:
        return {
            "channel": channel,
            "type": notification.action.value,
            "priority": notification.priority,
            "title": notification.title,
            "body": notification.body,
            "user_id": notification.recipient_user_id,
            "role": notification.recipient_role,
            "data": {"work_order_id": notification.work_order_id},
        }
