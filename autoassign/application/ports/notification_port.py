"""Port interface for outbound notifications."""

from abc import ABC, abstractmethod

from autoassign.domain.entities.notification import Notification


class NotificationPort(ABC):
    @abstractmethod
    async def send(self, notification: Notification) -> None:
        """Deliver on every channel listed in the notification.

        May raise on delivery failure; callers decide whether that matters.
        """
        ...
