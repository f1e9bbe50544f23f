"""
Citizen notifications for complaint lifecycle changes.

Delivery (email, push) lives outside this package. The dispatcher decides
whether to send at all and keeps sender failures away from callers.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional, Protocol

from gov_complaints.core.logging import get_logger

logger = get_logger(__name__)


class NotificationKind(str, Enum):
    COMPLAINT_CREATED = "complaint_created"
    STATUS_CHANGED = "status_changed"
    INFO_REQUESTED = "info_requested"


@dataclass
class ComplaintNotification:
    """Payload handed to a sender."""

    kind: NotificationKind
    complaint_id: str
    tracking_number: str
    old_status: Optional[str] = None
    new_status: Optional[str] = None
    message: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)


class NotificationSender(Protocol):
    def notify(self, recipient: Any, notification: ComplaintNotification) -> None:
        ...


class LoggingNotificationSender:
    """Default sender: records the notification in the application log."""

    def notify(self, recipient: Any, notification: ComplaintNotification) -> None:
        logger.info(
            f"Notification {notification.kind.value} for {notification.tracking_number}",
            extra={
                "recipient_id": getattr(recipient, "id", None),
                "notification_kind": notification.kind.value,
                "tracking_number": notification.tracking_number,
            },
        )


class NotificationDispatcher:
    """
    Sends complaint notifications unless suppressed.

    ``suppressed`` is read once per ``dispatch`` call, so a toggle flipped
    between calls takes effect on the next notification.
    """

    def __init__(
        self,
        sender: Optional[NotificationSender] = None,
        suppressed: Callable[[], bool] = lambda: False,
    ):
        self.sender = sender or LoggingNotificationSender()
        self._suppressed = suppressed

    def dispatch(self, recipient: Any, notification: ComplaintNotification) -> bool:
        """
        Returns:
            True if the sender accepted the notification
        """
        context = {
            "recipient_id": getattr(recipient, "id", None),
            "notification_kind": notification.kind.value,
            "tracking_number": notification.tracking_number,
        }

        if self._suppressed():
            logger.info("Notification skipped", extra=context)
            return False

        try:
            self.sender.notify(recipient, notification)
        except Exception as e:
            logger.error(f"Notification failed: {e}", exc_info=True, extra=context)
            return False

        return True
