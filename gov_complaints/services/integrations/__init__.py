from gov_complaints.services.integrations.file_upload import (
    AttachmentUploader,
    IncomingFile,
    LocalFileUploader,
    generate_unique_filename,
    safe_filename,
)
from gov_complaints.services.integrations.notifications import (
    ComplaintNotification,
    LoggingNotificationSender,
    NotificationDispatcher,
    NotificationKind,
    NotificationSender,
)
from gov_complaints.services.integrations.tracking_number import TrackingNumberGenerator

__all__ = [
    "AttachmentUploader",
    "IncomingFile",
    "LocalFileUploader",
    "generate_unique_filename",
    "safe_filename",
    "ComplaintNotification",
    "LoggingNotificationSender",
    "NotificationDispatcher",
    "NotificationKind",
    "NotificationSender",
    "TrackingNumberGenerator",
]
