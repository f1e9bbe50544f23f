"""
Builds complaint services from application settings.
"""

from typing import Optional

from sqlalchemy.orm import Session

from gov_complaints.config.settings import Settings, get_settings
from gov_complaints.core.events import EventBus
from gov_complaints.services.complaint.complaint_lock_service import ComplaintLockService
from gov_complaints.services.complaint.complaint_service import ComplaintService, ComplaintServiceConfig
from gov_complaints.services.integrations.file_upload import LocalFileUploader
from gov_complaints.services.integrations.notifications import NotificationDispatcher, NotificationSender


def config_from_settings(settings: Settings) -> ComplaintServiceConfig:
    return ComplaintServiceConfig(
        lock_minutes=settings.COMPLAINT_LOCK_MINUTES,
        max_images=settings.COMPLAINT_MAX_IMAGES,
        max_pdfs=settings.COMPLAINT_MAX_PDFS,
        notifications_suppressed=settings.notifications_suppressed(),
        tracking_number_prefix=settings.TRACKING_NUMBER_PREFIX,
        upload_dir=settings.UPLOAD_DIR,
        max_upload_size=settings.MAX_UPLOAD_SIZE,
    )


class ComplaintServiceFactory:
    """
    Wires complaint services for one database session.

    The notification flag is re-read from ``settings`` on every dispatch.
    """

    def __init__(
        self,
        db_session: Session,
        settings: Optional[Settings] = None,
        sender: Optional[NotificationSender] = None,
        events: Optional[EventBus] = None,
    ):
        self.db = db_session
        self.settings = settings or get_settings()
        self.sender = sender
        self.events = events

    def complaints(self) -> ComplaintService:
        config = config_from_settings(self.settings)
        return ComplaintService(
            self.db,
            config=config,
            uploader=LocalFileUploader(
                config.upload_dir,
                max_file_size=config.max_upload_size,
                image_extensions=self.settings.ALLOWED_IMAGE_EXTENSIONS,
            ),
            notifications=NotificationDispatcher(
                sender=self.sender,
                suppressed=self.settings.notifications_suppressed,
            ),
            events=self.events,
        )

    def locks(self) -> ComplaintLockService:
        return ComplaintLockService(self.db)
