"""
Complaint lifecycle service.

Every mutating operation runs in one transaction: checks first, then the
field changes together with the version bump, then commit. Events and
notifications go out only after the commit and never undo it.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from sqlalchemy.orm import Session

from gov_complaints.core.events import (
    BaseDomainEvent,
    ComplaintCreatedEvent,
    ComplaintStatusChangedEvent,
    EventBus,
    event_bus,
)
from gov_complaints.core.exceptions import (
    AuthorizationError,
    BaseAppException,
    ConcurrencyConflictError,
    DomainError,
    InfrastructureError,
    ResourceNotFoundError,
    StateViolationError,
    StorageError,
    ValidationError,
)
from gov_complaints.models.base.enums import AttachmentType, ComplaintStatus, UserRole
from gov_complaints.models.complaint.complaint import Complaint
from gov_complaints.models.user.user import User
from gov_complaints.repositories.complaint.complaint_attachment_repository import ComplaintAttachmentRepository
from gov_complaints.repositories.complaint.complaint_repository import ComplaintRepository
from gov_complaints.schemas.complaint.complaint_base import ComplaintCreate, ComplaintUpdate
from gov_complaints.services.base.base_service import BaseService
from gov_complaints.services.complaint.complaint_state_policy import (
    ComplaintTransition,
    ensure_allowed,
    next_status,
)
from gov_complaints.services.integrations.file_upload import (
    AttachmentUploader,
    IncomingFile,
    LocalFileUploader,
)
from gov_complaints.services.integrations.notifications import (
    ComplaintNotification,
    NotificationDispatcher,
    NotificationKind,
    NotificationSender,
)
from gov_complaints.services.integrations.tracking_number import TrackingNumberGenerator
from gov_complaints.utils.datetime_utils import utcnow

EDITABLE_FIELDS = ("complaint_kind", "description", "location")


@dataclass(frozen=True)
class ComplaintServiceConfig:
    """Workflow settings injected into the service."""

    lock_minutes: int = 480
    max_images: int = 5
    max_pdfs: int = 5
    notifications_suppressed: bool = False
    tracking_number_prefix: str = "CMP"
    upload_dir: str = "storage/uploads"
    max_upload_size: int = 10 * 1024 * 1024


class ComplaintService(BaseService[ComplaintRepository]):
    """
    Citizen, employee and admin operations on complaints.

    Collaborators (uploader, tracking numbers, notifications, events, clock)
    are injectable; defaults are built from ``config``.
    """

    def __init__(
        self,
        db_session: Session,
        config: Optional[ComplaintServiceConfig] = None,
        repository: Optional[ComplaintRepository] = None,
        attachment_repository: Optional[ComplaintAttachmentRepository] = None,
        uploader: Optional[AttachmentUploader] = None,
        tracking_numbers: Optional[TrackingNumberGenerator] = None,
        notifications: Optional[NotificationDispatcher] = None,
        notification_sender: Optional[NotificationSender] = None,
        events: Optional[EventBus] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        super().__init__(repository or ComplaintRepository(db_session), db_session)
        self.config = config or ComplaintServiceConfig()
        self.attachment_repository = attachment_repository or ComplaintAttachmentRepository(db_session)
        self.uploader = uploader or LocalFileUploader(
            self.config.upload_dir,
            max_file_size=self.config.max_upload_size,
        )
        self.tracking_numbers = tracking_numbers or TrackingNumberGenerator(
            prefix=self.config.tracking_number_prefix,
            exists=self.repository.tracking_number_exists,
        )
        self.notifications = notifications or NotificationDispatcher(
            sender=notification_sender,
            suppressed=lambda: self.config.notifications_suppressed,
        )
        self.events = events or event_bus
        self._clock = clock

    # -------------------------------------------------------------------------
    # Citizen operations
    # -------------------------------------------------------------------------

    def create_complaint(
        self,
        citizen: User,
        data: Union[ComplaintCreate, Dict[str, Any]],
        images: Optional[Sequence[IncomingFile]] = None,
        pdfs: Optional[Sequence[IncomingFile]] = None,
    ) -> Complaint:
        """
        File a new complaint with optional attachments.

        Args:
            citizen: User filing the complaint
            data: entity_id, complaint_kind, description, location
            images: Image files, at most ``max_images``
            pdfs: PDF files, at most ``max_pdfs``

        Returns:
            The committed complaint (status new, version 1)
        """
        fields = self._as_dict(data)
        images = list(images or [])
        pdfs = list(pdfs or [])

        if len(images) > self.config.max_images:
            raise ValidationError("images", f"You can upload a maximum of {self.config.max_images} images.")
        if len(pdfs) > self.config.max_pdfs:
            raise ValidationError("pdfs", f"You can upload a maximum of {self.config.max_pdfs} PDFs.")

        stored_paths: List[str] = []
        with self._unit_of_work("create complaint", None, stored_paths):
            complaint = self.repository.create_complaint({
                "tracking_number": self.tracking_numbers.generate(),
                "user_id": citizen.id,
                "entity_id": fields.get("entity_id"),
                "complaint_kind": fields.get("complaint_kind"),
                "description": fields.get("description"),
                "location": fields.get("location"),
            })
            self._store_attachments(complaint, images, pdfs, stored_paths)
            tracking_number = complaint.tracking_number

        self._logger.info("Complaint created", extra={"tracking_number": tracking_number, "user_id": citizen.id})

        self._emit(ComplaintCreatedEvent(
            actor_id=citizen.id,
            complaint_id=complaint.id,
            tracking_number=tracking_number,
            entity_id=complaint.entity_id,
            user_id=citizen.id,
            complaint_kind=complaint.complaint_kind,
        ))
        self.notifications.dispatch(
            complaint.user,
            ComplaintNotification(
                kind=NotificationKind.COMPLAINT_CREATED,
                complaint_id=complaint.id,
                tracking_number=tracking_number,
                new_status=ComplaintStatus.NEW.value,
            ),
        )
        return complaint

    def update_complaint(
        self,
        complaint: Complaint,
        data: Union[ComplaintUpdate, Dict[str, Any]],
        acting_user: User,
        images: Optional[Sequence[IncomingFile]] = None,
        pdfs: Optional[Sequence[IncomingFile]] = None,
        expected_version: Optional[int] = None,
    ) -> Complaint:
        """
        Citizen edit while the complaint is new or declined.

        Editing a declined complaint sends it back to new and detaches the
        employee. Any pending info request is cleared.
        """
        fields = self._as_dict(data)
        images = list(images or [])
        pdfs = list(pdfs or [])
        tracking_number = complaint.tracking_number
        old_status = complaint.status

        stored_paths: List[str] = []
        with self._unit_of_work("update complaint", tracking_number, stored_paths):
            self._ensure_active(complaint)
            self._check_version(complaint, expected_version)

            if complaint.user_id != acting_user.id:
                raise AuthorizationError("complaint", "You can only update your own complaints.")

            ensure_allowed(complaint.status, ComplaintTransition.CITIZEN_EDIT, acting_user.role)

            current_images = self.attachment_repository.count_by_type(complaint.id, AttachmentType.IMAGE)
            if current_images + len(images) > self.config.max_images:
                raise ValidationError("images", f"Total images cannot exceed {self.config.max_images}.")

            current_pdfs = self.attachment_repository.count_by_type(complaint.id, AttachmentType.PDF)
            if current_pdfs + len(pdfs) > self.config.max_pdfs:
                raise ValidationError("pdfs", f"Total PDFs cannot exceed {self.config.max_pdfs}.")

            changes = {key: fields[key] for key in EDITABLE_FIELDS if fields.get(key) is not None}
            for key, value in changes.items():
                if isinstance(value, str) and not value.strip():
                    raise ValidationError(key, f"The {key.replace('_', ' ')} field cannot be empty.")

            new_status = next_status(complaint.status, ComplaintTransition.CITIZEN_EDIT)
            if new_status != complaint.status:
                changes.update({
                    "status": new_status,
                    "assigned_to": None,
                    "locked_at": None,
                    "lock_expires_at": None,
                })

            complaint.clear_info_request()
            complaint.increment_version()
            self.repository.update(complaint, changes)
            self._store_attachments(complaint, images, pdfs, stored_paths)

        self._logger.info("Complaint updated", extra={"tracking_number": tracking_number, "user_id": acting_user.id})

        if complaint.status != old_status:
            self._status_changed(complaint, acting_user, old_status)
        return complaint

    def delete_attachment(
        self,
        complaint: Complaint,
        attachment_id: str,
        acting_user: User,
        expected_version: Optional[int] = None,
    ) -> Complaint:
        """
        Remove one attachment while the complaint is still editable.

        The stored file is deleted after the commit; a storage failure there
        is logged and leaves an orphaned file, never a missing row.
        """
        tracking_number = complaint.tracking_number

        with self._unit_of_work("delete attachment", tracking_number):
            self._ensure_active(complaint)
            self._check_version(complaint, expected_version)

            if complaint.user_id != acting_user.id:
                raise AuthorizationError("complaint", "You can only update your own complaints.")

            ensure_allowed(complaint.status, ComplaintTransition.CITIZEN_EDIT, acting_user.role)

            attachment = self.attachment_repository.find_for_complaint(complaint.id, attachment_id)
            if attachment is None:
                raise ResourceNotFoundError("ComplaintAttachment", attachment_id)

            file_path = attachment.file_path
            self.attachment_repository.delete(attachment)
            complaint.increment_version()
            self.repository.update(complaint, {})

        self._logger.info(
            "Complaint attachment deleted",
            extra={"tracking_number": tracking_number, "attachment_id": attachment_id},
        )
        self._discard_files([file_path], tracking_number)
        return complaint

    # -------------------------------------------------------------------------
    # Employee operations
    # -------------------------------------------------------------------------

    def accept_complaint(
        self,
        complaint: Complaint,
        employee: User,
        expected_version: Optional[int] = None,
    ) -> Complaint:
        """
        Claim the complaint for ``employee`` and move it to in_progress.

        Raises:
            ConcurrencyConflictError: Another employee holds an active claim
            StateViolationError: The caller already holds an active claim
        """
        tracking_number = complaint.tracking_number
        old_status = complaint.status
        now = self._clock()

        with self._unit_of_work("accept complaint", tracking_number):
            self._ensure_active(complaint)
            self._check_version(complaint, expected_version)

            if employee.entity_id != complaint.entity_id:
                raise AuthorizationError("entity", "You can only accept complaints for your entity.")

            ensure_allowed(complaint.status, ComplaintTransition.ACCEPT, employee.role)

            if complaint.is_locked_by_other(employee.id, now):
                raise ConcurrencyConflictError(
                    "locked",
                    "This complaint is currently being handled by another employee.",
                )

            # an in_progress complaint is claimable again only once its claim is released
            if complaint.status == ComplaintStatus.IN_PROGRESS and complaint.is_locked(now):
                raise StateViolationError(
                    complaint.status.value,
                    f"You are already handling this complaint. Current status: {complaint.status.value}",
                )

            complaint.lock(employee.id, self.config.lock_minutes, now=now)
            complaint.increment_version()
            self.repository.update(complaint, {
                "status": next_status(complaint.status, ComplaintTransition.ACCEPT),
                "reviewed_at": now,
            })

        self._logger.info("Complaint accepted", extra={"tracking_number": tracking_number, "employee_id": employee.id})

        # re-claiming a released in_progress complaint is not a status change
        if complaint.status != old_status:
            self._status_changed(complaint, employee, old_status)
        return complaint

    def finish_complaint(
        self,
        complaint: Complaint,
        employee: User,
        resolution: str,
        expected_version: Optional[int] = None,
    ) -> Complaint:
        tracking_number = complaint.tracking_number
        old_status = complaint.status
        now = self._clock()

        with self._unit_of_work("finish complaint", tracking_number):
            self._ensure_active(complaint)
            self._check_version(complaint, expected_version)

            if complaint.assigned_to != employee.id:
                raise AuthorizationError("assignment", "You can only finish complaints assigned to you.")

            ensure_allowed(complaint.status, ComplaintTransition.FINISH, employee.role)
            self._require_text("resolution", resolution)

            complaint.unlock()
            complaint.clear_info_request()
            complaint.increment_version()
            self.repository.update(complaint, {
                "status": next_status(complaint.status, ComplaintTransition.FINISH),
                "resolution": resolution,
                "resolved_at": now,
            })

        self._logger.info("Complaint finished", extra={"tracking_number": tracking_number, "employee_id": employee.id})

        self._status_changed(complaint, employee, old_status)
        return complaint

    def decline_complaint(
        self,
        complaint: Complaint,
        employee: User,
        reason: str,
        expected_version: Optional[int] = None,
    ) -> Complaint:
        """
        Decline an in-progress complaint.

        Any employee of the complaint's entity may decline. The claim is
        released and ``assigned_to`` is cleared as a separate field change.
        """
        tracking_number = complaint.tracking_number
        old_status = complaint.status

        with self._unit_of_work("decline complaint", tracking_number):
            self._ensure_active(complaint)
            self._check_version(complaint, expected_version)

            if employee.entity_id != complaint.entity_id:
                raise AuthorizationError("entity", "You can only decline complaints for your entity.")

            ensure_allowed(complaint.status, ComplaintTransition.DECLINE, employee.role)
            self._require_text("reason", reason)

            complaint.unlock()
            complaint.clear_info_request()
            complaint.increment_version()
            self.repository.update(complaint, {
                "status": next_status(complaint.status, ComplaintTransition.DECLINE),
                "admin_notes": reason,
                "assigned_to": None,
            })

        self._logger.info("Complaint declined", extra={"tracking_number": tracking_number, "employee_id": employee.id})

        self._status_changed(complaint, employee, old_status)
        return complaint

    def request_more_info(
        self,
        complaint: Complaint,
        employee: User,
        message: str,
        expected_version: Optional[int] = None,
    ) -> Complaint:
        """Ask the citizen for details. Status is unchanged, so no event is emitted."""
        tracking_number = complaint.tracking_number

        with self._unit_of_work("request info", tracking_number):
            self._ensure_active(complaint)
            self._check_version(complaint, expected_version)

            if complaint.assigned_to != employee.id:
                raise AuthorizationError("assignment", "You can only request info for complaints assigned to you.")

            ensure_allowed(complaint.status, ComplaintTransition.REQUEST_INFO, employee.role)
            self._require_text("message", message)

            complaint.request_info(message, now=self._clock())
            complaint.increment_version()
            self.repository.update(complaint, {})

        self._logger.info(
            "Info requested for complaint",
            extra={"tracking_number": tracking_number, "employee_id": employee.id},
        )

        self.notifications.dispatch(
            complaint.user,
            ComplaintNotification(
                kind=NotificationKind.INFO_REQUESTED,
                complaint_id=complaint.id,
                tracking_number=tracking_number,
                message=message,
            ),
        )
        return complaint

    def release_complaint(
        self,
        complaint: Complaint,
        employee: User,
        expected_version: Optional[int] = None,
    ) -> Complaint:
        """
        Give up an active claim before it expires.

        Only the lock timestamps are cleared; status stays in_progress and
        ``assigned_to`` keeps the last handler.
        """
        tracking_number = complaint.tracking_number
        now = self._clock()

        with self._unit_of_work("release complaint", tracking_number):
            self._ensure_active(complaint)
            self._check_version(complaint, expected_version)

            if complaint.assigned_to != employee.id:
                raise AuthorizationError("assignment", "You can only unlock complaints assigned to you.")

            if complaint.status != ComplaintStatus.IN_PROGRESS:
                raise StateViolationError(
                    complaint.status.value,
                    f"Can only unlock in-progress complaints. Current status: {complaint.status.value}",
                )

            if not complaint.is_locked(now):
                raise ValidationError("locked", "Complaint is not currently locked.")

            complaint.unlock()
            complaint.increment_version()
            self.repository.update(complaint, {})

        self._logger.info("Complaint unlocked", extra={"tracking_number": tracking_number, "employee_id": employee.id})
        return complaint

    # -------------------------------------------------------------------------
    # Admin operations
    # -------------------------------------------------------------------------

    def delete_complaint(
        self,
        complaint: Complaint,
        admin: User,
        expected_version: Optional[int] = None,
    ) -> Complaint:
        """Soft delete. Attachment files are kept with the row."""
        tracking_number = complaint.tracking_number

        with self._unit_of_work("delete complaint", tracking_number):
            self._ensure_active(complaint)
            self._check_version(complaint, expected_version)

            if admin.role != UserRole.ADMIN:
                raise AuthorizationError("role", "Only administrators can delete complaints.")

            complaint.increment_version()
            self.repository.soft_delete(complaint, now=self._clock())

        self._logger.info("Complaint deleted", extra={"tracking_number": tracking_number, "admin_id": admin.id})
        return complaint

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_by_tracking_number(self, tracking_number: str) -> Optional[Complaint]:
        """
        Look up a complaint, releasing its claim first if it has expired.
        """
        complaint = self.repository.find_by_tracking_number(tracking_number)
        if complaint is None or not complaint.has_expired_lock(self._clock()):
            return complaint

        try:
            with self.transaction():
                if complaint.check_and_unlock_if_expired(self._clock()):
                    self.repository.update(complaint, {})
        except ConcurrencyConflictError:
            self._logger.warning(
                "Complaint changed while releasing expired lock, reloading",
                extra={"tracking_number": tracking_number},
            )
            return self.repository.find_by_tracking_number(tracking_number)

        self._logger.info("Released expired lock on read", extra={"tracking_number": tracking_number})
        return complaint

    def get_entity_complaints(
        self,
        entity_id: str,
        status: Optional[ComplaintStatus] = None,
        skip: int = 0,
        limit: int = 15,
    ) -> List[Complaint]:
        return self.repository.find_by_entity(entity_id, status=status, skip=skip, limit=limit)

    def get_employee_assigned_complaints(
        self,
        employee_id: str,
        status: Optional[ComplaintStatus] = None,
        skip: int = 0,
        limit: int = 15,
    ) -> List[Complaint]:
        return self.repository.find_assigned_to(employee_id, status=status, skip=skip, limit=limit)

    def get_user_complaints(
        self,
        user_id: str,
        status: Optional[ComplaintStatus] = None,
        skip: int = 0,
        limit: int = 15,
    ) -> List[Complaint]:
        return self.repository.find_by_user(user_id, status=status, skip=skip, limit=limit)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @contextmanager
    def _unit_of_work(
        self,
        action: str,
        tracking_number: Optional[str],
        stored_paths: Optional[List[str]] = None,
    ):
        """
        Transaction plus failure logging and cleanup of files uploaded in it.
        """
        try:
            with self.transaction():
                yield
        except (DomainError, ResourceNotFoundError) as e:
            self._logger.warning(
                f"Failed to {action}: {e.message}",
                extra={"tracking_number": tracking_number, "error_field": getattr(e, "field", None)},
            )
            self._discard_files(stored_paths or [], tracking_number)
            raise
        except Exception as e:
            if isinstance(e, InfrastructureError) and tracking_number:
                e.details.setdefault("tracking_number", tracking_number)
            self._logger.error(
                f"Failed to {action}: {e}",
                exc_info=True,
                extra={"tracking_number": tracking_number},
            )
            self._discard_files(stored_paths or [], tracking_number)
            raise

    @staticmethod
    def _ensure_active(complaint: Complaint) -> None:
        """Soft-deleted complaints are kept for audit only."""
        if complaint.deleted_at is not None:
            raise ResourceNotFoundError("Complaint", complaint.id)

    def _check_version(self, complaint: Complaint, expected_version: Optional[int]) -> None:
        if expected_version is not None and complaint.version != expected_version:
            raise ConcurrencyConflictError(
                expected_version=expected_version,
                actual_version=complaint.version,
            )

    @staticmethod
    def _require_text(field: str, value: Optional[str]) -> None:
        if value is None or not str(value).strip():
            raise ValidationError(field, f"The {field} field is required.")

    @staticmethod
    def _as_dict(data: Union[ComplaintCreate, ComplaintUpdate, Dict[str, Any], None]) -> Dict[str, Any]:
        if data is None:
            return {}
        if isinstance(data, (ComplaintCreate, ComplaintUpdate)):
            return data.model_dump(exclude_unset=True)
        return dict(data)

    def _store_attachments(
        self,
        complaint: Complaint,
        images: Sequence[IncomingFile],
        pdfs: Sequence[IncomingFile],
        stored_paths: List[str],
    ) -> None:
        """Upload files and record them; paths are collected for cleanup on rollback."""
        rows = []
        for file_type, files, folder in (
            (AttachmentType.IMAGE, images, "images"),
            (AttachmentType.PDF, pdfs, "pdfs"),
        ):
            destination = f"complaints/{complaint.id}/{folder}"
            for file in files:
                try:
                    result = self.uploader.upload(file, destination, file_type)
                except BaseAppException:
                    raise
                except Exception as e:
                    raise StorageError(
                        f"Failed to upload {file.filename}",
                        tracking_number=complaint.tracking_number,
                    ) from e
                stored_paths.append(result["file_path"])
                rows.append(result)

        if rows:
            self.attachment_repository.create_many_for_complaint(complaint.id, rows)

    def _discard_files(self, paths: Sequence[str], tracking_number: Optional[str]) -> None:
        for path in paths:
            try:
                self.uploader.delete(path)
            except Exception as e:
                self._logger.error(
                    f"Failed to remove stored file {path}: {e}",
                    extra={"tracking_number": tracking_number},
                )

    def _status_changed(self, complaint: Complaint, actor: User, old_status: ComplaintStatus) -> None:
        new_status = complaint.status
        self._emit(ComplaintStatusChangedEvent(
            actor_id=actor.id,
            complaint_id=complaint.id,
            tracking_number=complaint.tracking_number,
            old_status=old_status.value,
            new_status=new_status.value,
        ))
        self.notifications.dispatch(
            complaint.user,
            ComplaintNotification(
                kind=NotificationKind.STATUS_CHANGED,
                complaint_id=complaint.id,
                tracking_number=complaint.tracking_number,
                old_status=old_status.value,
                new_status=new_status.value,
            ),
        )

    def _emit(self, event: BaseDomainEvent) -> None:
        try:
            self.events.publish(event)
        except Exception as e:
            self._logger.error(f"Failed to publish {event.event_type}: {e}", exc_info=True)
