"""
Core complaint model with workflow, claim-lock and version tracking.

A complaint is filed by a citizen against an entity, claimed by one of the
entity's employees for a limited time, and finished or declined. The
version column is mapped as SQLAlchemy's version counter with
application-assigned values, so every UPDATE is conditioned on the version
that was loaded.
"""

from datetime import datetime, timedelta
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gov_complaints.models.base.base_model import BaseModel
from gov_complaints.models.base.enums import ComplaintStatus
from gov_complaints.models.base.mixins import SoftDeleteMixin, TimestampMixin
from gov_complaints.utils.datetime_utils import ensure_utc, utcnow

if TYPE_CHECKING:
    from gov_complaints.models.complaint.complaint_attachment import ComplaintAttachment
    from gov_complaints.models.user.user import Entity, User

__all__ = ["Complaint"]


class Complaint(BaseModel, TimestampMixin, SoftDeleteMixin):
    """
    Complaint aggregate root.

    Attributes:
        tracking_number: Public, URL-safe reference assigned once at creation
        user_id: Citizen who filed the complaint
        entity_id: Organization the complaint targets

        complaint_kind: Citizen-chosen classification
        description: Complaint text
        location: Where the issue is

        status: new, in_progress, finished or declined
        assigned_to: Employee holding (or last holding) the claim
        locked_at: Claim start
        lock_expires_at: Claim expiry

        info_requested: Employee asked the citizen for more details
        info_request_message: What was asked
        info_requested_at: When it was asked

        version: Optimistic concurrency counter, starts at 1

        admin_notes: Decline reason
        resolution: Resolution text written on finish
        reviewed_at: When an employee accepted the complaint
        resolved_at: When it was finished
    """

    __tablename__ = "complaints"
    __table_args__ = (
        Index("ix_complaints_entity_status", "entity_id", "status"),
        Index("ix_complaints_assigned_to_status", "assigned_to", "status"),
        Index("ix_complaints_status_lock_expires", "status", "lock_expires_at"),
        {"comment": "Citizen complaints and their handling state"},
    )

    tracking_number: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        nullable=False,
        index=True,
        comment="Public complaint reference",
    )

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        comment="Citizen who filed the complaint",
    )

    entity_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("entities.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        comment="Target organization",
    )

    # Complaint Content
    complaint_kind: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    location: Mapped[str] = mapped_column(String(500), nullable=False)

    # Status and Workflow
    status: Mapped[ComplaintStatus] = mapped_column(
        Enum(
            ComplaintStatus,
            name="complaint_status_enum",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=ComplaintStatus.NEW,
        index=True,
    )

    # Claim lock
    assigned_to: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        comment="Employee handling the complaint",
    )
    locked_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    lock_expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Info request sub-state
    info_requested: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    info_request_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    info_requested_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
        comment="Optimistic concurrency counter",
    )

    # Resolution Details
    admin_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    resolution: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    __mapper_args__ = {
        "version_id_col": version,
        "version_id_generator": False,
    }

    # Relationships
    user: Mapped["User"] = relationship(
        "User",
        foreign_keys=[user_id],
        back_populates="complaints",
        lazy="joined",
    )

    entity: Mapped["Entity"] = relationship(
        "Entity",
        foreign_keys=[entity_id],
        lazy="joined",
    )

    assigned_employee: Mapped[Optional["User"]] = relationship(
        "User",
        foreign_keys=[assigned_to],
        lazy="selectin",
    )

    attachments: Mapped[List["ComplaintAttachment"]] = relationship(
        "ComplaintAttachment",
        back_populates="complaint",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="ComplaintAttachment.created_at.asc()",
    )

    def __repr__(self) -> str:
        return (
            f"<Complaint(id={self.id}, "
            f"tracking_number={self.tracking_number}, "
            f"status={self.status.value if self.status else None}, "
            f"version={self.version})>"
        )

    # ------------------------------------------------------------------
    # Claim lock
    # ------------------------------------------------------------------

    def is_locked(self, now: Optional[datetime] = None) -> bool:
        """A claim is active while locked_at is set and has not expired."""
        if self.locked_at is None:
            return False

        expires_at = ensure_utc(self.lock_expires_at)
        if expires_at is not None and expires_at <= ensure_utc(now or utcnow()):
            return False

        return True

    def lock(self, employee_id: str, duration_minutes: int = 30, now: Optional[datetime] = None) -> None:
        """Claim the complaint for an employee."""
        now = now or utcnow()
        self.locked_at = now
        self.lock_expires_at = now + timedelta(minutes=duration_minutes)
        self.assigned_to = employee_id

    def unlock(self) -> None:
        """Release the claim timestamps. assigned_to is left as is."""
        self.locked_at = None
        self.lock_expires_at = None

    def has_expired_lock(self, now: Optional[datetime] = None) -> bool:
        """Lock timestamps are stored but the expiry has passed."""
        expires_at = ensure_utc(self.lock_expires_at)
        return (
            self.locked_at is not None
            and expires_at is not None
            and expires_at <= ensure_utc(now or utcnow())
        )

    def check_and_unlock_if_expired(self, now: Optional[datetime] = None) -> bool:
        """
        Release a stale claim.

        Returns:
            True if an expired lock was found and cleared
        """
        if self.has_expired_lock(now):
            self.unlock()
            return True
        return False

    def is_locked_by_other(self, employee_id: str, now: Optional[datetime] = None) -> bool:
        return self.is_locked(now) and self.assigned_to != employee_id

    # ------------------------------------------------------------------
    # Info request
    # ------------------------------------------------------------------

    def request_info(self, message: str, now: Optional[datetime] = None) -> None:
        self.info_requested = True
        self.info_request_message = message
        self.info_requested_at = now or utcnow()

    def clear_info_request(self) -> None:
        self.info_requested = False
        self.info_request_message = None
        self.info_requested_at = None

    def increment_version(self) -> None:
        self.version = (self.version or 0) + 1
