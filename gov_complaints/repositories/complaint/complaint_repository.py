"""
Complaint repository: persistence boundary for the complaint aggregate.

Holds no workflow rules. Creation checks only that required columns are
present; every query excludes soft-deleted rows.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, desc, exists, or_, select
from sqlalchemy.orm import Session

from gov_complaints.core.exceptions import ValidationError
from gov_complaints.core.logging import get_logger
from gov_complaints.models.base.enums import ComplaintStatus
from gov_complaints.models.complaint.complaint import Complaint
from gov_complaints.repositories.base.base_repository import BaseRepository
from gov_complaints.utils.datetime_utils import utcnow

logger = get_logger(__name__)


class ComplaintRepository(BaseRepository[Complaint]):
    """
    Complaint data access: creation, partial updates, lookups by tracking
    number and the list filters used by citizen, employee and sweeper flows.
    """

    REQUIRED_FIELDS = (
        "tracking_number",
        "user_id",
        "entity_id",
        "complaint_kind",
        "description",
        "location",
    )

    def __init__(self, session: Session):
        super().__init__(Complaint, session)

    # ==================== CRUD Operations ====================

    def create_complaint(self, data: Dict[str, Any]) -> Complaint:
        """
        Insert a new complaint with status new and version 1.

        Args:
            data: Column values; the required fields must be non-blank

        Returns:
            Created complaint

        Raises:
            ValidationError: A required field is missing or blank
        """
        for field in self.REQUIRED_FIELDS:
            value = data.get(field)
            if value is None or (isinstance(value, str) and not value.strip()):
                raise ValidationError(field, f"The {field.replace('_', ' ')} field is required.")

        complaint = Complaint(
            tracking_number=data["tracking_number"],
            user_id=data["user_id"],
            entity_id=data["entity_id"],
            complaint_kind=data["complaint_kind"],
            description=data["description"],
            location=data["location"],
            status=ComplaintStatus.NEW,
            info_requested=False,
            version=1,
        )
        return self.create(complaint)

    def soft_delete(self, complaint: Complaint, now: Optional[datetime] = None) -> Complaint:
        """Mark the complaint deleted; the row is kept for audit."""
        complaint.deleted_at = now or utcnow()
        self.flush()
        return complaint

    # ==================== Query Operations ====================

    def find_by_tracking_number(
        self,
        tracking_number: str,
        include_deleted: bool = False,
    ) -> Optional[Complaint]:
        query = select(Complaint).where(Complaint.tracking_number == tracking_number)

        if not include_deleted:
            query = query.where(Complaint.deleted_at.is_(None))

        result = self.session.execute(query)
        return result.scalar_one_or_none()

    def tracking_number_exists(self, tracking_number: str) -> bool:
        """Checks soft-deleted rows too, since the column is unique."""
        query = select(exists().where(Complaint.tracking_number == tracking_number))
        return bool(self.session.execute(query).scalar())

    def _list(self, query, skip: int, limit: int) -> List[Complaint]:
        query = query.where(Complaint.deleted_at.is_(None))
        query = query.order_by(desc(Complaint.created_at)).offset(skip).limit(limit)
        result = self.session.execute(query)
        return list(result.scalars().all())

    def find_by_status(
        self,
        status: ComplaintStatus,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Complaint]:
        return self._list(select(Complaint).where(Complaint.status == status), skip, limit)

    def find_by_entity(
        self,
        entity_id: str,
        status: Optional[ComplaintStatus] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Complaint]:
        """
        Find complaints filed against an entity.

        Args:
            entity_id: Entity identifier
            status: Optional status filter
            skip: Number of records to skip
            limit: Maximum records to return
        """
        query = select(Complaint).where(Complaint.entity_id == entity_id)
        if status:
            query = query.where(Complaint.status == status)
        return self._list(query, skip, limit)

    def find_by_user(
        self,
        user_id: str,
        status: Optional[ComplaintStatus] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Complaint]:
        query = select(Complaint).where(Complaint.user_id == user_id)
        if status:
            query = query.where(Complaint.status == status)
        return self._list(query, skip, limit)

    def find_assigned_to(
        self,
        employee_id: str,
        status: Optional[ComplaintStatus] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Complaint]:
        query = select(Complaint).where(Complaint.assigned_to == employee_id)
        if status:
            query = query.where(Complaint.status == status)
        return self._list(query, skip, limit)

    def find_new(self, skip: int = 0, limit: int = 100) -> List[Complaint]:
        return self.find_by_status(ComplaintStatus.NEW, skip, limit)

    def find_unlocked(
        self,
        now: Optional[datetime] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Complaint]:
        """Complaints with no claim or with a claim that has run out."""
        now = now or utcnow()
        query = select(Complaint).where(
            or_(
                Complaint.locked_at.is_(None),
                Complaint.lock_expires_at < now,
            )
        )
        return self._list(query, skip, limit)

    def find_expired_locks(self, now: Optional[datetime] = None) -> List[Complaint]:
        """
        In-progress complaints whose claim has expired.

        Args:
            now: Reference time, defaults to the current UTC time

        Returns:
            Complaints the sweeper should release
        """
        now = now or utcnow()
        query = select(Complaint).where(
            and_(
                Complaint.status == ComplaintStatus.IN_PROGRESS,
                Complaint.locked_at.is_not(None),
                Complaint.lock_expires_at < now,
                Complaint.deleted_at.is_(None),
            )
        )
        result = self.session.execute(query)
        return list(result.scalars().all())
