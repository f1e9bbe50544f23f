"""
Attachment rows for complaints.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import and_, func, select
from sqlalchemy.orm import Session

from gov_complaints.models.base.enums import AttachmentType
from gov_complaints.models.complaint.complaint_attachment import ComplaintAttachment
from gov_complaints.repositories.base.base_repository import BaseRepository


class ComplaintAttachmentRepository(BaseRepository[ComplaintAttachment]):
    """Counts, bulk inserts and lookups for complaint attachments."""

    def __init__(self, session: Session):
        super().__init__(ComplaintAttachment, session)

    def count_by_type(self, complaint_id: str, file_type: AttachmentType) -> int:
        query = select(func.count(ComplaintAttachment.id)).where(
            and_(
                ComplaintAttachment.complaint_id == complaint_id,
                ComplaintAttachment.file_type == file_type,
            )
        )
        return int(self.session.execute(query).scalar() or 0)

    def create_many_for_complaint(
        self,
        complaint_id: str,
        rows: List[Dict[str, Any]],
    ) -> List[ComplaintAttachment]:
        """
        Persist uploader results for one complaint.

        Args:
            complaint_id: Owning complaint
            rows: Dicts with file_name, file_path, file_type, mime_type, file_size
        """
        attachments = [
            ComplaintAttachment(
                complaint_id=complaint_id,
                file_name=row["file_name"],
                file_path=row["file_path"],
                file_type=AttachmentType(row["file_type"]),
                mime_type=row["mime_type"],
                file_size=row["file_size"],
            )
            for row in rows
        ]
        return self.create_many(attachments)

    def find_for_complaint(
        self,
        complaint_id: str,
        attachment_id: Optional[str] = None,
    ):
        """
        Attachments of a complaint, or a single one when attachment_id is given.

        Returns:
            List of attachments, or one attachment / None for a single lookup
        """
        query = select(ComplaintAttachment).where(ComplaintAttachment.complaint_id == complaint_id)

        if attachment_id is not None:
            query = query.where(ComplaintAttachment.id == attachment_id)
            return self.session.execute(query).scalar_one_or_none()

        query = query.order_by(ComplaintAttachment.created_at.asc())
        return list(self.session.execute(query).scalars().all())
