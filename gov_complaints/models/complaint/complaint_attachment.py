"""
Files attached to a complaint by the citizen who filed it.
"""

from typing import TYPE_CHECKING

from sqlalchemy import Enum, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gov_complaints.models.base.base_model import BaseModel
from gov_complaints.models.base.enums import AttachmentType
from gov_complaints.models.base.mixins import TimestampMixin

if TYPE_CHECKING:
    from gov_complaints.models.complaint.complaint import Complaint

__all__ = ["ComplaintAttachment"]


class ComplaintAttachment(BaseModel, TimestampMixin):
    """
    Stored image or PDF belonging to exactly one complaint.

    The per-complaint caps (images and PDFs counted separately) are
    enforced by the complaint service, not by the table.
    """

    __tablename__ = "complaint_attachments"
    __table_args__ = (
        Index("ix_complaint_attachments_complaint_type", "complaint_id", "file_type"),
    )

    complaint_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("complaints.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_path: Mapped[str] = mapped_column(String(500), nullable=False)
    file_type: Mapped[AttachmentType] = mapped_column(
        Enum(
            AttachmentType,
            name="attachment_type_enum",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
    )
    mime_type: Mapped[str] = mapped_column(String(100), nullable=False)
    file_size: Mapped[int] = mapped_column(Integer, nullable=False)

    complaint: Mapped["Complaint"] = relationship(
        "Complaint",
        back_populates="attachments",
    )

    def __repr__(self) -> str:
        return f"<ComplaintAttachment(id={self.id}, type={self.file_type.value}, path={self.file_path})>"

    @property
    def human_readable_size(self) -> str:
        units = ['B', 'KB', 'MB', 'GB']
        size = float(self.file_size or 0)
        unit = 0
        while size > 1024 and unit < len(units) - 1:
            size /= 1024
            unit += 1
        return f"{round(size, 2)} {units[unit]}"
