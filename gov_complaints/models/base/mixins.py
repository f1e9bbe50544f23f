"""
SQLAlchemy model mixins for reusable functionality.
"""

from sqlalchemy import Column, DateTime
from sqlalchemy.sql import func

from gov_complaints.utils.datetime_utils import utcnow


class TimestampMixin:
    """
    Mixin for automatic timestamp tracking.

    Provides created_at and updated_at fields with
    automatic timezone-aware timestamp management.
    """

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
        index=True,
        comment="Record creation timestamp (UTC)"
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
        comment="Record last update timestamp (UTC)"
    )


class SoftDeleteMixin:
    """
    Mixin for soft delete capability.

    Rows with deleted_at set are hidden from normal queries but kept
    for audit.
    """

    deleted_at = Column(
        DateTime(timezone=True),
        nullable=True,
        index=True,
        comment="Deletion timestamp (UTC)"
    )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None
