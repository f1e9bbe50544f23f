"""
Base model configuration for SQLAlchemy ORM.

Provides the declarative base and an abstract model with a UUID string
primary key and serialization helpers.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import uuid4

from sqlalchemy import String
from sqlalchemy.orm import Mapped, declarative_base, mapped_column

# Create declarative base
Base = declarative_base()


class BaseModel(Base):
    """
    Abstract base model with common fields and methods.
    """

    __abstract__ = True

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
        nullable=False,
        comment="Primary key (UUID)"
    )

    def to_dict(self, exclude: Optional[List[str]] = None) -> Dict[str, Any]:
        """
        Convert model instance to dictionary.

        Args:
            exclude: List of field names to exclude

        Returns:
            Dictionary representation of the model
        """
        exclude = exclude or []
        result = {}

        for column in self.__table__.columns:
            if column.name in exclude:
                continue
            value = getattr(self, column.key)
            if isinstance(value, datetime):
                result[column.name] = value.isoformat()
            elif hasattr(value, "value"):
                result[column.name] = value.value
            else:
                result[column.name] = value

        return result
