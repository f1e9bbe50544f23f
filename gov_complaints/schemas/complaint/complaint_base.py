"""
Complaint input schemas.

These validate shape at the API edge. Workflow rules (ownership, status,
attachment caps) are enforced by the complaint service.
"""

from typing import Optional

from pydantic import Field, field_validator

from gov_complaints.schemas.common.base import BaseCreateSchema, BaseUpdateSchema

__all__ = [
    "ComplaintCreate",
    "ComplaintUpdate",
]


class ComplaintCreate(BaseCreateSchema):
    """Fields a citizen submits when filing a complaint."""

    entity_id: str = Field(..., description="Entity the complaint targets")
    complaint_kind: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1, max_length=500)

    @field_validator("description", "complaint_kind", "location")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Value cannot be empty or whitespace only")
        return v


class ComplaintUpdate(BaseUpdateSchema):
    """
    Citizen edit. Only the fields that are set are applied.
    """

    complaint_kind: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, min_length=1)
    location: Optional[str] = Field(default=None, min_length=1, max_length=500)
