"""
Complaint response schemas for API outputs.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import ConfigDict, Field

from gov_complaints.models.base.enums import AttachmentType, ComplaintStatus
from gov_complaints.schemas.common.base import BaseResponseSchema

__all__ = [
    "AttachmentResponse",
    "ComplaintResponse",
]


class AttachmentResponse(BaseResponseSchema):
    model_config = ConfigDict(from_attributes=True)

    file_name: str
    file_path: str
    file_type: AttachmentType
    mime_type: str
    file_size: int


class ComplaintResponse(BaseResponseSchema):
    """
    Persisted shape of a complaint as exposed to clients.
    """
    model_config = ConfigDict(from_attributes=True)

    tracking_number: str = Field(..., description="Public complaint reference")
    entity_id: str
    status: ComplaintStatus

    complaint_kind: str
    description: str
    location: str

    assigned_to: Optional[str] = Field(default=None, description="Employee handling the complaint")
    lock_expires_at: Optional[datetime] = None

    info_requested: bool = False
    info_request_message: Optional[str] = None

    version: int = Field(..., ge=1, description="Send back as expected_version on writes")

    admin_notes: Optional[str] = None
    resolution: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None

    attachments: List[AttachmentResponse] = Field(default_factory=list)
