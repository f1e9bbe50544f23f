from gov_complaints.schemas.complaint.complaint_base import ComplaintCreate, ComplaintUpdate
from gov_complaints.schemas.complaint.complaint_response import AttachmentResponse, ComplaintResponse

__all__ = [
    "ComplaintCreate",
    "ComplaintUpdate",
    "ComplaintResponse",
    "AttachmentResponse",
]
