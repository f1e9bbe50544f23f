from gov_complaints.repositories.complaint.complaint_attachment_repository import ComplaintAttachmentRepository
from gov_complaints.repositories.complaint.complaint_repository import ComplaintRepository

__all__ = ["ComplaintRepository", "ComplaintAttachmentRepository"]
