from gov_complaints.models.complaint.complaint import Complaint
from gov_complaints.models.complaint.complaint_attachment import ComplaintAttachment

__all__ = ["Complaint", "ComplaintAttachment"]
