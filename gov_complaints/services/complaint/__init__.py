from gov_complaints.services.complaint.complaint_lock_service import ComplaintLockService
from gov_complaints.services.complaint.complaint_service import ComplaintService, ComplaintServiceConfig
from gov_complaints.services.complaint.complaint_service_factory import ComplaintServiceFactory, config_from_settings
from gov_complaints.services.complaint.complaint_state_policy import ComplaintTransition

__all__ = [
    "ComplaintLockService",
    "ComplaintService",
    "ComplaintServiceConfig",
    "ComplaintServiceFactory",
    "ComplaintTransition",
    "config_from_settings",
]
