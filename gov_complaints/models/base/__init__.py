from gov_complaints.models.base.base_model import Base, BaseModel
from gov_complaints.models.base.enums import AttachmentType, ComplaintStatus, UserRole
from gov_complaints.models.base.mixins import SoftDeleteMixin, TimestampMixin

__all__ = [
    "Base",
    "BaseModel",
    "TimestampMixin",
    "SoftDeleteMixin",
    "UserRole",
    "ComplaintStatus",
    "AttachmentType",
]
