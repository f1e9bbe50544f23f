"""
ORM models. Importing this package registers every table on Base.metadata.
"""

from gov_complaints.models.base import Base, BaseModel
from gov_complaints.models.complaint import Complaint, ComplaintAttachment
from gov_complaints.models.user import Entity, User

__all__ = [
    "Base",
    "BaseModel",
    "Complaint",
    "ComplaintAttachment",
    "Entity",
    "User",
]
