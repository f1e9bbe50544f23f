"""
Enumerations shared by models, schemas and services.
"""

import enum


class UserRole(str, enum.Enum):
    """Roles a user account can hold."""
    CITIZEN = "citizen"
    EMPLOYEE = "employee"
    ADMIN = "admin"


class ComplaintStatus(str, enum.Enum):
    """Complaint workflow status."""
    NEW = "new"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"
    DECLINED = "declined"


class AttachmentType(str, enum.Enum):
    """Kinds of files a citizen can attach to a complaint."""
    IMAGE = "image"
    PDF = "pdf"
