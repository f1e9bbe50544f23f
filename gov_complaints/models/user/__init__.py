from gov_complaints.models.user.user import Entity, User

__all__ = ["Entity", "User"]
