"""
User accounts and the government entities employees belong to.

Authentication lives outside this package; these tables only carry what
the complaint workflow needs to decide who may act on a complaint.
"""

from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, Enum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gov_complaints.models.base.base_model import BaseModel
from gov_complaints.models.base.enums import UserRole
from gov_complaints.models.base.mixins import SoftDeleteMixin, TimestampMixin

if TYPE_CHECKING:
    from gov_complaints.models.complaint.complaint import Complaint

__all__ = ["Entity", "User"]


class Entity(BaseModel, TimestampMixin):
    """Government organization that complaints are filed against."""

    __tablename__ = "entities"

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        comment="Organization display name",
    )

    employees: Mapped[List["User"]] = relationship(
        "User",
        back_populates="entity",
        lazy="select",
    )

    def __repr__(self) -> str:
        return f"<Entity(id={self.id}, name={self.name})>"


class User(BaseModel, TimestampMixin, SoftDeleteMixin):
    """
    Account of a citizen, an entity employee or an admin.

    Attributes:
        email: Login and notification address
        role: citizen, employee or admin
        entity_id: Entity an employee works for (None for citizens)
        is_active: Disabled accounts keep their history but cannot act
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
    )

    first_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    last_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")

    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, name="user_role_enum", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=UserRole.CITIZEN,
        index=True,
    )

    entity_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("entities.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        comment="Employer entity for employees",
    )

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    entity: Mapped[Optional["Entity"]] = relationship(
        "Entity",
        back_populates="employees",
        lazy="joined",
    )

    complaints: Mapped[List["Complaint"]] = relationship(
        "Complaint",
        foreign_keys="Complaint.user_id",
        back_populates="user",
        lazy="select",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, role={self.role.value})>"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def is_citizen(self) -> bool:
        return self.role == UserRole.CITIZEN

    def is_employee(self) -> bool:
        return self.role == UserRole.EMPLOYEE

    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
