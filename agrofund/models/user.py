"""
User domain model.

A user authenticates with email + password and carries exactly one role.
Farmers and investors own a role-specific profile through the polymorphic
``profile_type`` / ``profile_id`` pair (the "userable" association); admins
have none.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import CheckConstraint, DateTime
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from agrofund.models.investment import Investment
    from agrofund.models.project import Project
    from agrofund.models.token import PersonalAccessToken


class UserRole(str, Enum):
    """Roles a user can hold.  Only farmer / investor are self-registrable."""

    FARMER = "farmer"
    INVESTOR = "investor"
    ADMIN = "admin"


class ProfileType(str, Enum):
    """Discriminator for the polymorphic profile association."""

    FARMER = "farmer"
    INVESTOR = "investor"


class User(SQLModel, table=True):
    """
    SQLModel / SQLAlchemy table definition for users.

    - ``email`` has a unique index; duplicate registrations are rejected at DB level.
    - ``role`` is set once at registration and never changed by the API.
    - ``profile_id`` is not a foreign key: its target table depends on
      ``profile_type``.
    """

    __tablename__ = "users"  # type: ignore[assignment]

    __table_args__ = (
        CheckConstraint("length(name) > 0", name="ck_users_name_not_empty"),
        CheckConstraint("length(email) > 0", name="ck_users_email_not_empty"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(index=True, max_length=255)
    email: str = Field(unique=True, index=True, max_length=255)
    password_hash: str = Field(max_length=255)
    phone: str = Field(max_length=20)
    role: UserRole = Field(index=True)
    profile_type: Optional[ProfileType] = Field(default=None)
    profile_id: Optional[uuid.UUID] = Field(default=None, index=True)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
        sa_type=DateTime(timezone=True),  # type: ignore[arg-type]
    )

    # ── Relationships ──
    projects: List["Project"] = Relationship(back_populates="farmer")
    investments: List["Investment"] = Relationship(back_populates="investor")
    tokens: List["PersonalAccessToken"] = Relationship(back_populates="user")

    def __repr__(self) -> str:
        return f"<User id={self.id} email='{self.email}' role={self.role.value}>"
