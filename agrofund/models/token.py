"""
Personal access token model.

Bearer tokens are opaque random strings; only their SHA-256 digest is
stored.  Revoking a token deletes its row.
"""

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from agrofund.models.user import User


class PersonalAccessToken(SQLModel, table=True):
    """SQLModel / SQLAlchemy table definition for issued bearer tokens."""

    __tablename__ = "personal_access_tokens"  # type: ignore[assignment]

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", index=True, ondelete="CASCADE")
    name: str = Field(default="auth_token", max_length=255)
    token_hash: str = Field(unique=True, index=True, max_length=64)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
        sa_type=DateTime(timezone=True),  # type: ignore[arg-type]
    )
    last_used_at: Optional[datetime] = Field(
        default=None, sa_type=DateTime(timezone=True)  # type: ignore[arg-type]
    )
    expires_at: Optional[datetime] = Field(
        default=None, sa_type=DateTime(timezone=True)  # type: ignore[arg-type]
    )

    # ── Relationships ──
    user: Optional["User"] = Relationship(back_populates="tokens")

    def __repr__(self) -> str:
        return f"<PersonalAccessToken id={self.id} user={self.user_id} name='{self.name}'>"
