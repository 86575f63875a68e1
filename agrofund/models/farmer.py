"""
Farmer profile model.

Created alongside a ``farmer`` user at registration and linked back through
``User.profile_type`` / ``User.profile_id``.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


class Farmer(SQLModel, table=True):
    """SQLModel / SQLAlchemy table definition for farmer profiles."""

    __tablename__ = "farmers"  # type: ignore[assignment]

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    first_name: str = Field(max_length=255)
    last_name: str = Field(max_length=255)
    contact: str = Field(default="", max_length=20)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
        sa_type=DateTime(timezone=True),  # type: ignore[arg-type]
    )

    def __repr__(self) -> str:
        return f"<Farmer id={self.id} name='{self.first_name} {self.last_name}'>"
