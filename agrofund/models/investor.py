"""
Investor profile model.

Created alongside an ``investor`` user at registration.  Self-registered
investors start as individuals with an unspecified ``0-0`` budget range.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


class InvestorType(str, Enum):
    """Allowed investor classifications."""

    INDIVIDUAL = "individual"
    INSTITUTION = "institution"
    FAMILY_OFFICE = "family_office"


class Investor(SQLModel, table=True):
    """SQLModel / SQLAlchemy table definition for investor profiles."""

    __tablename__ = "investors"  # type: ignore[assignment]

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(max_length=255)
    contact: str = Field(default="", max_length=20)
    budget_range: str = Field(default="0-0", max_length=50)
    investor_type: InvestorType = Field(default=InvestorType.INDIVIDUAL)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
        sa_type=DateTime(timezone=True),  # type: ignore[arg-type]
    )

    def __repr__(self) -> str:
        return f"<Investor id={self.id} name='{self.name}' type={self.investor_type.value}>"
