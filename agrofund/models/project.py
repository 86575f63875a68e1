"""
Project domain model.

The agricultural proposal behind a campaign.  A project is written once,
in the same transaction as its campaign, and never edited afterwards.
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, DateTime
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from agrofund.models.campaign import Campaign
    from agrofund.models.user import User


class Project(SQLModel, table=True):
    """SQLModel / SQLAlchemy table definition for projects."""

    __tablename__ = "projects"  # type: ignore[assignment]

    __table_args__ = (
        CheckConstraint("capital_needed >= 0", name="ck_projects_capital_non_negative"),
        CheckConstraint("duration_months >= 1", name="ck_projects_duration_min"),
        CheckConstraint("length(name) > 0", name="ck_projects_name_not_empty"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(index=True, max_length=255)
    description: str
    location: str = Field(max_length=255)
    capital_needed: Decimal = Field(max_digits=20, decimal_places=2)
    duration_months: int
    benefits: str
    risks: str
    farmer_id: uuid.UUID = Field(foreign_key="users.id", index=True, ondelete="RESTRICT")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
        sa_type=DateTime(timezone=True),  # type: ignore[arg-type]
    )

    # ── Relationships ──
    farmer: Optional["User"] = Relationship(back_populates="projects")
    campaign: Optional["Campaign"] = Relationship(
        back_populates="project", sa_relationship_kwargs={"uselist": False}
    )

    def __repr__(self) -> str:
        return f"<Project id={self.id} name='{self.name}' farmer={self.farmer_id}>"
