"""
Campaign domain model.

A campaign is the fundraising window for exactly one project.  Lifecycle::

    pending ──approve──▶ active
    pending ──reject───▶ rejected

Only ``active`` campaigns whose ``end_date`` has not passed accept funding.
Reaching ``target_amount`` does not close a campaign.
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import CheckConstraint, DateTime
from sqlmodel import Field, Relationship, SQLModel

from agrofund.core.funding import is_window_open

if TYPE_CHECKING:
    from agrofund.models.investment import Investment
    from agrofund.models.project import Project


class CampaignStatus(str, Enum):
    """Allowed lifecycle states for a Campaign."""

    PENDING = "pending"
    ACTIVE = "active"
    REJECTED = "rejected"


class Campaign(SQLModel, table=True):
    """
    SQLModel / SQLAlchemy table definition for campaigns.

    - ``project_id`` is unique: one campaign per project.
    - ``target_amount`` is copied from the project's ``capital_needed``.
    """

    __tablename__ = "campaigns"  # type: ignore[assignment]

    __table_args__ = (
        CheckConstraint("target_amount >= 0", name="ck_campaigns_target_non_negative"),
        CheckConstraint("end_date >= start_date", name="ck_campaigns_window_ordered"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    project_id: uuid.UUID = Field(
        foreign_key="projects.id", unique=True, index=True, ondelete="RESTRICT"
    )
    target_amount: Decimal = Field(max_digits=20, decimal_places=2)
    start_date: datetime = Field(sa_type=DateTime(timezone=True))  # type: ignore[arg-type]
    end_date: datetime = Field(sa_type=DateTime(timezone=True))  # type: ignore[arg-type]
    status: CampaignStatus = Field(default=CampaignStatus.PENDING, index=True)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
        sa_type=DateTime(timezone=True),  # type: ignore[arg-type]
        index=True,
    )

    # ── Relationships ──
    project: Optional["Project"] = Relationship(back_populates="campaign")
    investments: List["Investment"] = Relationship(back_populates="campaign")

    def can_be_funded(self, now: Optional[datetime] = None) -> bool:
        """Active and not yet past ``end_date`` (being exactly at it still counts)."""
        return self.status == CampaignStatus.ACTIVE and is_window_open(self.end_date, now)

    def __repr__(self) -> str:
        return f"<Campaign id={self.id} project={self.project_id} status={self.status.value}>"
