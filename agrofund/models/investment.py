"""
Investment domain model.

One investor's contribution to one campaign.  Rows are append-only: the API
never updates or deletes them.
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, DateTime, Index
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from agrofund.models.campaign import Campaign
    from agrofund.models.user import User


class Investment(SQLModel, table=True):
    """
    SQLModel / SQLAlchemy table definition for investments.

    - ``investor_id`` references the investing user.
    - ``ix_investments_campaign_created`` covers per-campaign listings
      ordered by time.
    """

    __tablename__ = "investments"  # type: ignore[assignment]

    __table_args__ = (
        Index("ix_investments_campaign_created", "campaign_id", "created_at"),
        CheckConstraint("amount >= 0", name="ck_investments_amount_non_negative"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    campaign_id: uuid.UUID = Field(foreign_key="campaigns.id", index=True, ondelete="RESTRICT")
    investor_id: uuid.UUID = Field(foreign_key="users.id", index=True, ondelete="RESTRICT")
    amount: Decimal = Field(max_digits=20, decimal_places=2)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
        sa_type=DateTime(timezone=True),  # type: ignore[arg-type]
        index=True,
    )

    # ── Relationships ──
    campaign: Optional["Campaign"] = Relationship(back_populates="investments")
    investor: Optional["User"] = Relationship(back_populates="investments")

    def __repr__(self) -> str:
        return (
            f"<Investment id={self.id} campaign={self.campaign_id} "
            f"investor={self.investor_id} amount={self.amount}>"
        )
