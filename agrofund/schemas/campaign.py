"""
Pydantic schemas for Campaign API request / response serialisation.

Request field names follow the public form contract (``project_name``,
``project_capital``…); responses expose the stored entity names.
"""

import uuid
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from agrofund.core.funding import FundingSummary, summarize
from agrofund.models.campaign import Campaign, CampaignStatus
from agrofund.schemas.common import Money, Timestamp


class CampaignCreate(BaseModel):
    """Schema for ``POST /campaigns``: the project behind the new campaign."""

    project_name: str = Field(..., min_length=1, max_length=255, examples=["Drip irrigation"])
    project_description: str = Field(..., min_length=1)
    project_capital: Decimal = Field(
        ...,
        ge=0,
        max_digits=20,
        decimal_places=2,
        description="Capital needed; becomes the campaign target",
        examples=[1000],
    )
    project_duration: int = Field(
        ..., ge=1, description="Campaign length in months", examples=[6]
    )
    project_location: str = Field(..., min_length=1, max_length=255)
    project_benefits: str = Field(..., min_length=1)
    project_risks: str = Field(..., min_length=1)

    @field_validator(
        "project_name",
        "project_description",
        "project_location",
        "project_benefits",
        "project_risks",
    )
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Reject whitespace-only text."""
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


class FundRequest(BaseModel):
    """Schema for ``POST /campaigns/{id}/fund``."""

    amount: Decimal = Field(..., ge=0, max_digits=20, decimal_places=2, examples=[600])


class ProjectResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: str
    location: str
    capital_needed: Money
    duration_months: int
    benefits: str
    risks: str
    farmer_id: uuid.UUID
    created_at: Timestamp

    model_config = ConfigDict(from_attributes=True)


class InvestmentResponse(BaseModel):
    id: uuid.UUID
    campaign_id: uuid.UUID
    investor_id: uuid.UUID
    amount: Money
    created_at: Timestamp

    model_config = ConfigDict(from_attributes=True)


class FundingDetails(BaseModel):
    """Live funding position of one campaign."""

    total_funds: Money
    investment_count: int
    investor_count: int
    funding_progress: float = Field(..., description="Percent of target raised, 2 decimals")
    remaining_amount: Money

    @classmethod
    def from_summary(cls, summary: FundingSummary) -> "FundingDetails":
        return cls(
            total_funds=summary.total_funds,
            investment_count=summary.investment_count,
            investor_count=summary.investor_count,
            funding_progress=summary.funding_progress,
            remaining_amount=summary.remaining_amount,
        )

    @classmethod
    def for_campaign(cls, campaign: Campaign) -> "FundingDetails":
        """Requires ``campaign.investments`` to be loaded."""
        investments = campaign.investments
        return cls.from_summary(
            summarize(
                campaign.target_amount,
                [i.amount for i in investments],
                [i.investor_id for i in investments],
            )
        )


class CampaignResponse(BaseModel):
    """A campaign with its project, investments and funding position."""

    id: uuid.UUID
    project_id: uuid.UUID
    target_amount: Money
    start_date: Timestamp
    end_date: Timestamp
    status: CampaignStatus
    created_at: Timestamp
    project: Optional[ProjectResponse] = None
    investments: List[InvestmentResponse] = Field(default_factory=list)
    funding_details: FundingDetails

    @classmethod
    def from_campaign(cls, campaign: Campaign) -> "CampaignResponse":
        """Build from a campaign loaded by ``CampaignRepository.get_with_details``."""
        return cls(
            id=campaign.id,
            project_id=campaign.project_id,
            target_amount=campaign.target_amount,
            start_date=campaign.start_date,
            end_date=campaign.end_date,
            status=campaign.status,
            created_at=campaign.created_at,
            project=(
                ProjectResponse.model_validate(campaign.project) if campaign.project else None
            ),
            investments=[InvestmentResponse.model_validate(i) for i in campaign.investments],
            funding_details=FundingDetails.for_campaign(campaign),
        )


class CampaignData(BaseModel):
    campaign: CampaignResponse


class CampaignListData(BaseModel):
    campaigns: List[CampaignResponse]


class FundingData(BaseModel):
    investment: InvestmentResponse
    campaign: CampaignResponse
