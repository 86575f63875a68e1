"""
Pydantic schemas for the dashboard / report endpoints.

Every figure is computed at request time; these models only fix the shape.
"""

import uuid
from typing import Dict, List, Optional

from pydantic import BaseModel

from agrofund.models.campaign import CampaignStatus
from agrofund.models.user import UserRole
from agrofund.schemas.campaign import FundingDetails, ProjectResponse
from agrofund.schemas.common import DateOnly, Money, Timestamp


class InvestmentLine(BaseModel):
    investor_name: Optional[str]
    amount: Money
    invested_at: Timestamp


class InvestmentDetail(BaseModel):
    id: uuid.UUID
    investor_id: uuid.UUID
    investor_name: Optional[str]
    investor_email: Optional[str]
    amount: Money
    invested_at: Timestamp


class PartyRef(BaseModel):
    id: uuid.UUID
    name: str
    email: str


class CampaignStatistics(BaseModel):
    """Per-campaign block shared by the admin and farmer dashboards."""

    id: uuid.UUID
    project_name: Optional[str]
    project_description: Optional[str]
    farmer_name: Optional[str]
    target_amount: Money
    start_date: DateOnly
    end_date: DateOnly
    status: CampaignStatus
    funding_details: FundingDetails
    investments: List[InvestmentLine]


class UserStatistics(BaseModel):
    id: uuid.UUID
    name: str
    email: str
    phone: str
    role: UserRole
    joined_at: Timestamp
    total_campaigns: int
    total_investments: Money


class AdminDashboard(BaseModel):
    users: List[UserStatistics]
    campaigns: List[CampaignStatistics]
    total_funds: Money
    funds_by_status: Dict[str, Money]


class AdminCampaignEntry(BaseModel):
    id: uuid.UUID
    status: CampaignStatus
    target_amount: Money
    start_date: DateOnly
    end_date: DateOnly
    project: Optional[ProjectResponse]
    farmer: Optional[PartyRef]
    investments: List[InvestmentDetail]
    investors: List[PartyRef]
    investments_count: int
    investments_sum_amount: Money
    funding_details: FundingDetails


class AdminCampaignsReport(BaseModel):
    campaigns: List[AdminCampaignEntry]


class FarmerDashboard(BaseModel):
    total_campaigns: int
    total_investments: Money
    campaigns: List[CampaignStatistics]


class FarmerCampaignReport(BaseModel):
    campaign: CampaignStatistics
    investment_details: List[InvestmentDetail]


class FarmerCampaignsReport(BaseModel):
    total_campaigns: int
    total_funds_received: Money
    campaigns: List[CampaignStatistics]


class InvestorCampaignSnapshot(BaseModel):
    id: uuid.UUID
    project_name: Optional[str]
    farmer_name: Optional[str]
    target_amount: Money
    funding_progress: float
    status: CampaignStatus


class InvestorInvestmentLine(BaseModel):
    investment_id: uuid.UUID
    amount: Money
    invested_at: Timestamp
    campaign: InvestorCampaignSnapshot


class InvestorDashboard(BaseModel):
    total_investments: int
    total_amount_invested: Money
    investments: List[InvestorInvestmentLine]
