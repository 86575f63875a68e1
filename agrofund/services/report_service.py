"""
Report service — read-only aggregation behind the dashboards.

Money totals that span many campaigns (global funds, funds per status,
a farmer's received funds, per-user totals) are summed by the database.
Per-campaign figures are derived from the campaign's eager-loaded
investments with :func:`agrofund.core.funding.summarize`, so a dashboard
and ``GET /campaigns/{id}`` always agree.
"""

import logging
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID

from agrofund.core.exceptions import NotFoundException
from agrofund.core.funding import as_utc, funding_progress, to_decimal
from agrofund.models.campaign import Campaign
from agrofund.models.investment import Investment
from agrofund.models.user import User, UserRole
from agrofund.repositories.campaign_repo import CampaignRepository
from agrofund.repositories.investment_repo import InvestmentRepository
from agrofund.repositories.user_repo import UserRepository
from agrofund.schemas.campaign import FundingDetails, ProjectResponse
from agrofund.schemas.report import (
    AdminCampaignEntry,
    AdminCampaignsReport,
    AdminDashboard,
    CampaignStatistics,
    FarmerCampaignReport,
    FarmerCampaignsReport,
    FarmerDashboard,
    InvestmentDetail,
    InvestmentLine,
    InvestorCampaignSnapshot,
    InvestorDashboard,
    InvestorInvestmentLine,
    PartyRef,
    UserStatistics,
)

logger = logging.getLogger(__name__)


# ── Shaping helpers ──


def _farmer_name(campaign: Campaign) -> Optional[str]:
    project = campaign.project
    if project is None or project.farmer is None:
        return None
    return project.farmer.name


def _newest_first(investments: List[Investment]) -> List[Investment]:
    return sorted(investments, key=lambda i: as_utc(i.created_at), reverse=True)


def campaign_statistics(campaign: Campaign) -> CampaignStatistics:
    """Per-campaign block; needs project, farmer and investments→investor loaded."""
    project = campaign.project
    return CampaignStatistics(
        id=campaign.id,
        project_name=project.name if project else None,
        project_description=project.description if project else None,
        farmer_name=_farmer_name(campaign),
        target_amount=campaign.target_amount,
        start_date=campaign.start_date,
        end_date=campaign.end_date,
        status=campaign.status,
        funding_details=FundingDetails.for_campaign(campaign),
        investments=[
            InvestmentLine(
                investor_name=i.investor.name if i.investor else None,
                amount=i.amount,
                invested_at=i.created_at,
            )
            for i in _newest_first(campaign.investments)
        ],
    )


def _investment_detail(investment: Investment) -> InvestmentDetail:
    investor = investment.investor
    return InvestmentDetail(
        id=investment.id,
        investor_id=investment.investor_id,
        investor_name=investor.name if investor else None,
        investor_email=investor.email if investor else None,
        amount=investment.amount,
        invested_at=investment.created_at,
    )


def _party(user: User) -> PartyRef:
    return PartyRef(id=user.id, name=user.name, email=user.email)


class ReportService:
    """Builds the admin, farmer and investor dashboards."""

    def __init__(
        self,
        campaign_repo: CampaignRepository,
        invest_repo: InvestmentRepository,
        user_repo: UserRepository,
    ):
        self._campaign_repo = campaign_repo
        self._invest_repo = invest_repo
        self._user_repo = user_repo

    # ── Admin ──

    async def admin_dashboard(self) -> AdminDashboard:
        """Every user with their totals, every campaign, and global fund sums."""
        users = await self._user_repo.list_with_totals()
        campaigns = await self._campaign_repo.list_with_details(limit=None)
        total_funds = await self._invest_repo.total_amount()
        by_status = await self._campaign_repo.funds_by_status()

        roster = [
            UserStatistics(
                id=user.id,
                name=user.name,
                email=user.email,
                phone=user.phone,
                role=user.role,
                joined_at=user.created_at,
                total_campaigns=project_count if user.role == UserRole.FARMER else 0,
                total_investments=(
                    to_decimal(invested) if user.role == UserRole.INVESTOR else to_decimal(0)
                ),
            )
            for user, project_count, invested in users
        ]
        funds: Dict[str, Decimal] = {status.value: amount for status, amount in by_status.items()}
        return AdminDashboard(
            users=roster,
            campaigns=[campaign_statistics(c) for c in campaigns],
            total_funds=total_funds,
            funds_by_status=funds,
        )

    async def admin_campaigns_report(self) -> AdminCampaignsReport:
        """Campaigns with farmer, project, investments and distinct investors."""
        campaigns = await self._campaign_repo.list_with_details(limit=None)
        entries = []
        for campaign in campaigns:
            investors: Dict[UUID, User] = {}
            for investment in campaign.investments:
                if investment.investor is not None:
                    investors.setdefault(investment.investor_id, investment.investor)
            project = campaign.project
            farmer = project.farmer if project else None
            details = FundingDetails.for_campaign(campaign)
            entries.append(
                AdminCampaignEntry(
                    id=campaign.id,
                    status=campaign.status,
                    target_amount=campaign.target_amount,
                    start_date=campaign.start_date,
                    end_date=campaign.end_date,
                    project=ProjectResponse.model_validate(project) if project else None,
                    farmer=_party(farmer) if farmer else None,
                    investments=[_investment_detail(i) for i in campaign.investments],
                    investors=[_party(u) for u in investors.values()],
                    investments_count=details.investment_count,
                    investments_sum_amount=details.total_funds,
                    funding_details=details,
                )
            )
        return AdminCampaignsReport(campaigns=entries)

    # ── Farmer ──

    async def farmer_dashboard(self, farmer: User) -> FarmerDashboard:
        campaigns = await self._campaign_repo.list_with_details(limit=None, farmer_id=farmer.id)
        total = await self._invest_repo.total_for_farmer(farmer.id)
        return FarmerDashboard(
            total_campaigns=len(campaigns),
            total_investments=total,
            campaigns=[campaign_statistics(c) for c in campaigns],
        )

    async def farmer_campaigns_report(self, farmer: User) -> FarmerCampaignsReport:
        campaigns = await self._campaign_repo.list_with_details(limit=None, farmer_id=farmer.id)
        total = await self._invest_repo.total_for_farmer(farmer.id)
        return FarmerCampaignsReport(
            total_campaigns=len(campaigns),
            total_funds_received=total,
            campaigns=[campaign_statistics(c) for c in campaigns],
        )

    async def farmer_campaign_report(self, farmer: User, campaign_id: UUID) -> FarmerCampaignReport:
        """
        One of ``farmer``'s campaigns with its investments, newest first.

        A campaign owned by someone else answers exactly like a missing one.
        """
        campaign = await self._campaign_repo.get_with_details(campaign_id, farmer_id=farmer.id)
        if campaign is None:
            raise NotFoundException("Campaign", campaign_id)
        return FarmerCampaignReport(
            campaign=campaign_statistics(campaign),
            investment_details=[
                _investment_detail(i) for i in _newest_first(campaign.investments)
            ],
        )

    # ── Investor ──

    async def investor_dashboard(self, investor: User) -> InvestorDashboard:
        """The investor's investments, newest first, each with live campaign progress."""
        investments = await self._invest_repo.list_for_investor(investor.id)
        lines = []
        total = to_decimal(0)
        for investment in investments:
            campaign = investment.campaign
            total += to_decimal(investment.amount)
            raised = sum((to_decimal(i.amount) for i in campaign.investments), to_decimal(0))
            lines.append(
                InvestorInvestmentLine(
                    investment_id=investment.id,
                    amount=investment.amount,
                    invested_at=investment.created_at,
                    campaign=InvestorCampaignSnapshot(
                        id=campaign.id,
                        project_name=campaign.project.name if campaign.project else None,
                        farmer_name=_farmer_name(campaign),
                        target_amount=campaign.target_amount,
                        funding_progress=funding_progress(raised, campaign.target_amount),
                        status=campaign.status,
                    ),
                )
            )
        logger.debug("Investor dashboard for %s: %d investment(s)", investor.id, len(lines))
        return InvestorDashboard(
            total_investments=len(lines),
            total_amount_invested=total,
            investments=lines,
        )
