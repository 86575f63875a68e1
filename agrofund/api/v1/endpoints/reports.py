"""
Report API endpoints.  Every report is role-restricted.

- GET  /reports/admin/dashboard           — Users, campaigns and fund totals (admin)
- GET  /reports/admin/campaigns           — Campaigns with farmers and investors (admin)
- GET  /reports/farmer/dashboard          — Caller's campaigns and totals (farmer)
- GET  /reports/farmer/campaigns          — Caller's campaigns report (farmer)
- GET  /reports/farmer/campaigns/{id}     — One of the caller's campaigns (farmer)
- GET  /reports/investor/dashboard        — Caller's investments (investor)
"""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from agrofund.api.deps import RoleChecker
from agrofund.db.session import get_db
from agrofund.models.campaign import Campaign
from agrofund.models.investment import Investment
from agrofund.models.user import User, UserRole
from agrofund.repositories.campaign_repo import CampaignRepository
from agrofund.repositories.investment_repo import InvestmentRepository
from agrofund.repositories.user_repo import UserRepository
from agrofund.schemas.common import ApiResponse, ErrorResponse
from agrofund.schemas.report import (
    AdminCampaignsReport,
    AdminDashboard,
    FarmerCampaignReport,
    FarmerCampaignsReport,
    FarmerDashboard,
    InvestorDashboard,
)
from agrofund.services.report_service import ReportService

router = APIRouter()

require_admin = RoleChecker(UserRole.ADMIN, "Only admins can access this report.")
require_farmer = RoleChecker(UserRole.FARMER, "Only farmers can access this report.")
require_investor = RoleChecker(UserRole.INVESTOR, "Only investors can access this report.")

_GUARDED = {
    401: {"model": ErrorResponse, "description": "Unauthenticated"},
    403: {"model": ErrorResponse, "description": "Wrong role"},
}


def _get_report_service(db: AsyncSession = Depends(get_db)) -> ReportService:
    """Build a ReportService wired to the current request's DB session."""
    return ReportService(
        campaign_repo=CampaignRepository(Campaign, db),
        invest_repo=InvestmentRepository(Investment, db),
        user_repo=UserRepository(User, db),
    )


# ── Admin ──


@router.get(
    "/admin/dashboard",
    response_model=ApiResponse[AdminDashboard],
    summary="Admin dashboard",
    responses=_GUARDED,
)
async def admin_dashboard(
    user: User = Depends(require_admin),
    service: ReportService = Depends(_get_report_service),
) -> ApiResponse[AdminDashboard]:
    report = await service.admin_dashboard()
    return ApiResponse(message="Admin dashboard data retrieved successfully", data=report)


@router.get(
    "/admin/campaigns",
    response_model=ApiResponse[AdminCampaignsReport],
    summary="Campaigns report",
    responses=_GUARDED,
)
async def admin_campaigns_report(
    user: User = Depends(require_admin),
    service: ReportService = Depends(_get_report_service),
) -> ApiResponse[AdminCampaignsReport]:
    report = await service.admin_campaigns_report()
    return ApiResponse(message="Campaigns report retrieved successfully", data=report)


# ── Farmer ──


@router.get(
    "/farmer/dashboard",
    response_model=ApiResponse[FarmerDashboard],
    summary="Farmer dashboard",
    responses=_GUARDED,
)
async def farmer_dashboard(
    user: User = Depends(require_farmer),
    service: ReportService = Depends(_get_report_service),
) -> ApiResponse[FarmerDashboard]:
    report = await service.farmer_dashboard(user)
    return ApiResponse(message="Farmer dashboard data retrieved successfully", data=report)


@router.get(
    "/farmer/campaigns",
    response_model=ApiResponse[FarmerCampaignsReport],
    summary="Farmer campaigns report",
    responses=_GUARDED,
)
async def farmer_campaigns_report(
    user: User = Depends(require_farmer),
    service: ReportService = Depends(_get_report_service),
) -> ApiResponse[FarmerCampaignsReport]:
    report = await service.farmer_campaigns_report(user)
    return ApiResponse(message="Farmer campaigns report retrieved successfully", data=report)


@router.get(
    "/farmer/campaigns/{campaign_id}",
    response_model=ApiResponse[FarmerCampaignReport],
    summary="Farmer campaign report",
    description="One of the caller's campaigns with every investment, newest first.",
    responses={
        **_GUARDED,
        404: {"model": ErrorResponse, "description": "Campaign not found or not owned"},
    },
)
async def farmer_campaign_report(
    campaign_id: UUID,
    user: User = Depends(require_farmer),
    service: ReportService = Depends(_get_report_service),
) -> ApiResponse[FarmerCampaignReport]:
    report = await service.farmer_campaign_report(user, campaign_id)
    return ApiResponse(message="Campaign report retrieved successfully", data=report)


# ── Investor ──


@router.get(
    "/investor/dashboard",
    response_model=ApiResponse[InvestorDashboard],
    summary="Investor dashboard",
    responses=_GUARDED,
)
async def investor_dashboard(
    user: User = Depends(require_investor),
    service: ReportService = Depends(_get_report_service),
) -> ApiResponse[InvestorDashboard]:
    report = await service.investor_dashboard(user)
    return ApiResponse(message="Investor dashboard data retrieved successfully", data=report)
