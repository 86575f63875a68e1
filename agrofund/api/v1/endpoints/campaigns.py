"""
Campaign API endpoints.

- GET   /campaigns                — List campaigns (public)
- GET   /campaigns/{id}           — Retrieve a campaign (public)
- POST  /campaigns                — Create a project and its campaign (farmer)
- POST  /campaigns/{id}/approve   — Approve a campaign (admin)
- POST  /campaigns/{id}/reject    — Reject a campaign (admin)
- POST  /campaigns/{id}/fund      — Invest in a campaign (investor)
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from agrofund.api.deps import RoleChecker
from agrofund.db.session import get_db
from agrofund.models.campaign import Campaign
from agrofund.models.investment import Investment
from agrofund.models.user import User, UserRole
from agrofund.repositories.campaign_repo import CampaignRepository
from agrofund.repositories.investment_repo import InvestmentRepository
from agrofund.schemas.campaign import (
    CampaignCreate,
    CampaignData,
    CampaignListData,
    CampaignResponse,
    FundingData,
    FundRequest,
    InvestmentResponse,
)
from agrofund.schemas.common import ApiResponse, ErrorResponse, ValidationErrorResponse
from agrofund.services.campaign_service import CampaignService

router = APIRouter()

require_farmer = RoleChecker(UserRole.FARMER, "Only farmers can create campaigns.")
require_admin_approve = RoleChecker(UserRole.ADMIN, "Only admins can approve campaigns.")
require_admin_reject = RoleChecker(UserRole.ADMIN, "Only admins can reject campaigns.")
require_investor = RoleChecker(UserRole.INVESTOR, "Only investors can fund campaigns.")


# ── Dependency injection ──


def _get_campaign_service(db: AsyncSession = Depends(get_db)) -> CampaignService:
    """
    Build a CampaignService wired to the current request's DB session.

    Both repositories share the session, so funding's lock and insert
    belong to one transaction.
    """
    return CampaignService(
        campaign_repo=CampaignRepository(Campaign, db),
        invest_repo=InvestmentRepository(Investment, db),
    )


def _campaign_data(campaign: Campaign) -> CampaignData:
    return CampaignData(campaign=CampaignResponse.from_campaign(campaign))


# ── Endpoints ──


@router.get(
    "",
    response_model=ApiResponse[CampaignListData],
    summary="List campaigns",
    description=(
        "Returns campaigns newest first, each with its project, investments "
        "and funding details.  Use ``skip`` and ``limit`` to paginate."
    ),
)
async def list_campaigns(
    skip: int = Query(0, ge=0, description="Number of records to skip"),
    limit: int = Query(100, ge=1, le=1000, description="Max records to return"),
    service: CampaignService = Depends(_get_campaign_service),
) -> ApiResponse[CampaignListData]:
    campaigns = await service.list_campaigns(skip=skip, limit=limit)
    return ApiResponse(
        message="Campaigns retrieved successfully",
        data=CampaignListData(campaigns=[CampaignResponse.from_campaign(c) for c in campaigns]),
    )


@router.get(
    "/{campaign_id}",
    response_model=ApiResponse[CampaignData],
    summary="Get a specific campaign",
    responses={404: {"model": ErrorResponse, "description": "Campaign not found"}},
)
async def get_campaign(
    campaign_id: UUID,
    service: CampaignService = Depends(_get_campaign_service),
) -> ApiResponse[CampaignData]:
    campaign = await service.get_campaign(campaign_id)
    return ApiResponse(message="Campaign retrieved successfully", data=_campaign_data(campaign))


@router.post(
    "",
    response_model=ApiResponse[CampaignData],
    status_code=201,
    summary="Create a campaign",
    description=(
        "Creates a project owned by the calling farmer and its *pending* "
        "campaign.  The campaign runs ``project_duration`` months from now "
        "and targets ``project_capital``."
    ),
    responses={
        401: {"model": ErrorResponse, "description": "Unauthenticated"},
        403: {"model": ErrorResponse, "description": "Caller is not a farmer"},
        422: {"model": ValidationErrorResponse, "description": "Validation error"},
        500: {"model": ErrorResponse, "description": "Creation failed"},
    },
)
async def create_campaign(
    payload: CampaignCreate,
    user: User = Depends(require_farmer),
    service: CampaignService = Depends(_get_campaign_service),
) -> ApiResponse[CampaignData]:
    campaign = await service.create_campaign(user, payload)
    return ApiResponse(message="Campaign created successfully", data=_campaign_data(campaign))


@router.post(
    "/{campaign_id}/approve",
    response_model=ApiResponse[CampaignData],
    summary="Approve a campaign",
    responses={
        400: {"model": ErrorResponse, "description": "Campaign already approved"},
        401: {"model": ErrorResponse, "description": "Unauthenticated"},
        403: {"model": ErrorResponse, "description": "Caller is not an admin"},
        404: {"model": ErrorResponse, "description": "Campaign not found"},
    },
)
async def approve_campaign(
    campaign_id: UUID,
    user: User = Depends(require_admin_approve),
    service: CampaignService = Depends(_get_campaign_service),
) -> ApiResponse[CampaignData]:
    campaign = await service.approve(campaign_id)
    return ApiResponse(message="Campaign approved successfully", data=_campaign_data(campaign))


@router.post(
    "/{campaign_id}/reject",
    response_model=ApiResponse[CampaignData],
    summary="Reject a campaign",
    responses={
        400: {"model": ErrorResponse, "description": "Campaign already rejected"},
        401: {"model": ErrorResponse, "description": "Unauthenticated"},
        403: {"model": ErrorResponse, "description": "Caller is not an admin"},
        404: {"model": ErrorResponse, "description": "Campaign not found"},
    },
)
async def reject_campaign(
    campaign_id: UUID,
    user: User = Depends(require_admin_reject),
    service: CampaignService = Depends(_get_campaign_service),
) -> ApiResponse[CampaignData]:
    campaign = await service.reject(campaign_id)
    return ApiResponse(message="Campaign rejected successfully", data=_campaign_data(campaign))


@router.post(
    "/{campaign_id}/fund",
    response_model=ApiResponse[FundingData],
    summary="Fund a campaign",
    description=(
        "Records an investment by the calling investor.  The campaign must "
        "be *active* and its end date must not have passed.  Funding beyond "
        "the target is allowed."
    ),
    responses={
        401: {"model": ErrorResponse, "description": "Unauthenticated"},
        403: {"model": ErrorResponse, "description": "Wrong role or campaign not fundable"},
        404: {"model": ErrorResponse, "description": "Campaign not found"},
        422: {"model": ValidationErrorResponse, "description": "Validation error"},
    },
)
async def fund_campaign(
    campaign_id: UUID,
    payload: FundRequest,
    user: User = Depends(require_investor),
    service: CampaignService = Depends(_get_campaign_service),
) -> ApiResponse[FundingData]:
    investment, campaign = await service.fund(campaign_id, user, payload.amount)
    return ApiResponse(
        message="Campaign funded successfully",
        data=FundingData(
            investment=InvestmentResponse.model_validate(investment),
            campaign=CampaignResponse.from_campaign(campaign),
        ),
    )
