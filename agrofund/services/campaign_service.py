"""
Campaign service — business logic for the campaign lifecycle and funding.

Lifecycle rules::

    pending, rejected ──approve──▶ active
    pending, active   ──reject───▶ rejected

Approving an already-active campaign and rejecting an already-rejected one
are refused with a 400.  Funding is accepted only while
:meth:`Campaign.can_be_funded` holds, checked under a row lock in the same
transaction that records the investment.
"""

import logging
from decimal import Decimal
from typing import List, Tuple
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from agrofund.core.exceptions import (
    InvalidOperationException,
    NotFoundException,
    OperationFailedException,
)
from agrofund.core.funding import add_months, utcnow
from agrofund.models.campaign import Campaign, CampaignStatus
from agrofund.models.investment import Investment
from agrofund.models.project import Project
from agrofund.models.user import User
from agrofund.repositories.campaign_repo import CampaignRepository
from agrofund.repositories.investment_repo import InvestmentRepository
from agrofund.schemas.campaign import CampaignCreate

logger = logging.getLogger(__name__)

_FAILURES = {
    "approved": ("Failed to approve campaign", "Unable to approve campaign. Please try again."),
    "rejected": ("Failed to reject campaign", "Unable to reject campaign. Please try again."),
}


class CampaignService:
    """
    Encapsulates reads, creation, status transitions and funding of campaigns.

    Requires the investment repository as well because funding writes an
    :class:`Investment` row inside the campaign's lock.
    """

    def __init__(self, campaign_repo: CampaignRepository, invest_repo: InvestmentRepository):
        self._repo = campaign_repo
        self._invest_repo = invest_repo

    # ── Queries ──

    async def list_campaigns(self, skip: int = 0, limit: int = 100) -> List[Campaign]:
        """Return campaigns newest first, each with project and investments loaded."""
        return await self._repo.list_with_details(skip=skip, limit=limit)

    async def get_campaign(self, campaign_id: UUID) -> Campaign:
        """
        Retrieve one campaign with its project and investments.

        Raises :class:`NotFoundException` if the campaign does not exist.
        """
        campaign = await self._repo.get_with_details(campaign_id)
        if campaign is None:
            raise NotFoundException("Campaign", campaign_id)
        return campaign

    # ── Commands ──

    async def create_campaign(self, farmer: User, data: CampaignCreate) -> Campaign:
        """
        Create a project owned by ``farmer`` and its pending campaign.

        The window opens now and closes ``project_duration`` calendar months
        later; the target is the project's capital.  Both rows are committed
        together or not at all.
        """
        now = utcnow()
        project = Project(
            name=data.project_name,
            description=data.project_description,
            location=data.project_location,
            capital_needed=data.project_capital,
            duration_months=data.project_duration,
            benefits=data.project_benefits,
            risks=data.project_risks,
            farmer_id=farmer.id,
        )
        campaign = Campaign(
            target_amount=data.project_capital,
            start_date=now,
            end_date=add_months(now, data.project_duration),
            status=CampaignStatus.PENDING,
        )
        try:
            created = await self._repo.create_with_project(project, campaign)
        except SQLAlchemyError:
            await self._repo.rollback()
            logger.exception("Campaign creation failed for farmer %s", farmer.id)
            raise OperationFailedException(
                "Failed to create campaign",
                "The project and its campaign could not be saved. Please try again.",
            )
        logger.info("Created campaign %s for project '%s'", created.id, project.name)
        return await self.get_campaign(created.id)

    async def approve(self, campaign_id: UUID) -> Campaign:
        """Move a campaign to ``active``.  Refused if it already is."""
        campaign = await self.get_campaign(campaign_id)
        if campaign.status == CampaignStatus.ACTIVE:
            raise InvalidOperationException("Campaign is already approved.")
        return await self._set_status(campaign, CampaignStatus.ACTIVE, "approved")

    async def reject(self, campaign_id: UUID) -> Campaign:
        """Move a campaign to ``rejected``.  Refused if it already is."""
        campaign = await self.get_campaign(campaign_id)
        if campaign.status == CampaignStatus.REJECTED:
            raise InvalidOperationException("Campaign is already rejected.")
        return await self._set_status(campaign, CampaignStatus.REJECTED, "rejected")

    async def fund(
        self, campaign_id: UUID, investor: User, amount: Decimal
    ) -> Tuple[Investment, Campaign]:
        """
        Record an investment of ``amount`` by ``investor``.

        The campaign row is locked while fundability is checked and the
        investment inserted; the commit releases it.  Returns the new
        investment and the campaign reloaded with all its investments.
        """
        campaign = await self._repo.get_for_update(campaign_id)
        if campaign is None:
            await self._repo.rollback()
            raise NotFoundException("Campaign", campaign_id)

        if not campaign.can_be_funded(utcnow()):
            await self._repo.rollback()
            raise InvalidOperationException("Campaign cannot be funded at this time.", 403)

        investment = Investment(campaign_id=campaign.id, investor_id=investor.id, amount=amount)
        try:
            created = await self._invest_repo.create(investment)
        except SQLAlchemyError:
            await self._invest_repo.rollback()
            logger.exception("Funding failed for campaign %s", campaign_id)
            raise OperationFailedException(
                "Failed to fund campaign", "The investment could not be recorded. Please try again."
            )
        logger.info(
            "Investor %s funded campaign %s with %s",
            investor.id,
            campaign_id,
            created.amount,
            extra={"campaign_id": str(campaign_id), "amount": str(created.amount)},
        )
        return created, await self.get_campaign(campaign_id)

    # ── Internal helpers ──

    async def _set_status(self, campaign: Campaign, status: CampaignStatus, verb: str) -> Campaign:
        """Persist a status transition; ``verb`` is ``approved`` or ``rejected``."""
        campaign.status = status
        try:
            await self._repo.update(campaign)
        except SQLAlchemyError:
            await self._repo.rollback()
            logger.exception("Could not mark campaign %s as %s", campaign.id, verb)
            raise OperationFailedException(*_FAILURES[verb])
        logger.info("Campaign %s %s", campaign.id, verb, extra={"campaign_id": str(campaign.id)})
        return await self.get_campaign(campaign.id)
