"""
Campaign repository — data-access layer for ``campaigns`` and their projects.

Campaign payloads always include the project, the farmer, and every
investment with its investor, so list/detail queries eager-load that graph
with ``selectinload`` (async sessions cannot lazy-load).
"""

import uuid
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from agrofund.models.campaign import Campaign, CampaignStatus
from agrofund.models.investment import Investment
from agrofund.models.project import Project
from agrofund.repositories.base import BaseRepository


def _with_details():
    return (
        selectinload(Campaign.project).selectinload(Project.farmer),  # type: ignore[arg-type]
        selectinload(Campaign.investments).selectinload(Investment.investor),  # type: ignore[arg-type]
    )


class CampaignRepository(BaseRepository[Campaign]):
    """Concrete repository for :class:`Campaign` entities."""

    async def list_with_details(
        self,
        skip: int = 0,
        limit: Optional[int] = 100,
        farmer_id: Optional[uuid.UUID] = None,
    ) -> List[Campaign]:
        """
        Campaigns (newest first) with project, farmer and investments loaded.

        ``farmer_id`` restricts the result to campaigns whose project belongs
        to that farmer.  ``limit=None`` returns everything (reports).
        """

        async def _list() -> List[Campaign]:
            stmt = select(Campaign).options(*_with_details())
            if farmer_id is not None:
                stmt = stmt.join(Project, Project.id == Campaign.project_id).where(
                    Project.farmer_id == farmer_id
                )
            stmt = stmt.order_by(Campaign.created_at.desc(), Campaign.id).offset(skip)
            if limit is not None:
                stmt = stmt.limit(limit)
            stmt = stmt.execution_options(populate_existing=True)
            result = await self.db.execute(stmt)
            return list(result.scalars().all())

        return await self._guarded(_list)

    async def get_with_details(
        self, campaign_id: uuid.UUID, farmer_id: Optional[uuid.UUID] = None
    ) -> Optional[Campaign]:
        """
        One campaign with its full graph, freshly read from the database.

        ``populate_existing`` overwrites any stale copy held in the session's
        identity map, e.g. an investments collection loaded before a new
        investment was committed.
        """

        async def _get() -> Optional[Campaign]:
            stmt = select(Campaign).options(*_with_details()).where(Campaign.id == campaign_id)
            if farmer_id is not None:
                stmt = stmt.join(Project, Project.id == Campaign.project_id).where(
                    Project.farmer_id == farmer_id
                )
            stmt = stmt.execution_options(populate_existing=True)
            result = await self.db.execute(stmt)
            return result.scalars().first()

        return await self._guarded(_get)

    async def get_for_update(self, campaign_id: uuid.UUID) -> Optional[Campaign]:
        """
        Read a campaign under ``SELECT … FOR UPDATE``.

        The row lock lasts until the caller commits or rolls back, so a
        funding check and the investment insert see the same campaign state.
        SQLite ignores the clause; its writes are serialised anyway.
        """

        async def _get_for_update() -> Optional[Campaign]:
            stmt = (
                select(Campaign)
                .where(Campaign.id == campaign_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            result = await self.db.execute(stmt)
            return result.scalars().first()

        return await self._guarded(_get_for_update)

    async def create_with_project(self, project: Project, campaign: Campaign) -> Campaign:
        """
        Insert a project and its campaign atomically.

        Either both rows are committed or neither is; the caller handles the
        rollback on failure.
        """

        async def _create() -> Campaign:
            self.db.add(project)
            await self.db.flush()
            campaign.project_id = project.id
            self.db.add(campaign)
            await self.commit()
            return campaign

        return await self._guarded(_create)

    async def funds_by_status(self) -> Dict[CampaignStatus, Decimal]:
        """Sum of investments grouped by campaign status; every status is present."""

        async def _funds_by_status() -> Dict[CampaignStatus, Decimal]:
            stmt = (
                select(Campaign.status, func.coalesce(func.sum(Investment.amount), 0))
                .select_from(Campaign)
                .outerjoin(Investment, Investment.campaign_id == Campaign.id)
                .group_by(Campaign.status)
            )
            result = await self.db.execute(stmt)
            totals: Dict[CampaignStatus, Decimal] = {s: Decimal("0") for s in CampaignStatus}
            for status, total in result.all():
                totals[CampaignStatus(status)] = Decimal(str(total))
            return totals

        return await self._guarded(_funds_by_status)

