"""
Investment repository — data-access layer for the ``investments`` table.

Besides plain inserts, this repository owns the money aggregates used by
the dashboards; sums are computed by the database, not in Python.
"""

import uuid
from decimal import Decimal
from typing import List

from sqlalchemy import func
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from agrofund.models.campaign import Campaign
from agrofund.models.investment import Investment
from agrofund.models.project import Project
from agrofund.repositories.base import BaseRepository


class InvestmentRepository(BaseRepository[Investment]):
    """Concrete repository for :class:`Investment` entities."""

    async def total_amount(self) -> Decimal:
        """Sum of every investment ever recorded."""

        async def _total() -> Decimal:
            result = await self.db.execute(select(func.coalesce(func.sum(Investment.amount), 0)))
            return Decimal(str(result.scalar_one()))

        return await self._guarded(_total)

    async def total_for_farmer(self, farmer_id: uuid.UUID) -> Decimal:
        """Sum of investments received across all campaigns of ``farmer_id``."""

        async def _total_for_farmer() -> Decimal:
            stmt = (
                select(func.coalesce(func.sum(Investment.amount), 0))
                .join(Campaign, Campaign.id == Investment.campaign_id)
                .join(Project, Project.id == Campaign.project_id)
                .where(Project.farmer_id == farmer_id)
            )
            result = await self.db.execute(stmt)
            return Decimal(str(result.scalar_one()))

        return await self._guarded(_total_for_farmer)

    async def list_for_investor(self, investor_id: uuid.UUID) -> List[Investment]:
        """
        Investments of ``investor_id``, newest first.

        Each row carries its campaign with the project, the farmer and the
        campaign's full investment list, enough to compute live progress.
        """

        async def _list_for_investor() -> List[Investment]:
            stmt = (
                select(Investment)
                .where(Investment.investor_id == investor_id)
                .options(
                    selectinload(Investment.campaign)  # type: ignore[arg-type]
                    .selectinload(Campaign.project)  # type: ignore[arg-type]
                    .selectinload(Project.farmer),  # type: ignore[arg-type]
                    selectinload(Investment.campaign).selectinload(  # type: ignore[arg-type]
                        Campaign.investments  # type: ignore[arg-type]
                    ),
                )
                .order_by(Investment.created_at.desc(), Investment.id)
                .execution_options(populate_existing=True)
            )
            result = await self.db.execute(stmt)
            return list(result.scalars().all())

        return await self._guarded(_list_for_investor)
