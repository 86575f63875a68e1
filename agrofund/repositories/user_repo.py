"""
User repository — data-access layer for ``users`` and their role profiles.
"""

from decimal import Decimal
from typing import List, Optional, Tuple, Union

from sqlalchemy import func
from sqlalchemy.future import select

from agrofund.models.farmer import Farmer
from agrofund.models.investment import Investment
from agrofund.models.investor import Investor
from agrofund.models.project import Project
from agrofund.models.user import ProfileType, User
from agrofund.repositories.base import BaseRepository

Profile = Union[Farmer, Investor]

_PROFILE_MODELS = {ProfileType.FARMER: Farmer, ProfileType.INVESTOR: Investor}


class UserRepository(BaseRepository[User]):
    """Concrete repository for :class:`User` entities."""

    async def get_by_email(self, email: str) -> Optional[User]:
        """
        Look up a user by email address.

        Used for login and for the friendly duplicate-email check that runs
        before the unique index would fire.
        """

        async def _get_by_email() -> Optional[User]:
            stmt = select(User).where(User.email == email)
            result = await self.db.execute(stmt)
            return result.scalars().first()

        return await self._guarded(_get_by_email)

    async def create_with_profile(self, user: User, profile: Optional[Profile]) -> User:
        """
        Insert ``user`` and its role profile in a single transaction.

        The profile is flushed first so its generated id can be linked from
        ``user.profile_id``.  Nothing is committed unless both inserts succeed.
        """

        async def _create() -> User:
            if profile is not None:
                self.db.add(profile)
                await self.db.flush()
                user.profile_type = (
                    ProfileType.FARMER if isinstance(profile, Farmer) else ProfileType.INVESTOR
                )
                user.profile_id = profile.id
            self.db.add(user)
            await self.commit()
            await self.db.refresh(user)
            return user

        return await self._guarded(_create)

    async def get_profile(self, user: User) -> Optional[Profile]:
        """Resolve the polymorphic profile of ``user`` (``None`` for admins)."""
        if user.profile_type is None or user.profile_id is None:
            return None
        model = _PROFILE_MODELS[user.profile_type]

        async def _get_profile() -> Optional[Profile]:
            return await self.db.get(model, user.profile_id)

        return await self._guarded(_get_profile)

    async def list_with_totals(self) -> List[Tuple[User, int, Decimal]]:
        """
        Every user with the number of projects they own and the sum they invested.

        Both aggregates are computed in SQL through grouped sub-queries so the
        roster costs one round-trip regardless of table sizes.
        """

        async def _list() -> List[Tuple[User, int, Decimal]]:
            projects = (
                select(Project.farmer_id, func.count(Project.id).label("project_count"))
                .group_by(Project.farmer_id)
                .subquery()
            )
            invested = (
                select(Investment.investor_id, func.sum(Investment.amount).label("invested"))
                .group_by(Investment.investor_id)
                .subquery()
            )
            stmt = (
                select(
                    User,
                    func.coalesce(projects.c.project_count, 0),
                    func.coalesce(invested.c.invested, 0),
                )
                .outerjoin(projects, projects.c.farmer_id == User.id)
                .outerjoin(invested, invested.c.investor_id == User.id)
                .order_by(User.created_at, User.id)
            )
            result = await self.db.execute(stmt)
            return [(row[0], int(row[1]), row[2]) for row in result.all()]

        return await self._guarded(_list)
