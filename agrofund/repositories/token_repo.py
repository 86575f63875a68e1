"""
Token repository — data-access layer for ``personal_access_tokens``.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import delete, update
from sqlalchemy.future import select

from agrofund.models.token import PersonalAccessToken
from agrofund.repositories.base import BaseRepository


class TokenRepository(BaseRepository[PersonalAccessToken]):
    """Concrete repository for :class:`PersonalAccessToken` entities."""

    async def get_by_hash(self, token_hash: str) -> Optional[PersonalAccessToken]:
        """Find the token row whose digest matches ``token_hash``."""

        async def _get_by_hash() -> Optional[PersonalAccessToken]:
            stmt = select(PersonalAccessToken).where(PersonalAccessToken.token_hash == token_hash)
            result = await self.db.execute(stmt)
            return result.scalars().first()

        return await self._guarded(_get_by_hash)

    async def delete_for_user(self, user_id: uuid.UUID) -> int:
        """Revoke every token of ``user_id``.  Returns the number of rows removed."""

        async def _delete_for_user() -> int:
            stmt = delete(PersonalAccessToken).where(PersonalAccessToken.user_id == user_id)
            result = await self.db.execute(stmt)
            await self.commit()
            return result.rowcount or 0

        return await self._guarded(_delete_for_user)

    async def touch(self, token_id: uuid.UUID, used_at: datetime) -> None:
        """Stamp ``last_used_at`` without loading the row."""

        async def _touch() -> None:
            stmt = (
                update(PersonalAccessToken)
                .where(PersonalAccessToken.id == token_id)
                .values(last_used_at=used_at)
            )
            await self.db.execute(stmt)
            await self.commit()

        await self._guarded(_touch)
