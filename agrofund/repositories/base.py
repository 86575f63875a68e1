"""
Base repository.

A repository wraps one SQLModel class and the request's ``AsyncSession``.
All repositories built for a request share that session, so a service can
stage several writes and commit them together.

Each database round-trip is routed through ``db_circuit_breaker``.
``IntegrityError`` is left to the services (a duplicate email is a 422, not
a crash); a connection-level ``OperationalError`` during commit rolls the
session back before it propagates.
"""

import logging
from typing import Any, Awaitable, Callable, Generic, Optional, Type, TypeVar

from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

from agrofund.core.resilience import db_circuit_breaker

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=SQLModel)
T = TypeVar("T")


class BaseRepository(Generic[ModelType]):
    def __init__(self, model: Type[ModelType], db: AsyncSession):
        self.model = model
        self.db = db

    async def _guarded(self, work: Callable[[], Awaitable[T]]) -> T:
        return await db_circuit_breaker.call(work)

    async def commit(self) -> None:
        try:
            await self.db.commit()
        except OperationalError:
            logger.error("Commit failed for %s; rolling back", self.model.__name__)
            await self.db.rollback()
            raise

    async def rollback(self) -> None:
        await self.db.rollback()

    async def get(self, id: Any) -> Optional[ModelType]:
        """Row by primary key, or ``None``."""
        return await self._guarded(lambda: self.db.get(self.model, id))

    async def create(self, entity: ModelType) -> ModelType:
        """Insert and commit ``entity``, then reload it."""

        async def _create() -> ModelType:
            self.db.add(entity)
            await self.commit()
            await self.db.refresh(entity)
            return entity

        return await self._guarded(_create)

    async def update(self, entity: ModelType) -> ModelType:
        """Commit attribute changes the caller made on ``entity``."""

        async def _update() -> ModelType:
            merged = await self.db.merge(entity)
            await self.commit()
            return merged

        return await self._guarded(_update)

    async def delete(self, id: Any) -> bool:
        """Delete by primary key and commit; ``False`` when there was no such row."""

        async def _delete() -> bool:
            entity = await self.db.get(self.model, id)
            if entity is None:
                return False
            await self.db.delete(entity)
            await self.commit()
            return True

        return await self._guarded(_delete)
