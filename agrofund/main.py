"""
ASGI application.

``uvicorn agrofund.main:app`` serves the v1 API under ``/api/v1`` plus an
unversioned ``/health`` probe.  Tables are created on startup; when the
database cannot be reached the app still boots and ``/health`` says
``degraded``.
"""

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel

import agrofund.db.base  # noqa: F401
from agrofund import __version__
from agrofund.api.v1.api import api_router
from agrofund.core.config import settings
from agrofund.core.exceptions import add_exception_handlers
from agrofund.core.logging import setup_logging
from agrofund.core.resilience import db_circuit_breaker
from agrofund.db.session import AsyncSessionLocal, engine
from agrofund.middleware import RequestIDMiddleware, RequestTimingMiddleware

setup_logging()
logger = logging.getLogger(__name__)


async def create_tables() -> bool:
    """
    Create missing tables, backing off between attempts.

    Returns ``False`` once ``DB_STARTUP_ATTEMPTS`` attempts have failed.
    """
    delay = settings.DB_STARTUP_BACKOFF
    for attempt in range(1, settings.DB_STARTUP_ATTEMPTS + 1):
        try:
            async with engine.begin() as conn:
                await conn.run_sync(SQLModel.metadata.create_all)
        except (SQLAlchemyError, OSError) as exc:
            if attempt == settings.DB_STARTUP_ATTEMPTS:
                logger.error("Giving up on the database after %d attempts: %s", attempt, exc)
                return False
            logger.warning(
                "Database not ready (attempt %d): %s; next try in %.0fs", attempt, exc, delay
            )
            await asyncio.sleep(delay)
            delay *= 2
        else:
            logger.info("Database schema ready")
            return True
    return False


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    if not await create_tables():
        logger.error("Starting in DEGRADED mode; requests needing the database will fail")
    yield
    await engine.dispose()
    logger.info("Connection pool disposed")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=__version__,
    description="Farmers post funding campaigns, admins vet them, investors back them.",
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    debug=settings.DEBUG,
    lifespan=lifespan,
)

# Last added runs first: CORS, request id, timing, gzip.
app.add_middleware(GZipMiddleware, minimum_size=500)
app.add_middleware(RequestTimingMiddleware)
app.add_middleware(RequestIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

add_exception_handlers(app)
app.include_router(api_router, prefix=settings.API_V1_STR)


@app.get("/health", tags=["Health"])
async def health_check():
    """``SELECT 1`` against the database, plus the circuit breaker snapshot."""
    try:
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
        database = True
    except (SQLAlchemyError, OSError):
        logger.warning("Health check could not reach the database", exc_info=True)
        database = False

    return {
        "status": "ok" if database else "degraded",
        "version": __version__,
        "database": database,
        "circuit_breaker": db_circuit_breaker.get_status(),
    }
