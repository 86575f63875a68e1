"""
Seed script — bootstraps the admin account and sample data for development / demo.

Usage:
    python -m agrofund.seed

Registration never creates admins, so this is how the first admin account
(``ADMIN_EMAIL`` / ``ADMIN_PASSWORD``) comes to exist.

The script is idempotent: the admin is only created when its email is
unknown, and the demo farmer / investor / campaign only when no campaign
exists yet.
"""

import asyncio
import logging
import uuid
from decimal import Decimal

from sqlalchemy import select
from sqlmodel import SQLModel

import agrofund.db.base  # noqa: F401
from agrofund.core.config import settings
from agrofund.core.funding import add_months, utcnow
from agrofund.core.security import hash_password
from agrofund.db.session import AsyncSessionLocal, engine
from agrofund.models.campaign import Campaign, CampaignStatus
from agrofund.models.farmer import Farmer
from agrofund.models.investment import Investment
from agrofund.models.investor import Investor, InvestorType
from agrofund.models.project import Project
from agrofund.models.user import ProfileType, User, UserRole

logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(message)s")
logger = logging.getLogger(__name__)

DEMO_PASSWORD = "password123"

FARMER_PROFILE_ID = uuid.UUID("550e8400-e29b-41d4-a716-446655440000")
FARMER_USER_ID = uuid.UUID("660e8400-e29b-41d4-a716-446655440001")
INVESTOR_PROFILE_ID = uuid.UUID("770e8400-e29b-41d4-a716-446655440002")
INVESTOR_USER_ID = uuid.UUID("880e8400-e29b-41d4-a716-446655440003")
PROJECT_ID = uuid.UUID("990e8400-e29b-41d4-a716-446655440004")
CAMPAIGN_ID = uuid.UUID("aa0e8400-e29b-41d4-a716-446655440005")
INVESTMENT_ID = uuid.UUID("bb0e8400-e29b-41d4-a716-446655440006")


async def _ensure_admin(session) -> None:
    result = await session.execute(select(User).where(User.email == settings.ADMIN_EMAIL))
    if result.scalars().first() is not None:
        logger.info("Admin %s already exists, skipping.", settings.ADMIN_EMAIL)
        return
    session.add(
        User(
            name=settings.ADMIN_NAME,
            email=settings.ADMIN_EMAIL,
            password_hash=hash_password(settings.ADMIN_PASSWORD),
            phone=settings.ADMIN_PHONE,
            role=UserRole.ADMIN,
        )
    )
    await session.commit()
    logger.info("Created admin account %s", settings.ADMIN_EMAIL)


def _demo_rows() -> list:
    now = utcnow()
    return [
        Farmer(
            id=FARMER_PROFILE_ID,
            first_name="Amina",
            last_name="Njoroge",
            contact="+254700000001",
        ),
        User(
            id=FARMER_USER_ID,
            name="Amina Njoroge",
            email="amina@example.com",
            password_hash=hash_password(DEMO_PASSWORD),
            phone="+254700000001",
            role=UserRole.FARMER,
            profile_type=ProfileType.FARMER,
            profile_id=FARMER_PROFILE_ID,
        ),
        Investor(
            id=INVESTOR_PROFILE_ID,
            name="Kofi Mensah",
            contact="+233200000002",
            budget_range="1000-50000",
            investor_type=InvestorType.INDIVIDUAL,
        ),
        User(
            id=INVESTOR_USER_ID,
            name="Kofi Mensah",
            email="kofi@example.com",
            password_hash=hash_password(DEMO_PASSWORD),
            phone="+233200000002",
            role=UserRole.INVESTOR,
            profile_type=ProfileType.INVESTOR,
            profile_id=INVESTOR_PROFILE_ID,
        ),
        Project(
            id=PROJECT_ID,
            name="Solar-powered drip irrigation",
            description="Drip lines and a solar pump for two hectares of vegetables.",
            location="Nakuru, Kenya",
            capital_needed=Decimal("15000.00"),
            duration_months=6,
            benefits="Year-round harvests and 40% less water use.",
            risks="Equipment theft; delayed rains during installation.",
            farmer_id=FARMER_USER_ID,
        ),
        Campaign(
            id=CAMPAIGN_ID,
            project_id=PROJECT_ID,
            target_amount=Decimal("15000.00"),
            start_date=now,
            end_date=add_months(now, 6),
            status=CampaignStatus.ACTIVE,
        ),
        Investment(
            id=INVESTMENT_ID,
            campaign_id=CAMPAIGN_ID,
            investor_id=INVESTOR_USER_ID,
            amount=Decimal("2500.00"),
        ),
    ]


async def seed() -> None:
    """Create tables, bootstrap the admin, and insert demo data if there is none."""
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    async with AsyncSessionLocal() as session:
        await _ensure_admin(session)

        result = await session.execute(select(Campaign).limit(1))
        if result.scalars().first() is not None:
            logger.info("Database already contains campaigns, skipping demo data.")
            return

        # Insert in dependency order; flushing between rows keeps FK order explicit.
        rows = _demo_rows()
        for row in rows:
            session.add(row)
            await session.flush()
        await session.commit()
        logger.info("Seeded demo farmer, investor, campaign and investment (%d rows)", len(rows))


if __name__ == "__main__":
    asyncio.run(seed())
