"""
Shared pytest fixtures for unit tests.

All tests run with ``USE_SQLITE=true`` and mocked dependencies so that
no real database or network I/O is needed.  The environment is set before
anything from ``agrofund`` is imported, because settings and the engine are
built at import time.
"""

import os

os.environ.setdefault("USE_SQLITE", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import uuid  # noqa: E402
from datetime import datetime, timedelta, timezone  # noqa: E402
from decimal import Decimal  # noqa: E402
from typing import List, Optional  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402

from agrofund.models.campaign import Campaign, CampaignStatus  # noqa: E402
from agrofund.models.farmer import Farmer  # noqa: E402
from agrofund.models.investment import Investment  # noqa: E402
from agrofund.models.investor import Investor  # noqa: E402
from agrofund.models.project import Project  # noqa: E402
from agrofund.models.token import PersonalAccessToken  # noqa: E402
from agrofund.models.user import ProfileType, User, UserRole  # noqa: E402

# ────────────────────────────────────────────────────────────────────────────
# Factory helpers — create domain objects with sensible defaults
# ────────────────────────────────────────────────────────────────────────────

FARMER_ID = uuid.UUID("11111111-1111-1111-1111-111111111111")
INVESTOR_ID = uuid.UUID("22222222-2222-2222-2222-222222222222")
ADMIN_ID = uuid.UUID("33333333-3333-3333-3333-333333333333")
CAMPAIGN_ID = uuid.UUID("44444444-4444-4444-4444-444444444444")
PROJECT_ID = uuid.UUID("55555555-5555-5555-5555-555555555555")
INVESTMENT_ID = uuid.UUID("66666666-6666-6666-6666-666666666666")
INVESTOR_ID_2 = uuid.UUID("77777777-7777-7777-7777-777777777777")
TOKEN_ID = uuid.UUID("88888888-8888-8888-8888-888888888888")
PROFILE_ID = uuid.UUID("99999999-9999-9999-9999-999999999999")

_DEFAULT_IDS = {UserRole.FARMER: FARMER_ID, UserRole.INVESTOR: INVESTOR_ID, UserRole.ADMIN: ADMIN_ID}
_DEFAULT_NAMES = {
    UserRole.FARMER: "Alice Farmer",
    UserRole.INVESTOR: "Bob Investor",
    UserRole.ADMIN: "Carol Admin",
}


def make_user(
    *,
    role: UserRole = UserRole.FARMER,
    id: Optional[uuid.UUID] = None,
    name: Optional[str] = None,
    email: Optional[str] = None,
    password_hash: str = "$2b$04$invalidinvalidinvalidinvalidinvalidinvalidinvalidinva",
    phone: str = "+254700000000",
    profile_id: Optional[uuid.UUID] = None,
    created_at: Optional[datetime] = None,
) -> User:
    """Create a User domain object with sensible test defaults."""
    profile_type = {
        UserRole.FARMER: ProfileType.FARMER,
        UserRole.INVESTOR: ProfileType.INVESTOR,
    }.get(role)
    return User(
        id=id or _DEFAULT_IDS[role],
        name=name or _DEFAULT_NAMES[role],
        email=email or f"{role.value}@example.com",
        password_hash=password_hash,
        phone=phone,
        role=role,
        profile_type=profile_type,
        profile_id=profile_id if profile_type else None,
        created_at=created_at or datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc),
    )


def make_farmer_profile(*, id: uuid.UUID = PROFILE_ID) -> Farmer:
    return Farmer(id=id, first_name="Alice", last_name="Farmer", contact="+254700000000")


def make_investor_profile(*, id: uuid.UUID = PROFILE_ID) -> Investor:
    return Investor(id=id, name="Bob Investor", contact="+254700000000")


def make_project(
    *,
    id: uuid.UUID = PROJECT_ID,
    name: str = "Drip irrigation",
    capital_needed: Decimal = Decimal("1000.00"),
    duration_months: int = 1,
    farmer: Optional[User] = None,
) -> Project:
    """Create a Project owned by ``farmer`` (default: the test farmer)."""
    farmer = farmer or make_user(role=UserRole.FARMER)
    return Project(
        id=id,
        name=name,
        description="Drip lines for two hectares",
        location="Nakuru",
        capital_needed=capital_needed,
        duration_months=duration_months,
        benefits="Less water",
        risks="Drought",
        farmer_id=farmer.id,
        farmer=farmer,
        created_at=datetime(2025, 1, 2, 8, 0, 0, tzinfo=timezone.utc),
    )


def make_investment(
    *,
    id: uuid.UUID = INVESTMENT_ID,
    campaign_id: uuid.UUID = CAMPAIGN_ID,
    investor: Optional[User] = None,
    amount: Decimal = Decimal("600.00"),
    created_at: Optional[datetime] = None,
) -> Investment:
    """Create an Investment by ``investor`` (default: the test investor)."""
    investor = investor or make_user(role=UserRole.INVESTOR)
    return Investment(
        id=id,
        campaign_id=campaign_id,
        investor_id=investor.id,
        investor=investor,
        amount=amount,
        created_at=created_at or datetime(2025, 1, 10, 9, 0, 0, tzinfo=timezone.utc),
    )


def make_campaign(
    *,
    id: uuid.UUID = CAMPAIGN_ID,
    status: CampaignStatus = CampaignStatus.PENDING,
    target_amount: Decimal = Decimal("1000.00"),
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    project: Optional[Project] = None,
    investments: Optional[List[Investment]] = None,
) -> Campaign:
    """
    Create a Campaign with its project and investments attached, the shape
    ``CampaignRepository.get_with_details`` returns.

    The default window runs from yesterday to 30 days from now.
    """
    now = datetime.now(timezone.utc)
    project = project or make_project(capital_needed=target_amount)
    return Campaign(
        id=id,
        project_id=project.id,
        project=project,
        target_amount=target_amount,
        start_date=start_date or now - timedelta(days=1),
        end_date=end_date or now + timedelta(days=30),
        status=status,
        investments=investments or [],
        created_at=datetime(2025, 1, 2, 8, 0, 0, tzinfo=timezone.utc),
    )


def make_token(
    *,
    id: uuid.UUID = TOKEN_ID,
    user_id: uuid.UUID = FARMER_ID,
    token_hash: str = "0" * 64,
    expires_at: Optional[datetime] = None,
) -> PersonalAccessToken:
    return PersonalAccessToken(
        id=id,
        user_id=user_id,
        token_hash=token_hash,
        expires_at=expires_at or datetime.now(timezone.utc) + timedelta(days=7),
    )


# ────────────────────────────────────────────────────────────────────────────
# Pytest fixtures
# ────────────────────────────────────────────────────────────────────────────


@pytest.fixture()
def mock_db():
    """A mocked AsyncSession that tracks add/commit/refresh/rollback calls."""
    session = AsyncMock()
    session.add = MagicMock()
    session.commit = AsyncMock()
    session.refresh = AsyncMock()
    session.rollback = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.get = AsyncMock()
    session.merge = AsyncMock()
    session.delete = AsyncMock()
    return session


@pytest.fixture(autouse=True)
def _reset_circuit_breaker():
    """Keep the process-wide DB circuit breaker closed between tests."""
    from agrofund.core.resilience import db_circuit_breaker

    db_circuit_breaker.reset()
    yield
    db_circuit_breaker.reset()
