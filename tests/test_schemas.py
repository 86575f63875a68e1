"""
Unit tests for Pydantic schemas — validation rules, serializers, edge cases.

Tests cover:
- RegisterRequest / LoginRequest validators
- CampaignCreate / FundRequest validators
- UserResponse profile rendering (``kind`` discriminator)
- CampaignResponse funding details and JSON rendering of money and dates
"""

from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError

from agrofund.models.campaign import CampaignStatus
from agrofund.models.user import UserRole
from agrofund.schemas.auth import LoginRequest, RegisterRequest, UserResponse
from agrofund.schemas.campaign import CampaignCreate, CampaignResponse, FundRequest

from .conftest import (
    INVESTOR_ID_2,
    make_campaign,
    make_farmer_profile,
    make_investment,
    make_investor_profile,
    make_user,
)


def _register(**overrides):
    payload = {
        "name": "Alice Mwangi",
        "email": "alice@example.com",
        "password": "s3cretpass",
        "phone": "+254700000001",
        "role": "farmer",
    }
    payload.update(overrides)
    return RegisterRequest(**payload)


def _campaign_create(**overrides):
    payload = {
        "project_name": "Drip irrigation",
        "project_description": "Drip lines",
        "project_capital": 1000,
        "project_duration": 6,
        "project_location": "Nakuru",
        "project_benefits": "Less water",
        "project_risks": "Drought",
    }
    payload.update(overrides)
    return CampaignCreate(**payload)


# ────────────────────────────────────────────────────────────────────────────
# Auth schema tests
# ────────────────────────────────────────────────────────────────────────────


class TestRegisterRequest:
    """Validation tests for RegisterRequest."""

    def test_valid_farmer(self):
        data = _register()
        assert data.role == UserRole.FARMER
        assert data.email == "alice@example.com"

    def test_valid_investor(self):
        assert _register(role="investor").role == UserRole.INVESTOR

    def test_admin_cannot_self_register(self):
        with pytest.raises(ValidationError, match="role must be one of: farmer, investor"):
            _register(role="admin")

    def test_unknown_role_rejected(self):
        with pytest.raises(ValidationError, match="role"):
            _register(role="banker")

    def test_short_password_rejected(self):
        with pytest.raises(ValidationError, match="password"):
            _register(password="1234567")

    def test_password_of_eight_accepted(self):
        assert _register(password="12345678").password == "12345678"

    def test_invalid_email_rejected(self):
        with pytest.raises(ValidationError, match="email"):
            _register(email="not-an-email")

    def test_phone_too_long_rejected(self):
        with pytest.raises(ValidationError, match="phone"):
            _register(phone="1" * 21)

    def test_name_too_long_rejected(self):
        with pytest.raises(ValidationError, match="name"):
            _register(name="a" * 256)

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError, match="name"):
            _register(name="   ")

    def test_name_stripped(self):
        assert _register(name="  Alice  ").name == "Alice"


class TestLoginRequest:
    def test_empty_password_rejected(self):
        with pytest.raises(ValidationError, match="password"):
            LoginRequest(email="alice@example.com", password="")


# ────────────────────────────────────────────────────────────────────────────
# Campaign schema tests
# ────────────────────────────────────────────────────────────────────────────


class TestCampaignCreate:
    """Validation tests for CampaignCreate."""

    def test_valid(self):
        data = _campaign_create()
        assert data.project_capital == Decimal("1000")
        assert data.project_duration == 6

    def test_zero_capital_accepted(self):
        assert _campaign_create(project_capital=0).project_capital == Decimal("0")

    def test_negative_capital_rejected(self):
        with pytest.raises(ValidationError, match="project_capital"):
            _campaign_create(project_capital=-1)

    def test_zero_duration_rejected(self):
        with pytest.raises(ValidationError, match="project_duration"):
            _campaign_create(project_duration=0)

    def test_fractional_duration_rejected(self):
        with pytest.raises(ValidationError, match="project_duration"):
            _campaign_create(project_duration=1.5)

    def test_location_too_long_rejected(self):
        with pytest.raises(ValidationError, match="project_location"):
            _campaign_create(project_location="x" * 256)

    def test_missing_risks_rejected(self):
        payload = {
            "project_name": "P",
            "project_description": "D",
            "project_capital": 1,
            "project_duration": 1,
            "project_location": "L",
            "project_benefits": "B",
        }
        with pytest.raises(ValidationError, match="project_risks"):
            CampaignCreate(**payload)

    def test_blank_text_rejected(self):
        with pytest.raises(ValidationError, match="project_benefits"):
            _campaign_create(project_benefits="  ")


class TestFundRequest:
    def test_zero_amount_accepted(self):
        assert FundRequest(amount=0).amount == Decimal("0")

    def test_negative_amount_rejected(self):
        with pytest.raises(ValidationError, match="amount"):
            FundRequest(amount=-5)

    def test_non_numeric_rejected(self):
        with pytest.raises(ValidationError, match="amount"):
            FundRequest(amount="lots")


# ────────────────────────────────────────────────────────────────────────────
# Response schema tests
# ────────────────────────────────────────────────────────────────────────────


class TestUserResponse:
    def test_farmer_profile_has_kind(self):
        user = make_user(role=UserRole.FARMER)
        rendered = UserResponse.from_user(user, make_farmer_profile()).model_dump(mode="json")
        assert rendered["profile"]["kind"] == "farmer"
        assert rendered["profile"]["first_name"] == "Alice"
        assert "password_hash" not in rendered

    def test_investor_profile_defaults(self):
        user = make_user(role=UserRole.INVESTOR)
        rendered = UserResponse.from_user(user, make_investor_profile()).model_dump(mode="json")
        assert rendered["profile"]["kind"] == "investor"
        assert rendered["profile"]["budget_range"] == "0-0"
        assert rendered["profile"]["investor_type"] == "individual"

    def test_admin_has_no_profile(self):
        rendered = UserResponse.from_user(make_user(role=UserRole.ADMIN)).model_dump(mode="json")
        assert rendered["profile"] is None

    def test_created_at_format(self):
        rendered = UserResponse.from_user(make_user()).model_dump(mode="json")
        assert rendered["created_at"] == "2025-01-01 12:00:00"


class TestCampaignResponse:
    def test_funding_details_and_money_as_numbers(self):
        bob = make_user(role=UserRole.INVESTOR)
        carol = make_user(role=UserRole.INVESTOR, id=INVESTOR_ID_2, email="carol@example.com")
        campaign = make_campaign(
            status=CampaignStatus.ACTIVE,
            investments=[
                make_investment(id=uuid4(), investor=bob, amount=Decimal("600.00")),
                make_investment(id=uuid4(), investor=bob, amount=Decimal("100.00")),
                make_investment(id=uuid4(), investor=carol, amount=Decimal("50.00")),
            ],
        )
        rendered = CampaignResponse.from_campaign(campaign).model_dump(mode="json")

        details = rendered["funding_details"]
        assert details["total_funds"] == 750.0
        assert details["investment_count"] == 3
        assert details["investor_count"] == 2
        assert details["funding_progress"] == 75.0
        assert details["remaining_amount"] == 250.0
        assert rendered["target_amount"] == 1000.0
        assert rendered["status"] == "active"
        assert rendered["project"]["name"] == "Drip irrigation"
        assert len(rendered["investments"]) == 3

    def test_dates_rendered_in_utc(self):
        start = datetime(2025, 3, 1, 14, 30, 5, tzinfo=timezone.utc)
        campaign = make_campaign(start_date=start)
        rendered = CampaignResponse.from_campaign(campaign).model_dump(mode="json")
        assert rendered["start_date"] == "2025-03-01 14:30:05"
