"""
Integration tests for the API endpoints using httpx AsyncClient.

These tests exercise the full FastAPI request → dependency → endpoint →
service pipeline, with mocked service layers to isolate from the database.
Authentication is replaced by overriding ``get_current_session``.
"""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from agrofund.core.exceptions import (
    AuthenticationException,
    InvalidOperationException,
    NotFoundException,
    ValidationException,
    add_exception_handlers,
)
from agrofund.models.campaign import CampaignStatus
from agrofund.models.user import UserRole
from agrofund.schemas.report import FarmerDashboard, InvestorDashboard
from agrofund.services.auth_service import IssuedSession

from .conftest import (
    CAMPAIGN_ID,
    make_campaign,
    make_farmer_profile,
    make_investment,
    make_token,
    make_user,
)

_CAMPAIGN_BODY = {
    "project_name": "Drip irrigation",
    "project_description": "Drip lines",
    "project_capital": 1000,
    "project_duration": 1,
    "project_location": "Nakuru",
    "project_benefits": "Less water",
    "project_risks": "Drought",
}

# ────────────────────────────────────────────────────────────────────────────
# Test app factory
# ────────────────────────────────────────────────────────────────────────────


def _make_test_app() -> FastAPI:
    """
    Build a minimal FastAPI app with the real routers but
    NO database or lifespan — services will be injected via overrides.
    """
    from agrofund.api.v1.api import api_router

    app = FastAPI()
    add_exception_handlers(app)
    app.include_router(api_router, prefix="/api/v1")
    return app


class _EndpointTest:
    """Shared setup: a test app, mocked services and a switchable caller."""

    @pytest.fixture(autouse=True)
    def _setup(self):
        from agrofund.api.deps import get_auth_service

        self.app = _make_test_app()
        self.auth_service = AsyncMock()
        self.app.dependency_overrides[get_auth_service] = lambda: self.auth_service

    def _login_as(self, role: UserRole):
        from agrofund.api.deps import get_current_session

        user = make_user(role=role)
        token = make_token(user_id=user.id)
        self.app.dependency_overrides[get_current_session] = lambda: (user, token)
        return user, token

    def _client(self) -> AsyncClient:
        return AsyncClient(transport=ASGITransport(app=self.app), base_url="http://test")


# ────────────────────────────────────────────────────────────────────────────
# Auth endpoint tests
# ────────────────────────────────────────────────────────────────────────────


class TestAuthEndpoints(_EndpointTest):
    """Tests for /api/v1/auth endpoints."""

    @pytest.mark.asyncio
    async def test_register_201(self):
        user = make_user(role=UserRole.FARMER)
        self.auth_service.register.return_value = IssuedSession(
            user, make_farmer_profile(), "plain-token"
        )

        async with self._client() as client:
            resp = await client.post(
                "/api/v1/auth/register",
                json={
                    "name": "Alice Farmer",
                    "email": "farmer@example.com",
                    "password": "s3cretpass",
                    "phone": "+254700000000",
                    "role": "farmer",
                },
            )

        assert resp.status_code == 201
        body = resp.json()
        assert body["message"] == "Registration successful"
        assert body["data"]["token"] == "plain-token"
        assert body["data"]["token_type"] == "Bearer"
        assert body["data"]["user"]["profile"]["kind"] == "farmer"
        assert "password_hash" not in body["data"]["user"]

    @pytest.mark.asyncio
    async def test_register_field_errors_422(self):
        async with self._client() as client:
            resp = await client.post(
                "/api/v1/auth/register",
                json={"name": "A", "email": "nope", "password": "short", "phone": "1", "role": "x"},
            )

        assert resp.status_code == 422
        body = resp.json()
        assert body["message"] == "Validation failed"
        assert {"email", "password", "role"} <= set(body["error"])
        self.auth_service.register.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_register_duplicate_email_422(self):
        self.auth_service.register.side_effect = ValidationException(
            {"email": ["The email has already been taken."]}
        )

        async with self._client() as client:
            resp = await client.post(
                "/api/v1/auth/register",
                json={
                    "name": "Alice",
                    "email": "farmer@example.com",
                    "password": "s3cretpass",
                    "phone": "1",
                    "role": "farmer",
                },
            )

        assert resp.status_code == 422
        assert resp.json()["error"] == {"email": ["The email has already been taken."]}

    @pytest.mark.asyncio
    async def test_login_bad_credentials_401(self):
        self.auth_service.login.side_effect = AuthenticationException(
            "The provided credentials are incorrect.", "Invalid credentials"
        )

        async with self._client() as client:
            resp = await client.post(
                "/api/v1/auth/login", json={"email": "a@example.com", "password": "wrong"}
            )

        assert resp.status_code == 401
        assert resp.json() == {
            "message": "Invalid credentials",
            "error": "The provided credentials are incorrect.",
        }

    @pytest.mark.asyncio
    async def test_me_without_token_401(self):
        async with self._client() as client:
            resp = await client.get("/api/v1/auth/me")

        assert resp.status_code == 401
        assert resp.json()["message"] == "Unauthenticated"
        self.auth_service.authenticate_token.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_bearer_token_is_resolved(self):
        user = make_user()
        self.auth_service.authenticate_token.return_value = (user, make_token())
        self.auth_service.get_profile.return_value = None

        async with self._client() as client:
            resp = await client.get(
                "/api/v1/auth/me", headers={"Authorization": "Bearer plain-token"}
            )

        assert resp.status_code == 200
        self.auth_service.authenticate_token.assert_awaited_once_with("plain-token")
        assert resp.json()["data"]["email"] == "farmer@example.com"

    @pytest.mark.asyncio
    async def test_logout_revokes_current_token(self):
        _, token = self._login_as(UserRole.INVESTOR)

        async with self._client() as client:
            resp = await client.post("/api/v1/auth/logout")

        assert resp.status_code == 200
        assert resp.json() == {
            "message": "Logged out successfully",
            "data": {"info": "Your session has been terminated."},
        }
        self.auth_service.logout.assert_awaited_once_with(token)


# ────────────────────────────────────────────────────────────────────────────
# Campaign endpoint tests
# ────────────────────────────────────────────────────────────────────────────


class TestCampaignEndpoints(_EndpointTest):
    """Tests for /api/v1/campaigns endpoints."""

    @pytest.fixture(autouse=True)
    def _campaign_service(self, _setup):
        from agrofund.api.v1.endpoints.campaigns import _get_campaign_service

        self.mock_service = AsyncMock()
        self.app.dependency_overrides[_get_campaign_service] = lambda: self.mock_service

    @pytest.mark.asyncio
    async def test_list_is_public(self):
        self.mock_service.list_campaigns.return_value = [make_campaign()]

        async with self._client() as client:
            resp = await client.get("/api/v1/campaigns", params={"skip": 0, "limit": 10})

        assert resp.status_code == 200
        body = resp.json()
        assert body["message"] == "Campaigns retrieved successfully"
        assert len(body["data"]["campaigns"]) == 1
        self.mock_service.list_campaigns.assert_awaited_once_with(skip=0, limit=10)

    @pytest.mark.asyncio
    async def test_get_404(self):
        self.mock_service.get_campaign.side_effect = NotFoundException("Campaign", CAMPAIGN_ID)

        async with self._client() as client:
            resp = await client.get(f"/api/v1/campaigns/{CAMPAIGN_ID}")

        assert resp.status_code == 404
        assert resp.json()["message"] == "Campaign not found"

    @pytest.mark.asyncio
    async def test_get_malformed_id_422(self):
        async with self._client() as client:
            resp = await client.get("/api/v1/campaigns/not-a-uuid")

        assert resp.status_code == 422
        assert "campaign_id" in resp.json()["error"]

    @pytest.mark.asyncio
    async def test_store_201_as_farmer(self):
        farmer, _ = self._login_as(UserRole.FARMER)
        self.mock_service.create_campaign.return_value = make_campaign()

        async with self._client() as client:
            resp = await client.post("/api/v1/campaigns", json=_CAMPAIGN_BODY)

        assert resp.status_code == 201
        body = resp.json()
        assert body["message"] == "Campaign created successfully"
        assert body["data"]["campaign"]["status"] == "pending"
        assert body["data"]["campaign"]["funding_details"]["remaining_amount"] == 1000.0
        assert self.mock_service.create_campaign.call_args.args[0] is farmer

    @pytest.mark.asyncio
    async def test_store_without_token_401(self):
        async with self._client() as client:
            resp = await client.post("/api/v1/campaigns", json=_CAMPAIGN_BODY)

        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_store_wrong_role_is_403_before_422(self):
        self._login_as(UserRole.INVESTOR)

        async with self._client() as client:
            resp = await client.post("/api/v1/campaigns", json={"project_name": ""})

        assert resp.status_code == 403
        assert resp.json() == {
            "message": "Unauthorized",
            "error": "Only farmers can create campaigns.",
        }
        self.mock_service.create_campaign.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_store_invalid_body_422(self):
        self._login_as(UserRole.FARMER)

        async with self._client() as client:
            resp = await client.post(
                "/api/v1/campaigns", json={**_CAMPAIGN_BODY, "project_duration": 0}
            )

        assert resp.status_code == 422
        assert "project_duration" in resp.json()["error"]

    @pytest.mark.asyncio
    async def test_approve_as_admin(self):
        self._login_as(UserRole.ADMIN)
        self.mock_service.approve.return_value = make_campaign(status=CampaignStatus.ACTIVE)

        async with self._client() as client:
            resp = await client.post(f"/api/v1/campaigns/{CAMPAIGN_ID}/approve")

        assert resp.status_code == 200
        assert resp.json()["message"] == "Campaign approved successfully"
        assert resp.json()["data"]["campaign"]["status"] == "active"

    @pytest.mark.asyncio
    async def test_approve_twice_400(self):
        self._login_as(UserRole.ADMIN)
        self.mock_service.approve.side_effect = InvalidOperationException(
            "Campaign is already approved."
        )

        async with self._client() as client:
            resp = await client.post(f"/api/v1/campaigns/{CAMPAIGN_ID}/approve")

        assert resp.status_code == 400
        assert resp.json()["error"] == "Campaign is already approved."

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "action, role, error",
        [
            ("approve", UserRole.FARMER, "Only admins can approve campaigns."),
            ("reject", UserRole.INVESTOR, "Only admins can reject campaigns."),
            ("fund", UserRole.ADMIN, "Only investors can fund campaigns."),
        ],
    )
    async def test_role_guards(self, action, role, error):
        self._login_as(role)

        async with self._client() as client:
            resp = await client.post(
                f"/api/v1/campaigns/{CAMPAIGN_ID}/{action}", json={"amount": 10}
            )

        assert resp.status_code == 403
        assert resp.json()["error"] == error

    @pytest.mark.asyncio
    async def test_fund_as_investor(self):
        investor, _ = self._login_as(UserRole.INVESTOR)
        investment = make_investment(investor=investor, amount=Decimal("600"))
        self.mock_service.fund.return_value = (
            investment,
            make_campaign(status=CampaignStatus.ACTIVE, investments=[investment]),
        )

        async with self._client() as client:
            resp = await client.post(
                f"/api/v1/campaigns/{CAMPAIGN_ID}/fund", json={"amount": 600}
            )

        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["investment"]["amount"] == 600.0
        assert data["campaign"]["funding_details"]["funding_progress"] == 60.0
        assert data["campaign"]["funding_details"]["remaining_amount"] == 400.0
        self.mock_service.fund.assert_awaited_once_with(CAMPAIGN_ID, investor, Decimal("600"))

    @pytest.mark.asyncio
    async def test_fund_closed_campaign_403(self):
        self._login_as(UserRole.INVESTOR)
        self.mock_service.fund.side_effect = InvalidOperationException(
            "Campaign cannot be funded at this time.", 403
        )

        async with self._client() as client:
            resp = await client.post(f"/api/v1/campaigns/{CAMPAIGN_ID}/fund", json={"amount": 5})

        assert resp.status_code == 403
        assert resp.json()["error"] == "Campaign cannot be funded at this time."

    @pytest.mark.asyncio
    async def test_fund_negative_amount_422(self):
        self._login_as(UserRole.INVESTOR)

        async with self._client() as client:
            resp = await client.post(
                f"/api/v1/campaigns/{CAMPAIGN_ID}/fund", json={"amount": -1}
            )

        assert resp.status_code == 422
        assert "amount" in resp.json()["error"]


# ────────────────────────────────────────────────────────────────────────────
# Report endpoint tests
# ────────────────────────────────────────────────────────────────────────────


class TestReportEndpoints(_EndpointTest):
    """Tests for /api/v1/reports endpoints."""

    @pytest.fixture(autouse=True)
    def _report_service(self, _setup):
        from agrofund.api.v1.endpoints.reports import _get_report_service

        self.mock_service = AsyncMock()
        self.app.dependency_overrides[_get_report_service] = lambda: self.mock_service

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "path, role",
        [
            ("/admin/dashboard", UserRole.FARMER),
            ("/admin/campaigns", UserRole.INVESTOR),
            ("/farmer/dashboard", UserRole.ADMIN),
            ("/farmer/campaigns", UserRole.INVESTOR),
            (f"/farmer/campaigns/{CAMPAIGN_ID}", UserRole.INVESTOR),
            ("/investor/dashboard", UserRole.FARMER),
        ],
    )
    async def test_wrong_role_403(self, path, role):
        self._login_as(role)

        async with self._client() as client:
            resp = await client.get(f"/api/v1/reports{path}")

        assert resp.status_code == 403
        assert resp.json()["error"].endswith("can access this report.")

    @pytest.mark.asyncio
    async def test_farmer_dashboard(self):
        farmer, _ = self._login_as(UserRole.FARMER)
        self.mock_service.farmer_dashboard.return_value = FarmerDashboard(
            total_campaigns=0, total_investments=Decimal("0"), campaigns=[]
        )

        async with self._client() as client:
            resp = await client.get("/api/v1/reports/farmer/dashboard")

        assert resp.status_code == 200
        assert resp.json() == {
            "message": "Farmer dashboard data retrieved successfully",
            "data": {"total_campaigns": 0, "total_investments": 0.0, "campaigns": []},
        }
        self.mock_service.farmer_dashboard.assert_awaited_once_with(farmer)

    @pytest.mark.asyncio
    async def test_farmer_foreign_campaign_404(self):
        self._login_as(UserRole.FARMER)
        self.mock_service.farmer_campaign_report.side_effect = NotFoundException(
            "Campaign", CAMPAIGN_ID
        )

        async with self._client() as client:
            resp = await client.get(f"/api/v1/reports/farmer/campaigns/{CAMPAIGN_ID}")

        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_investor_dashboard(self):
        self._login_as(UserRole.INVESTOR)
        self.mock_service.investor_dashboard.return_value = InvestorDashboard(
            total_investments=0, total_amount_invested=Decimal("0"), investments=[]
        )

        async with self._client() as client:
            resp = await client.get("/api/v1/reports/investor/dashboard")

        assert resp.status_code == 200
        assert resp.json()["message"] == "Investor dashboard data retrieved successfully"

    @pytest.mark.asyncio
    async def test_reports_need_a_token(self):
        async with self._client() as client:
            resp = await client.get("/api/v1/reports/admin/dashboard")

        assert resp.status_code == 401
