"""
Pydantic schemas for authentication request / response serialisation.
"""

import uuid
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing_extensions import Annotated

from agrofund.models.farmer import Farmer
from agrofund.models.investor import Investor, InvestorType
from agrofund.models.user import User, UserRole
from agrofund.schemas.common import Timestamp


def _not_blank(v: str) -> str:
    if not v.strip():
        raise ValueError("must not be blank")
    return v.strip()


class RegisterRequest(BaseModel):
    """Schema for ``POST /auth/register``."""

    name: str = Field(..., min_length=1, max_length=255, examples=["Alice Mwangi"])
    email: EmailStr = Field(..., examples=["alice@example.com"])
    password: str = Field(..., min_length=8, examples=["s3cretpass"])
    phone: str = Field(..., min_length=1, max_length=20, examples=["+254700000001"])
    role: UserRole = Field(..., description="Either ``farmer`` or ``investor``")

    @field_validator("name", "phone")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Reject whitespace-only values."""
        return _not_blank(v)

    @field_validator("role")
    @classmethod
    def validate_self_registrable(cls, v: UserRole) -> UserRole:
        """Admin accounts are provisioned out of band, never self-registered."""
        if v not in (UserRole.FARMER, UserRole.INVESTOR):
            raise ValueError("role must be one of: farmer, investor")
        return v


class LoginRequest(BaseModel):
    """Schema for ``POST /auth/login``."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class FarmerProfileResponse(BaseModel):
    kind: Literal["farmer"] = "farmer"
    id: uuid.UUID
    first_name: str
    last_name: str
    contact: str

    model_config = ConfigDict(from_attributes=True)


class InvestorProfileResponse(BaseModel):
    kind: Literal["investor"] = "investor"
    id: uuid.UUID
    name: str
    contact: str
    budget_range: str
    investor_type: InvestorType

    model_config = ConfigDict(from_attributes=True)


ProfileResponse = Annotated[
    Union[FarmerProfileResponse, InvestorProfileResponse], Field(discriminator="kind")
]


class UserResponse(BaseModel):
    """A user as exposed by the API; never includes the password hash."""

    id: uuid.UUID
    name: str
    email: str
    phone: str
    role: UserRole
    created_at: Timestamp
    profile: Optional[ProfileResponse] = None

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_user(cls, user: User, profile: Union[Farmer, Investor, None] = None) -> "UserResponse":
        rendered: Optional[Union[FarmerProfileResponse, InvestorProfileResponse]] = None
        if isinstance(profile, Farmer):
            rendered = FarmerProfileResponse.model_validate(profile)
        elif isinstance(profile, Investor):
            rendered = InvestorProfileResponse.model_validate(profile)
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            phone=user.phone,
            role=user.role,
            created_at=user.created_at,
            profile=rendered,
        )


class AuthPayload(BaseModel):
    """``data`` block of register / login responses."""

    user: UserResponse
    token: str
    token_type: Literal["Bearer"] = "Bearer"
    expires_in: int = Field(..., description="Token lifetime in minutes")


class LogoutPayload(BaseModel):
    info: str
