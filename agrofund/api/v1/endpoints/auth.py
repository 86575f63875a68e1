"""
Auth API endpoints.

- POST  /auth/register  — Create a farmer or investor account and sign in
- POST  /auth/login     — Exchange credentials for a new bearer token
- POST  /auth/logout    — Revoke the token used for this request
- GET   /auth/me        — Current user with their profile
"""

from typing import Tuple

from fastapi import APIRouter, Depends

from agrofund.api.deps import get_auth_service, get_current_session, get_current_user
from agrofund.core.config import settings
from agrofund.models.token import PersonalAccessToken
from agrofund.models.user import User
from agrofund.schemas.auth import (
    AuthPayload,
    LoginRequest,
    LogoutPayload,
    RegisterRequest,
    UserResponse,
)
from agrofund.schemas.common import ApiResponse, ErrorResponse, ValidationErrorResponse
from agrofund.services.auth_service import AuthService, IssuedSession

router = APIRouter()


def _auth_payload(issued: IssuedSession) -> AuthPayload:
    return AuthPayload(
        user=UserResponse.from_user(issued.user, issued.profile),
        token=issued.token,
        expires_in=settings.TOKEN_EXPIRE_MINUTES,
    )


# ── Endpoints ──


@router.post(
    "/register",
    response_model=ApiResponse[AuthPayload],
    status_code=201,
    summary="Register a new user",
    description=(
        "Creates a farmer or investor account together with its role profile "
        "and returns a bearer token.  Admin accounts cannot self-register."
    ),
    responses={
        422: {"model": ValidationErrorResponse, "description": "Validation error"},
        500: {"model": ErrorResponse, "description": "Registration failed"},
    },
)
async def register(
    payload: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
) -> ApiResponse[AuthPayload]:
    issued = await service.register(payload)
    return ApiResponse(message="Registration successful", data=_auth_payload(issued))


@router.post(
    "/login",
    response_model=ApiResponse[AuthPayload],
    summary="Log in",
    description=(
        "Verifies the credentials, revokes every token previously issued to "
        "the user, and returns a fresh one."
    ),
    responses={
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
        422: {"model": ValidationErrorResponse, "description": "Validation error"},
    },
)
async def login(
    payload: LoginRequest,
    service: AuthService = Depends(get_auth_service),
) -> ApiResponse[AuthPayload]:
    issued = await service.login(payload)
    return ApiResponse(message="Login successful", data=_auth_payload(issued))


@router.post(
    "/logout",
    response_model=ApiResponse[LogoutPayload],
    summary="Log out",
    description="Revokes only the bearer token that authenticated this request.",
    responses={401: {"model": ErrorResponse, "description": "Unauthenticated"}},
)
async def logout(
    session: Tuple[User, PersonalAccessToken] = Depends(get_current_session),
    service: AuthService = Depends(get_auth_service),
) -> ApiResponse[LogoutPayload]:
    await service.logout(session[1])
    return ApiResponse(
        message="Logged out successfully",
        data=LogoutPayload(info="Your session has been terminated."),
    )


@router.get(
    "/me",
    response_model=ApiResponse[UserResponse],
    summary="Current user",
    responses={401: {"model": ErrorResponse, "description": "Unauthenticated"}},
)
async def me(
    user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
) -> ApiResponse[UserResponse]:
    profile = await service.get_profile(user)
    return ApiResponse(message="User profile retrieved", data=UserResponse.from_user(user, profile))
