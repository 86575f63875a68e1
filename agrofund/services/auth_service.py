"""
Auth service — registration, credential checks and bearer-token lifecycle.

The service owns the ``personal_access_tokens`` table: it issues tokens on
register / login, revokes them on login (all of the user's) and logout
(only the current one), and resolves a presented token back to its user.

Raises domain exceptions from ``agrofund.core.exceptions``; nothing here
imports FastAPI.  bcrypt work runs in the threadpool so a hash never
stalls the event loop.
"""

import logging
from datetime import timedelta
from typing import NamedTuple, Optional, Tuple, Union

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from agrofund.core.config import settings
from agrofund.core.exceptions import (
    AuthenticationException,
    OperationFailedException,
    ValidationException,
)
from agrofund.core.funding import as_utc, utcnow
from agrofund.core.security import generate_token, hash_password, hash_token, verify_password
from agrofund.models.farmer import Farmer
from agrofund.models.investor import Investor
from agrofund.models.token import PersonalAccessToken
from agrofund.models.user import User, UserRole
from agrofund.repositories.token_repo import TokenRepository
from agrofund.repositories.user_repo import UserRepository
from agrofund.schemas.auth import LoginRequest, RegisterRequest

logger = logging.getLogger(__name__)

Profile = Union[Farmer, Investor]

EMAIL_TAKEN = "The email has already been taken."


class IssuedSession(NamedTuple):
    """A user together with the plain-text token just issued to them."""

    user: User
    profile: Optional[Profile]
    token: str


def build_profile(data: RegisterRequest) -> Profile:
    """
    Role profile created alongside a new user.

    A farmer's first_name and last_name both receive the full registration
    name unchanged; the name is never split.
    """
    if data.role == UserRole.FARMER:
        return Farmer(first_name=data.name, last_name=data.name, contact=data.phone)
    return Investor(name=data.name, contact=data.phone)


class AuthService:
    """Encapsulates registration, login / logout and token resolution."""

    def __init__(self, user_repo: UserRepository, token_repo: TokenRepository):
        self._user_repo = user_repo
        self._token_repo = token_repo

    # ── Commands ──

    async def register(self, data: RegisterRequest) -> IssuedSession:
        """
        Create a user with its role profile and issue a first token.

        Duplicate emails are caught twice: by a friendly pre-check and, for
        concurrent registrations, by the unique index.  Both surface as a 422
        on the ``email`` field.
        """
        if await self._user_repo.get_by_email(data.email) is not None:
            raise ValidationException({"email": [EMAIL_TAKEN]})

        profile = build_profile(data)
        password_hash = await run_in_threadpool(hash_password, data.password)
        user = User(
            name=data.name,
            email=data.email,
            password_hash=password_hash,
            phone=data.phone,
            role=data.role,
        )
        try:
            created = await self._user_repo.create_with_profile(user, profile)
        except IntegrityError as exc:
            await self._user_repo.rollback()
            logger.warning("IntegrityError registering %s: %s", data.email, exc)
            raise ValidationException({"email": [EMAIL_TAKEN]})
        except SQLAlchemyError:
            await self._user_repo.rollback()
            logger.exception("Registration failed for %s", data.email)
            raise OperationFailedException(
                "Registration failed", "Unable to create user account. Please try again."
            )

        token = await self._issue_token(
            created, "Registration failed", "Unable to create user account. Please try again."
        )
        logger.info("Registered %s user %s", created.role.value, created.id)
        return IssuedSession(user=created, profile=profile, token=token)

    async def login(self, data: LoginRequest) -> IssuedSession:
        """
        Verify credentials, revoke every earlier token, and issue a new one.

        Unknown emails and wrong passwords fail identically.
        """
        user = await self._user_repo.get_by_email(data.email)
        if user is None or not await run_in_threadpool(
            verify_password, data.password, user.password_hash
        ):
            raise AuthenticationException(
                error="The provided credentials are incorrect.", message="Invalid credentials"
            )

        try:
            revoked = await self._token_repo.delete_for_user(user.id)
        except SQLAlchemyError:
            await self._token_repo.rollback()
            logger.exception("Could not revoke tokens for user %s", user.id)
            raise OperationFailedException(
                "Login failed", "Unable to process login. Please try again."
            )

        token = await self._issue_token(
            user, "Login failed", "Unable to process login. Please try again."
        )
        profile = await self._user_repo.get_profile(user)
        logger.info("User %s logged in (%d earlier token(s) revoked)", user.id, revoked)
        return IssuedSession(user=user, profile=profile, token=token)

    async def logout(self, token: PersonalAccessToken) -> None:
        """Revoke only the token that authenticated the current request."""
        try:
            await self._token_repo.delete(token.id)
        except SQLAlchemyError:
            await self._token_repo.rollback()
            logger.exception("Logout failed for token %s", token.id)
            raise OperationFailedException(
                "Logout failed", "Unable to terminate your session. Please try again."
            )
        logger.info("User %s logged out", token.user_id)

    # ── Queries ──

    async def authenticate_token(self, raw_token: str) -> Tuple[User, PersonalAccessToken]:
        """
        Resolve a presented bearer token to ``(user, token_row)``.

        Expired rows are deleted on sight.  Raises
        :class:`AuthenticationException` for anything that does not resolve.
        """
        token = await self._token_repo.get_by_hash(hash_token(raw_token))
        if token is None:
            raise AuthenticationException()

        now = utcnow()
        if token.expires_at is not None and as_utc(token.expires_at) < now:
            await self._token_repo.delete(token.id)
            logger.info("Expired token %s removed", token.id)
            raise AuthenticationException()

        user = await self._user_repo.get(token.user_id)
        if user is None:
            raise AuthenticationException()

        await self._token_repo.touch(token.id, now)
        return user, token

    async def get_profile(self, user: User) -> Optional[Profile]:
        return await self._user_repo.get_profile(user)

    # ── Internal helpers ──

    async def _issue_token(self, user: User, failure: str, detail: str) -> str:
        """Store a fresh token for ``user``; ``failure``/``detail`` name the calling operation."""
        plain = generate_token()
        row = PersonalAccessToken(
            user_id=user.id,
            token_hash=hash_token(plain),
            expires_at=utcnow() + timedelta(minutes=settings.TOKEN_EXPIRE_MINUTES),
        )
        try:
            await self._token_repo.create(row)
        except SQLAlchemyError:
            await self._token_repo.rollback()
            logger.exception("Could not issue token for user %s", user.id)
            raise OperationFailedException(failure, detail)
        return plain
