"""
Shared FastAPI dependencies: bearer-token authentication and role guards.

Endpoints ask for ``get_current_user`` (any authenticated caller) or for a
:class:`RoleChecker` instance (a specific role).  Role guards are ordinary
dependencies, so they run before the request body is validated: a wrong
role answers 403 even when the payload is also invalid.
"""

from typing import Optional, Tuple

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from agrofund.core.exceptions import AuthenticationException, ForbiddenException
from agrofund.core.logging import bind_actor
from agrofund.db.session import get_db
from agrofund.models.token import PersonalAccessToken
from agrofund.models.user import User, UserRole
from agrofund.repositories.token_repo import TokenRepository
from agrofund.repositories.user_repo import UserRepository
from agrofund.services.auth_service import AuthService

# auto_error=False so a missing header goes through our 401 envelope
# instead of FastAPI's default 403.
bearer_scheme = HTTPBearer(auto_error=False)


def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    """Build an AuthService wired to the current request's DB session."""
    return AuthService(
        user_repo=UserRepository(User, db),
        token_repo=TokenRepository(PersonalAccessToken, db),
    )


async def get_current_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    service: AuthService = Depends(get_auth_service),
) -> Tuple[User, PersonalAccessToken]:
    """Resolve ``Authorization: Bearer <token>`` to the user and its token row."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationException()
    user, token = await service.authenticate_token(credentials.credentials)
    bind_actor(user.id, user.role)
    return user, token


async def get_current_user(
    session: Tuple[User, PersonalAccessToken] = Depends(get_current_session),
) -> User:
    return session[0]


class RoleChecker:
    """
    Dependency that admits only callers holding ``role``.

    Usage::

        require_admin = RoleChecker(UserRole.ADMIN, "Only admins can approve campaigns.")

        @router.post("/{id}/approve")
        async def approve(..., user: User = Depends(require_admin)): ...
    """

    def __init__(self, role: UserRole, error: str):
        self.role = role
        self.error = error

    async def __call__(self, user: User = Depends(get_current_user)) -> User:
        if user.role != self.role:
            raise ForbiddenException(self.error)
        return user
