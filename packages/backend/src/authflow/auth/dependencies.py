"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers to extract
and validate the current user from the request.

    protect          → token (Bearer header, else "jwt" cookie) → User
    restrict_to(...) → protect + role membership check

Token verification and user resolution are separate steps on purpose:
a valid signature isn't enough if the account was deleted or its password
changed after the token was issued.
"""

from datetime import timedelta
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from authflow.auth.jwt import TokenIssuer
from authflow.auth.session import COOKIE_NAME, SessionResponder
from authflow.config import settings
from authflow.db.engine import get_db
from authflow.db.models import User, UserRole
from authflow.errors import AuthenticationError, PermissionDenied
from authflow.services.user_store import UserStore


@lru_cache
def get_token_issuer() -> TokenIssuer:
    """Process-wide issuer built from settings. Raises ConfigurationError."""
    return TokenIssuer(
        secret=settings.jwt_secret,
        expires_in=timedelta(minutes=settings.jwt_expires_in_minutes),
        algorithm=settings.jwt_algorithm,
    )


def get_session_responder(
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> SessionResponder:
    return SessionResponder(
        issuer,
        cookie_expires_in_days=settings.jwt_cookie_expires_in_days,
        secure=settings.is_production,
    )


def extract_token(authorization: Optional[str], cookie: Optional[str]) -> Optional[str]:
    if authorization and authorization.startswith("Bearer "):
        return authorization[7:].strip() or None
    return cookie or None


async def protect(
    request: Request,
    authorization: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> User:
    """Resolve the current user or fail with 401."""
    token = extract_token(authorization, request.cookies.get(COOKIE_NAME))
    if not token:
        raise AuthenticationError("You are not logged in. Please login to continue.")

    claims = issuer.verify(token)

    user = await UserStore(db).get_by_id(claims.user_id)
    if user is None:
        raise AuthenticationError("The user belonging to the token does not exist.")

    if user.changed_password_after(claims.issued_at):
        raise AuthenticationError("Password changed recently. Please login again.")

    request.state.user = user
    return user


class RoleGuard:
    """Admits the current user only if their role is in `allowed`.

    Learn: Built once when the route is declared, so a typo'd role name
    fails at import time rather than on the first request.
    """

    def __init__(self, allowed: frozenset[UserRole]):
        self.allowed = allowed

    async def __call__(self, user: User = Depends(protect)) -> User:
        if user.role not in {r.value for r in self.allowed}:
            raise PermissionDenied("You have not permission to perform this action.")
        return user


def restrict_to(*roles: UserRole | str) -> RoleGuard:
    if not roles:
        raise ValueError("restrict_to() needs at least one role")
    return RoleGuard(frozenset(UserRole(r) for r in roles))
