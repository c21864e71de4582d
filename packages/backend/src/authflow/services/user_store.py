"""User store — persistence and credential rules for user records.

Learn: Service layer separates business logic from HTTP routing. The store
owns everything that touches a user row: lookups, validation on save,
password hashing/comparison and the reset-token lifecycle. The auth
service composes these into the signup/login/reset flows.

bcrypt work runs in a thread (asyncio.to_thread) so hashing a password
doesn't stall every other request on the event loop.
"""

import asyncio
import uuid
from datetime import datetime, timedelta
from typing import Callable, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import undefer

from authflow.auth.password import (
    generate_reset_token,
    hash_password,
    verify_password,
)
from authflow.config import settings
from authflow.db.models import User, UserRole, utcnow
from authflow.errors import ValidationFailed

logger = structlog.get_logger()

MIN_PASSWORD_LENGTH = 8


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class UserStore:
    """Persistence for User rows."""

    def __init__(
        self,
        db: AsyncSession,
        reset_token_ttl: Optional[timedelta] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.reset_token_ttl = reset_token_ttl or timedelta(
            minutes=settings.password_reset_expires_minutes
        )
        self._clock = clock

    # ─── Lookups ────────────────────────────────────────

    async def get_by_id(
        self, user_id, with_password: bool = False
    ) -> User | None:
        try:
            uid = user_id if isinstance(user_id, uuid.UUID) else uuid.UUID(str(user_id))
        except ValueError:
            return None
        return await self._first(select(User).where(User.id == uid), with_password)

    async def get_by_email(
        self, email: str, with_password: bool = False
    ) -> User | None:
        email = normalize_email(email)
        if not email:
            return None
        return await self._first(select(User).where(User.email == email), with_password)

    async def get_by_reset_token(self, token_hash: str) -> User | None:
        """Find the user holding this reset-token hash, if it hasn't expired."""
        q = select(User).where(
            User.password_reset_token == token_hash,
            User.password_reset_expires > self._clock(),
        )
        return await self._first(q)

    async def list_users(self) -> list[User]:
        result = await self.db.execute(select(User).order_by(User.created_at))
        return list(result.scalars().all())

    async def _first(self, q, with_password: bool = False) -> User | None:
        if with_password:
            # populate_existing: the row may already be in the identity map
            # from protect(), loaded without its password hash.
            q = q.options(undefer(User.password_hash)).execution_options(
                populate_existing=True
            )
        result = await self.db.execute(q)
        return result.scalars().first()

    # ─── Create / save ──────────────────────────────────

    async def create(
        self,
        name: str,
        email: str,
        password: str,
        password_confirm: str,
        photo: Optional[str] = None,
        role: UserRole = UserRole.USER,
    ) -> User:
        email = normalize_email(email)
        if await self.get_by_email(email):
            raise ValidationFailed(
                f"Duplicate field value: {email}. Please use another value!"
            )
        _check_password(password, password_confirm)

        user = User(
            name=(name or "").strip(),
            email=email,
            photo=photo or "default.jpg",
            role=UserRole(role).value,
            password_hash=await asyncio.to_thread(hash_password, password),
        )
        await self.save(user)
        logger.info("user.created", user_id=str(user.id), role=user.role)
        return user

    async def save(self, user: User, validate: bool = True) -> User:
        """Persist `user`. validate=False skips field validation.

        The unique email index is the final word on duplicates: a concurrent
        signup that slipped past create()'s lookup lands here.
        """
        if validate:
            _validate(user)
        email = user.email
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.info("user.duplicate_email", email=email)
            raise ValidationFailed(
                f"Duplicate field value: {email}. Please use another value!"
            ) from e
        return user

    # ─── Passwords ──────────────────────────────────────

    async def correct_password(self, user: User, candidate: str) -> bool:
        """Compare `candidate` with the stored hash (needs with_password=True)."""
        return await asyncio.to_thread(verify_password, candidate, user.password_hash)

    async def set_password(
        self, user: User, password: str, password_confirm: str
    ) -> None:
        """Validate and hash a new password. Caller saves.

        password_changed_at is stamped a second early so a token signed
        right after this change still counts as issued after it. Together
        with the whole-second iat claim, a token signed up to about two
        seconds before the change also stays valid.
        """
        _check_password(password, password_confirm)
        user.password_hash = await asyncio.to_thread(hash_password, password)
        user.password_changed_at = self._clock() - timedelta(seconds=1)

    # ─── Reset tokens ───────────────────────────────────

    def create_password_reset_token(self, user: User) -> str:
        """Stamp a fresh reset token on `user`; returns the plaintext. Caller saves."""
        token, token_hash = generate_reset_token()
        user.password_reset_token = token_hash
        user.password_reset_expires = self._clock() + self.reset_token_ttl
        return token

    def clear_password_reset_token(self, user: User) -> None:
        user.password_reset_token = None
        user.password_reset_expires = None


def _check_password(password: str, password_confirm: str) -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationFailed(
            f"Invalid input data. password: must be at least {MIN_PASSWORD_LENGTH} characters"
        )
    if password != password_confirm:
        raise ValidationFailed("Invalid input data. passwordConfirm: Passwords are not the same!")


def _validate(user: User) -> None:
    errors = []
    if not user.name:
        errors.append("name: A user must have a name")
    if not user.email or "@" not in user.email:
        errors.append("email: Please provide a valid email")
    if user.role not in {r.value for r in UserRole}:
        errors.append(f"role: {user.role} is not a valid role")
    if errors:
        raise ValidationFailed("Invalid input data. " + ". ".join(errors))
