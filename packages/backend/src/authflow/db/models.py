"""SQLAlchemy ORM models — single source of truth for the database schema.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Alembic migrations mirror these definitions.

Key concepts:
- UUID primary keys via the portable Uuid type (native on Postgres)
- password_hash is deferred: ordinary lookups never load it, callers that
  compare passwords ask for it explicitly
- timezone-aware timestamps, normalised to UTC on read
"""

import enum
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, String, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_uuid() -> uuid.UUID:
    return uuid.uuid4()


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on the way back)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class UserRole(str, enum.Enum):
    USER = "user"
    GUIDE = "guide"
    LEAD_GUIDE = "lead-guide"
    ADMIN = "admin"


class User(Base):
    """An account that can sign in.

    Learn: Reset-token columns hold only the SHA-256 of the emailed token,
    so a leaked table can't be used to reset passwords.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=new_uuid
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(
        String(255), unique=True, index=True, nullable=False
    )
    photo: Mapped[str] = mapped_column(
        String(255), nullable=False, default="default.jpg"
    )
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default=UserRole.USER.value
    )
    password_hash: Mapped[str] = mapped_column(
        String(255), nullable=False, deferred=True
    )
    password_changed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    password_reset_token: Mapped[Optional[str]] = mapped_column(
        String(64), nullable=True, index=True
    )
    password_reset_expires: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    def changed_password_after(self, issued_at: int) -> bool:
        """True if the password changed after a token issued at `issued_at`.

        `issued_at` is the token's iat claim in whole seconds since the epoch.
        """
        if self.password_changed_at is None:
            return False
        changed_at = int(as_utc(self.password_changed_at).timestamp())
        return issued_at < changed_at
