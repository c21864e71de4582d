"""Test fixtures — a fresh in-memory database per test, fake mail, fixed secret.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own in-memory SQLite engine (aiosqlite) with the
   schema created from the models, so nothing leaks between tests.
2. get_db is overridden to hand the app that same session, so tests can
   inspect and tweak rows the API just wrote.
3. get_mailer is overridden with a recording fake that can be told to fail.
4. get_token_issuer is overridden with an issuer on a known test secret,
   which tests also use to mint tokens with a shifted clock.
"""

import os

# Before authflow.config is imported: cheap bcrypt for tests.
os.environ.setdefault("AUTHFLOW_BCRYPT_ROUNDS", "4")

import re
from dataclasses import dataclass
from datetime import timedelta

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from authflow.auth.dependencies import get_token_issuer
from authflow.auth.jwt import TokenIssuer
from authflow.db.engine import get_db
from authflow.db.models import Base, UserRole
from authflow.main import app
from authflow.services.mailer import EmailDeliveryError, get_mailer
from authflow.services.user_store import UserStore

TEST_DB_URL = "sqlite+aiosqlite://"
TEST_SECRET = "test-secret-do-not-use"
PASSWORD = "pass1234"

_RESET_LINK = re.compile(r"/api/v1/users/reset-password/([0-9a-f]+)")


@dataclass
class SentEmail:
    to: str
    subject: str
    message: str

    @property
    def reset_token(self) -> str:
        return _RESET_LINK.search(self.message).group(1)


class FakeMailer:
    """Records messages instead of sending them.

    fail=True simulates an SMTP failure; an exception instance is raised as is.
    """

    def __init__(self):
        self.sent: list[SentEmail] = []
        self.fail: bool | Exception = False

    async def send(self, to: str, subject: str, message: str) -> None:
        if isinstance(self.fail, Exception):
            raise self.fail
        if self.fail:
            raise EmailDeliveryError()
        self.sent.append(SentEmail(to=to, subject=subject, message=message))


@pytest_asyncio.fixture()
async def db_session():
    """Per-test session on a private in-memory database."""
    engine = create_async_engine(
        TEST_DB_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session = AsyncSession(bind=engine, expire_on_commit=False)
    try:
        yield session
    finally:
        await session.close()
        await engine.dispose()


@pytest_asyncio.fixture()
async def mailer():
    return FakeMailer()


@pytest_asyncio.fixture()
async def issuer():
    return TokenIssuer(secret=TEST_SECRET, expires_in=timedelta(hours=1))


@pytest_asyncio.fixture()
async def client(db_session, mailer, issuer):
    """HTTP client with DB, mail and token issuer overridden for testing."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_token_issuer] = lambda: issuer

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def store(db_session):
    return UserStore(db_session)


@pytest_asyncio.fixture()
async def make_user(store):
    """Factory for users created straight through the store (any role)."""

    async def _make(
        email: str = "jonas@example.com",
        name: str = "Jonas",
        role: UserRole = UserRole.USER,
        password: str = PASSWORD,
    ):
        return await store.create(
            name=name,
            email=email,
            password=password,
            password_confirm=password,
            role=role,
        )

    return _make


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
