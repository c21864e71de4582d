"""CLI tests — argument handling and real account creation.

Learn: create-user runs its own asyncio loop and disposes the engine when
done, so it gets a file-backed SQLite database (an in-memory one would
vanish with the disposed connection). The tests are plain sync functions
because CliRunner drives asyncio.run itself.
"""

import asyncio

import pytest
from click.testing import CliRunner
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from authflow import __version__
from authflow.cli import main as cli
from authflow.db import engine as db_engine
from authflow.db.models import Base
from authflow.services.user_store import UserStore
from conftest import PASSWORD


@pytest.fixture()
def cli_engine(tmp_path, monkeypatch):
    """Point the CLI's engine and session factory at a scratch database."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}")

    async def create_schema():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        await engine.dispose()

    asyncio.run(create_schema())
    monkeypatch.setattr(db_engine, "engine", engine)
    monkeypatch.setattr(
        db_engine,
        "async_session_factory",
        async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False),
    )
    return engine


def stored_user(engine, email: str):
    async def lookup():
        factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        try:
            async with factory() as db:
                return await UserStore(db).get_by_email(email, with_password=True)
        finally:
            await engine.dispose()

    return asyncio.run(lookup())


def create_user(*args: str):
    return CliRunner().invoke(cli.main, ["create-user", *args])


def test_version():
    result = CliRunner().invoke(cli.main, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_create_user_rejects_unknown_role():
    result = create_user("-e", "a@example.com", "-n", "A", "-r", "root", "-p", PASSWORD)
    assert result.exit_code != 0
    assert "root" in result.output


def test_create_admin_stores_admin_role(cli_engine):
    result = create_user(
        "-e", "Boss@Example.com", "-n", "Boss", "-r", "admin", "-p", PASSWORD
    )
    assert result.exit_code == 0, result.output
    assert "Created admin Boss@Example.com" in result.output

    user = stored_user(cli_engine, "boss@example.com")
    assert user is not None
    assert user.role == "admin"
    assert user.name == "Boss"
    assert user.password_hash != PASSWORD
    assert str(user.id) in result.output


def test_create_user_defaults_to_user_role(cli_engine):
    result = create_user("-e", "plain@example.com", "-n", "Plain", "-p", PASSWORD)
    assert result.exit_code == 0, result.output
    assert stored_user(cli_engine, "plain@example.com").role == "user"


def test_create_user_reports_duplicates(cli_engine):
    args = ("-e", "boss@example.com", "-n", "Boss", "-r", "admin", "-p", PASSWORD)
    assert create_user(*args).exit_code == 0

    result = create_user(*args)
    assert result.exit_code == 1
    assert "Duplicate field value: boss@example.com" in result.output


def test_create_user_reports_short_password(cli_engine):
    result = create_user("-e", "short@example.com", "-n", "Short", "-p", "abc")
    assert result.exit_code == 1
    assert "at least 8 characters" in result.output
    assert stored_user(cli_engine, "short@example.com") is None
