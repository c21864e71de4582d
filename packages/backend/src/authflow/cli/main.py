"""authflow CLI — run the server and bootstrap accounts.

Usage:
    authflow serve                                  # uvicorn on settings.host:port
    authflow serve --reload --port 9000
    authflow create-user -e admin@example.com -n Admin --role admin

Signup never grants a role, so create-user is how the first admin
(and any other privileged account) comes into existence.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import click

from authflow import __version__
from authflow.db.models import UserRole
from authflow.errors import AppError


@click.group()
@click.version_option(version=__version__, prog_name="authflow")
def main():
    """authflow — account and session service."""


@main.command()
@click.option("--host", default=None, help="Bind address (default: settings.host)")
@click.option("--port", type=int, default=None, help="Port (default: settings.port)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API server."""
    import uvicorn

    from authflow.config import settings

    uvicorn.run(
        "authflow.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


@main.command("create-user")
@click.option("--email", "-e", required=True, help="Account email")
@click.option("--name", "-n", required=True, help="Display name")
@click.option(
    "--role",
    "-r",
    type=click.Choice([r.value for r in UserRole]),
    default=UserRole.USER.value,
    show_default=True,
)
@click.password_option("--password", "-p", help="Prompted for when omitted")
def create_user(email: str, name: str, role: str, password: str):
    """Create a user directly in the database."""
    try:
        user_id = asyncio.run(_create_user_impl(email, name, role, password))
    except AppError as e:
        raise click.ClickException(e.message)
    click.echo(f"Created {role} {email} ({user_id})")


async def _create_user_impl(email: str, name: str, role: str, password: str) -> str:
    from authflow.db.engine import async_session_factory, engine
    from authflow.services.user_store import UserStore

    try:
        async with async_session_factory() as db:
            user = await UserStore(db).create(
                name=name,
                email=email,
                password=password,
                password_confirm=password,
                role=UserRole(role),
            )
            return str(user.id)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    main()
