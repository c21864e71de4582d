"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown: the token issuer is built
first so a missing secret or expiry stops the process before it serves
a single request; Redis is optional.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from authflow import __version__
from authflow.api import api_router
from authflow.auth.dependencies import get_token_issuer
from authflow.config import settings
from authflow.errors import register_exception_handlers

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info(
        "authflow.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    # Fail fast on misconfiguration (raises ConfigurationError)
    get_token_issuer()

    from authflow.cache import close_redis, init_redis
    try:
        await init_redis()
        logger.info("authflow.redis_connected", url=settings.redis_url)
    except Exception as e:
        logger.warning("authflow.redis_unavailable", error=str(e))
        # Redis is optional; without it requests are not rate limited

    yield

    logger.info("authflow.shutdown")
    await close_redis()

    from authflow.db.engine import engine
    await engine.dispose()


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="authflow",
        description="Account signup, sessions, role gating and password reset",
        version=__version__,
        lifespan=lifespan,
    )

    register_exception_handlers(app)

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: Security → RequestId → RateLimit → CORS → handler.
    # RequestId renders unexpected errors, so Security still decorates them.

    from authflow.middleware.rate_limit import RateLimitMiddleware
    from authflow.middleware.request_id import RequestIdMiddleware
    from authflow.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        auth_rpm=settings.rate_limit_auth_rpm,
    )
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware, force_hsts=settings.is_production)

    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: authflow.main:app)
app = create_app()
