"""Application errors and the exception handlers that render them.

Every expected failure is an AppError carrying a kind, an HTTP status and
a user-facing message. Route handlers and dependencies raise; the handlers
registered here are the only place an error becomes a response body:

    {"status": "fail" | "error", "ok": false, "kind": ..., "message": ...}

Unexpected exceptions are logged and answered with a generic 500 so no
internals leak to clients.
"""

from enum import Enum

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = structlog.get_logger()


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    NOT_FOUND = "not_found"
    UPSTREAM = "upstream"


class ConfigurationError(Exception):
    """Raised when required process-wide configuration is missing.

    Not an AppError: misconfiguration aborts startup instead of being
    reported per request.
    """


class AppError(Exception):
    """Base class for errors reported to the client."""

    kind: ErrorKind = ErrorKind.UPSTREAM
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Something went very wrong!"

    def __init__(self, message: str | None = None, status_code: int | None = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_body(self) -> dict:
        return {
            "status": "fail" if self.status_code < 500 else "error",
            "ok": False,
            "kind": self.kind.value,
            "message": self.message,
        }


class ValidationFailed(AppError):
    kind = ErrorKind.VALIDATION
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input data."


class AuthenticationError(AppError):
    kind = ErrorKind.AUTHENTICATION
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required"


class PermissionDenied(AppError):
    kind = ErrorKind.AUTHORIZATION
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You have not permission to perform this action."


class NotFound(AppError):
    kind = ErrorKind.NOT_FOUND
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class UpstreamError(AppError):
    kind = ErrorKind.UPSTREAM
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        "request.failed",
        kind=exc.kind.value,
        status=exc.status_code,
        message=exc.message,
        path=request.url.path,
    )
    headers = None
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=exc.status_code, content=exc.to_body(), headers=headers
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render request-body validation errors as a 400 validation failure."""
    details = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ())[1:])
        details.append(f"{field}: {err['msg']}" if field else err["msg"])
    message = "Invalid input data. " + ". ".join(details)
    return await app_error_handler(request, ValidationFailed(message.strip()))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("request.unhandled_error", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=UpstreamError().to_body(),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register the error adapter with the FastAPI application."""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
