"""Session responses — token, cookie and user payload in one place.

Learn: Every flow that ends with a signed-in user (signup, login, reset,
password update) answers the same way:

    {"status": "success", "ok": true, "token": "...", "data": {"user": {...}}}

plus an HttpOnly "jwt" cookie for browser clients. The user goes through
UserRead, so the password hash can't leak into the body.
"""

from datetime import datetime, timedelta
from typing import Callable

from fastapi.responses import JSONResponse

from authflow.auth.jwt import TokenIssuer
from authflow.db.models import User, utcnow
from authflow.schemas.user import UserRead

COOKIE_NAME = "jwt"


def public_user(user: User) -> dict:
    return UserRead.model_validate(user).model_dump(mode="json")


class SessionResponder:
    def __init__(
        self,
        issuer: TokenIssuer,
        cookie_expires_in_days: int,
        secure: bool = False,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.issuer = issuer
        self.cookie_expires_in = timedelta(days=cookie_expires_in_days)
        self.secure = secure
        self._clock = clock

    def respond(self, user: User, status_code: int) -> JSONResponse:
        token = self.issuer.sign(user.id)
        response = JSONResponse(
            status_code=status_code,
            content={
                "status": "success",
                "ok": True,
                "token": token,
                "data": {"user": public_user(user)},
            },
        )
        response.set_cookie(
            COOKIE_NAME,
            token,
            expires=self._clock() + self.cookie_expires_in,
            httponly=True,
            secure=self.secure,
            samesite="lax",
        )
        return response
