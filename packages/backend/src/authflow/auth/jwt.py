"""JWT session token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication. A session
token carries the user id (sub) and its issue time (iat); nothing is
stored server-side. Tokens can't be revoked one by one: changing the
password is what invalidates older tokens (see User.changed_password_after).

The issuer is built from explicit values instead of reading settings on
every call, so tests can inject their own secret and clock.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

import jwt

from authflow.db.models import utcnow
from authflow.errors import AuthenticationError, ConfigurationError


class TokenError(AuthenticationError):
    """Raised when a presented token fails verification."""


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    issued_at: int


class TokenIssuer:
    """Signs and verifies session tokens with one process-wide secret."""

    def __init__(
        self,
        secret: str,
        expires_in: Optional[timedelta],
        algorithm: str = "HS256",
        clock: Callable[[], datetime] = utcnow,
    ):
        if not secret:
            raise ConfigurationError("JWT secret is not configured")
        if expires_in is None or expires_in <= timedelta(0):
            raise ConfigurationError("JWT expiry must be a positive duration")
        self._secret = secret
        self.expires_in = expires_in
        self.algorithm = algorithm
        self._clock = clock

    def sign(self, user_id) -> str:
        """Create a signed token for `user_id`."""
        now = self._clock()
        payload = {
            "sub": str(user_id),
            "iat": now,
            "exp": now + self.expires_in,
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenClaims:
        """Verify and decode a token.

        Raises TokenError on a bad signature, a malformed token, missing
        claims or expiry.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"require": ["sub", "iat", "exp"]},
            )
        except jwt.ExpiredSignatureError:
            raise TokenError("Your token has expired! Please log in again.")
        except jwt.InvalidTokenError:
            raise TokenError("Invalid token. Please log in again!")
        return TokenClaims(user_id=payload["sub"], issued_at=int(payload["iat"]))
