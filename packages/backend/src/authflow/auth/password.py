"""Password and reset-token hashing.

Learn: Uses bcrypt for passwords. bcrypt includes a random salt and
produces hashes starting with "$2b$". The work factor comes from
settings.bcrypt_rounds (12 in production, ~100ms per hash).

Reset tokens are different: they are already high-entropy random strings,
so a fast unsalted SHA-256 is enough and lets the store look a user up
by the hash of the token presented in the reset URL.
"""

import hashlib
import secrets
from typing import Optional

import bcrypt

from authflow.config import settings

RESET_TOKEN_BYTES = 32


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    """Hash a password with bcrypt.

    Passwords are truncated to 72 bytes (bcrypt's limit).
    """
    pw_bytes = password.encode("utf-8")[:72]
    salt = bcrypt.gensalt(rounds=rounds or settings.bcrypt_rounds)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its bcrypt hash."""
    if not password or not password_hash:
        return False
    try:
        pw_bytes = password.encode("utf-8")[:72]
        return bcrypt.checkpw(pw_bytes, password_hash.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def generate_reset_token() -> tuple[str, str]:
    """Return (plaintext, sha256_hex) for a new password reset token."""
    token = secrets.token_hex(RESET_TOKEN_BYTES)
    return token, hash_reset_token(token)


def hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
