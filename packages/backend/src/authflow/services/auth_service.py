"""Auth service — signup, login and password lifecycle flows.

Learn: Each method either returns the user that should be signed in
or raises an AppError; routes turn the user into a session response.
Forgot-password is the one flow that catches an error: if the email
can't be sent, the freshly minted reset token is wiped before the
error continues upward, so no dead token stays in the database.

Login and reset deliberately give one message for several causes
(unknown email vs wrong password, invalid vs expired token) so
responses can't be used to find out which accounts exist.
"""

import uuid

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from authflow.auth.password import hash_reset_token
from authflow.db.models import User
from authflow.errors import AuthenticationError, NotFound, ValidationFailed
from authflow.schemas.user import SignupRequest
from authflow.services.mailer import Mailer
from authflow.services.user_store import UserStore

logger = structlog.get_logger()

RESET_EMAIL_SUBJECT = "Your password reset token (valid for {minutes} minutes)"


class AuthService:
    """Business logic for account sessions."""

    def __init__(
        self,
        db: AsyncSession,
        mailer: Mailer | None = None,
        store: UserStore | None = None,
    ):
        self.store = store or UserStore(db)
        self.mailer = mailer

    # ─── Signup / login ─────────────────────────────────

    async def signup(self, body: SignupRequest) -> User:
        user = await self.store.create(
            name=body.name,
            email=body.email,
            password=body.password,
            password_confirm=body.password_confirm,
            photo=body.photo,
        )
        logger.info("auth.signup", user_id=str(user.id))
        return user

    async def login(self, email: str | None, password: str | None) -> User:
        if not email or not password:
            raise ValidationFailed("Please provide a valid email and password.")

        user = await self.store.get_by_email(email, with_password=True)
        if user is None or not await self.store.correct_password(user, password):
            logger.info("auth.login_failed", email=email)
            raise AuthenticationError("Incorrect email or password")

        logger.info("auth.login", user_id=str(user.id))
        return user

    # ─── Password reset ─────────────────────────────────

    async def forgot_password(self, email: str, base_url: str) -> None:
        """Email a reset link to `email`. The plaintext token only travels by mail."""
        user = await self.store.get_by_email(email)
        if user is None:
            raise NotFound("No user found with this email address.")
        user_id = str(user.id)

        reset_token = self.store.create_password_reset_token(user)
        await self.store.save(user, validate=False)

        reset_url = f"{base_url.rstrip('/')}/api/v1/users/reset-password/{reset_token}"
        message = (
            "Forgot your password? Reset it by following this link: "
            f"{reset_url}\n"
            "If you didn't ask for a password reset, simply ignore this email."
        )

        minutes = int(self.store.reset_token_ttl.total_seconds() // 60)
        try:
            await self.mailer.send(
                to=user.email,
                subject=RESET_EMAIL_SUBJECT.format(minutes=minutes),
                message=message,
            )
        except Exception as send_error:
            logger.warning("auth.reset_email_failed", user_id=user_id)
            self.store.clear_password_reset_token(user)
            try:
                await self.store.save(user, validate=False)
            except Exception as cleanup_error:
                # The mail failure is what the client needs to hear about
                logger.error(
                    "auth.reset_cleanup_failed",
                    user_id=user_id,
                    error=str(cleanup_error),
                )
            raise send_error

        logger.info("auth.reset_requested", user_id=user_id)

    async def reset_password(
        self, token: str, password: str, password_confirm: str
    ) -> User:
        user = await self.store.get_by_reset_token(hash_reset_token(token))
        if user is None:
            raise ValidationFailed("Token is invalid or expired")

        await self.store.set_password(user, password, password_confirm)
        self.store.clear_password_reset_token(user)
        await self.store.save(user)
        logger.info("auth.password_reset", user_id=str(user.id))
        return user

    # ─── Authenticated password change ──────────────────

    async def update_password(
        self,
        user_id: uuid.UUID,
        password_current: str,
        password: str,
        password_confirm: str,
    ) -> User:
        user = await self.store.get_by_id(user_id, with_password=True)
        if user is None or not await self.store.correct_password(user, password_current):
            raise AuthenticationError("Incorrect current password.")

        await self.store.set_password(user, password, password_confirm)
        await self.store.save(user)
        logger.info("auth.password_updated", user_id=str(user.id))
        return user
