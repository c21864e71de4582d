"""Auth API — signup, login, password reset and password update.

Learn: Routes for the session lifecycle:
- POST  /users/signup               → create account → session
- POST  /users/login                → email/password → session
- POST  /users/forgot-password      → email a one-time reset link
- PATCH /users/reset-password/{t}   → reset token + new password → session
- PATCH /users/update-my-password   → (protected) current + new → session

"Session" = SessionResponder output: token in the body and a "jwt" cookie.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from authflow.auth.dependencies import get_session_responder, protect
from authflow.auth.session import SessionResponder
from authflow.config import settings
from authflow.db.engine import get_db
from authflow.db.models import User
from authflow.schemas.user import (
    ForgotPasswordRequest,
    LoginRequest,
    ResetPasswordRequest,
    SignupRequest,
    UpdatePasswordRequest,
)
from authflow.services.auth_service import AuthService
from authflow.services.mailer import Mailer, get_mailer

router = APIRouter(prefix="/users")


# ─── Signup / login ─────────────────────────────────────


@router.post("/signup", status_code=201)
async def signup(
    body: SignupRequest,
    db: AsyncSession = Depends(get_db),
    sessions: SessionResponder = Depends(get_session_responder),
):
    """Create a new account and sign it in."""
    user = await AuthService(db).signup(body)
    return sessions.respond(user, 201)


@router.post("/login")
async def login(
    body: Optional[LoginRequest] = None,
    db: AsyncSession = Depends(get_db),
    sessions: SessionResponder = Depends(get_session_responder),
):
    """Login with email and password. A missing body counts as missing credentials."""
    body = body or LoginRequest()
    user = await AuthService(db).login(body.email, body.password)
    return sessions.respond(user, 200)


# ─── Password reset ─────────────────────────────────────


@router.post("/forgot-password")
async def forgot_password(
    body: ForgotPasswordRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    """Email a password reset link. The token is never in the response."""
    base_url = settings.public_base_url or str(request.base_url)
    await AuthService(db, mailer=mailer).forgot_password(body.email, base_url)
    return {
        "status": "success",
        "ok": True,
        "message": "Token sent successfully to your email address!",
    }


@router.patch("/reset-password/{token}")
async def reset_password(
    token: str,
    body: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db),
    sessions: SessionResponder = Depends(get_session_responder),
):
    """Consume a reset token, set the new password and sign in."""
    user = await AuthService(db).reset_password(
        token, body.password, body.password_confirm
    )
    return sessions.respond(user, 200)


# ─── Authenticated password change ──────────────────────


@router.patch("/update-my-password")
async def update_my_password(
    body: UpdatePasswordRequest,
    current_user: User = Depends(protect),
    db: AsyncSession = Depends(get_db),
    sessions: SessionResponder = Depends(get_session_responder),
):
    """Change the password of the signed-in user and issue a fresh session."""
    user = await AuthService(db).update_password(
        current_user.id,
        body.password_current,
        body.password,
        body.password_confirm,
    )
    return sessions.respond(user, 200)
