"""Pydantic schemas for account and session endpoints.

Learn: Request schemas are allow-lists. Anything a client sends beyond the
declared fields (a forged "role", a "passwordChangedAt") is dropped before
the service layer sees it. Field names follow the camelCase wire format
via aliases; Python code uses snake_case.
"""

import uuid
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

_request_config = {"populate_by_name": True, "extra": "ignore"}


class SignupRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8)
    password_confirm: str = Field(..., alias="passwordConfirm")
    photo: Optional[str] = Field(None, max_length=255)

    model_config = _request_config


class LoginRequest(BaseModel):
    """Both optional: missing credentials get their own 400 message."""
    email: Optional[str] = None
    password: Optional[str] = None

    model_config = _request_config


class ForgotPasswordRequest(BaseModel):
    email: str

    model_config = _request_config


class ResetPasswordRequest(BaseModel):
    password: str
    password_confirm: str = Field(..., alias="passwordConfirm")

    model_config = _request_config


class UpdatePasswordRequest(BaseModel):
    password_current: str = Field(..., alias="passwordCurrent")
    password: str
    password_confirm: str = Field(..., alias="passwordConfirm")

    model_config = _request_config


class UserRead(BaseModel):
    """Public projection of a user. Never includes password material."""
    id: uuid.UUID
    name: str
    email: str
    photo: str
    role: str

    model_config = {"from_attributes": True}
