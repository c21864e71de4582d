"""Session responder tests — cookie flags and body shape outside HTTP routing."""

import json
import uuid
from datetime import datetime, timedelta, timezone

from authflow.auth.jwt import TokenIssuer
from authflow.auth.session import SessionResponder
from authflow.db.models import User


def make_responder(secure: bool) -> SessionResponder:
    fixed = datetime(2030, 1, 1, tzinfo=timezone.utc)
    issuer = TokenIssuer(secret="s3cret", expires_in=timedelta(hours=1))
    return SessionResponder(issuer, cookie_expires_in_days=7, secure=secure, clock=lambda: fixed)


def make_user() -> User:
    return User(
        id=uuid.uuid4(),
        name="Ada",
        email="ada@example.com",
        photo="default.jpg",
        role="guide",
        password_hash="$2b$04$notarealhashbutneverserialized",
    )


def test_production_cookie_is_secure():
    response = make_responder(secure=True).respond(make_user(), 200)
    cookie = response.headers["set-cookie"]
    assert "Secure" in cookie
    assert "HttpOnly" in cookie
    assert "expires=Tue, 08 Jan 2030 00:00:00 GMT" in cookie


def test_development_cookie_is_not_secure():
    response = make_responder(secure=False).respond(make_user(), 201)
    assert response.status_code == 201
    assert "Secure" not in response.headers["set-cookie"]


def test_body_shape_and_no_password():
    user = make_user()
    response = make_responder(secure=False).respond(user, 200)
    body = json.loads(response.body)
    assert body["status"] == "success"
    assert body["ok"] is True
    assert body["data"]["user"] == {
        "id": str(user.id),
        "name": "Ada",
        "email": "ada@example.com",
        "photo": "default.jpg",
        "role": "guide",
    }
    assert "notarealhash" not in response.body.decode()
