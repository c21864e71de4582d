"""Tests for middleware — security headers, request IDs, rate limiting, 500s.

Learn: Redis isn't initialized in tests, so the rate limiter passes every
request through; that fallback is what test_rate_limit_skipped_without_redis
pins down.
"""

import pytest


@pytest.mark.asyncio
async def test_security_headers_on_health(client):
    r = await client.get("/api/v1/health")
    assert r.status_code == 200
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert r.headers["X-Frame-Options"] == "DENY"
    assert r.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"
    assert "Cache-Control" not in r.headers


@pytest.mark.asyncio
async def test_account_responses_not_cacheable(client):
    r = await client.post("/api/v1/users/login", json={})
    assert r.headers["Cache-Control"] == "no-store"


@pytest.mark.asyncio
async def test_request_id_generated(client):
    r1 = await client.get("/api/v1/health")
    r2 = await client.get("/api/v1/health")
    assert r1.headers["X-Request-ID"] != r2.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_request_id_propagated(client):
    r = await client.get("/api/v1/health", headers={"X-Request-ID": "trace-12345"})
    assert r.headers["X-Request-ID"] == "trace-12345"


@pytest.mark.asyncio
async def test_request_id_on_error_responses(client):
    r = await client.get("/api/v1/users/me")
    assert r.status_code == 401
    assert "X-Request-ID" in r.headers


@pytest.mark.asyncio
async def test_no_hsts_on_http_outside_production(client):
    r = await client.get("/api/v1/health")
    assert "Strict-Transport-Security" not in r.headers


@pytest.mark.asyncio
async def test_rate_limit_skipped_without_redis(client):
    for _ in range(15):
        r = await client.post("/api/v1/users/login", json={})
        assert r.status_code == 400
    assert "X-RateLimit-Limit" not in r.headers


@pytest.mark.asyncio
async def test_unexpected_error_keeps_request_id_and_headers(client, make_user, mailer):
    await make_user()
    mailer.fail = RuntimeError("boom")

    r = await client.post(
        "/api/v1/users/forgot-password",
        json={"email": "jonas@example.com"},
        headers={"X-Request-ID": "trace-500"},
    )
    assert r.status_code == 500
    assert r.json() == {
        "status": "error",
        "ok": False,
        "kind": "upstream",
        "message": "Something went very wrong!",
    }
    assert r.headers["X-Request-ID"] == "trace-500"
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert r.headers["Cache-Control"] == "no-store"
