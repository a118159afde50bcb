from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient
import pytest

from app.core.config import settings
from app.errors import register_error_handlers
from app.ratelimit import AUTH, get_policy, rate_limit
from app.ratelimit.config import RateLimitPolicy


@pytest.fixture
def limited_client(monkeypatch):
    monkeypatch.setattr(settings, "rate_limit_enabled", True)
    monkeypatch.setattr(settings, "rate_limit_auth_per_window", 2)

    app = FastAPI()
    register_error_handlers(app)

    @app.post("/login", dependencies=[Depends(rate_limit(AUTH))])
    def login():
        return {"ok": True}

    return TestClient(app)


def test_unknown_policy_fails_fast():
    with pytest.raises(ValueError):
        rate_limit("typo")


def test_policies_follow_settings(monkeypatch):
    monkeypatch.setattr(settings, "rate_limit_auth_per_window", 7)
    monkeypatch.setattr(settings, "rate_limit_auth_window_seconds", 30)
    assert get_policy(AUTH) == RateLimitPolicy(AUTH, 7, 30_000)


def test_allowed_requests_carry_headers(limited_client):
    r = limited_client.post("/login")
    assert r.status_code == 200
    assert r.headers["X-RateLimit-Limit"] == "2"
    assert r.headers["X-RateLimit-Remaining"] == "1"


def test_exceeding_limit_returns_429_with_retry_after(limited_client):
    limited_client.post("/login")
    limited_client.post("/login")
    r = limited_client.post("/login")

    assert r.status_code == 429
    assert r.headers["content-type"].startswith("application/problem+json")
    assert int(r.headers["Retry-After"]) >= 1
    assert r.headers["X-RateLimit-Remaining"] == "0"
    assert r.json()["code"] == "RATE_LIMITED"


def test_clients_are_limited_by_address(limited_client):
    for _ in range(2):
        limited_client.post("/login", headers={"X-Forwarded-For": "203.0.113.1"})
    assert limited_client.post("/login", headers={"X-Forwarded-For": "203.0.113.1"}).status_code == 429
    assert limited_client.post("/login", headers={"X-Forwarded-For": "203.0.113.2"}).status_code == 200


def test_disabled_limiter_is_a_no_op(monkeypatch):
    monkeypatch.setattr(settings, "rate_limit_enabled", False)
    app = FastAPI()

    @app.get("/x", dependencies=[Depends(rate_limit(AUTH))])
    def x():
        return {}

    client = TestClient(app)
    r = client.get("/x")
    assert r.status_code == 200
    assert "X-RateLimit-Limit" not in r.headers
