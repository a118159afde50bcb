from fastapi import Response

from app.ratelimit.fixed_window import RateLimitResult
from app.ratelimit.headers import rate_headers, set_rate_headers


def test_allowed_result_headers():
    res = Response()
    result = RateLimitResult(allowed=True, limit=10, remaining=5, reset_at_ms=1_234_567_890_000)
    set_rate_headers(res, result, now_ms=1_234_567_800_000)
    assert res.headers["X-RateLimit-Limit"] == "10"
    assert res.headers["X-RateLimit-Remaining"] == "5"
    assert res.headers["X-RateLimit-Reset"] == "1234567890"
    assert "Retry-After" not in res.headers


def test_denied_result_carries_retry_after():
    result = RateLimitResult(allowed=False, limit=3, remaining=0, reset_at_ms=90_000)
    headers = rate_headers(result, now_ms=60_001)
    assert headers["Retry-After"] == "30"
    assert headers["X-RateLimit-Remaining"] == "0"
