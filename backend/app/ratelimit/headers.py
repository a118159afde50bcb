from typing import Dict

from fastapi import Response

from .fixed_window import RateLimitResult


def rate_headers(result: RateLimitResult, now_ms: int) -> Dict[str, str]:
    headers = {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(max(result.remaining, 0)),
        "X-RateLimit-Reset": str(result.reset_at_ms // 1000),
    }
    if not result.allowed:
        headers["Retry-After"] = str(result.retry_after_s(now_ms))
    return headers


def set_rate_headers(res: Response, result: RateLimitResult, now_ms: int) -> None:
    for name, value in rate_headers(result, now_ms).items():
        res.headers[name] = value
