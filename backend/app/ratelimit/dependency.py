from __future__ import annotations

import logging
import time

from fastapi import Request, Response

from app.core.config import settings
from app.core.exceptions import RateLimitExceededException
from app.monitoring.prometheus_metrics import prometheus_metrics

from .config import get_policy
from .headers import rate_headers, set_rate_headers
from .identity import rate_limit_key
from .store import get_rate_limit_store

logger = logging.getLogger(__name__)


def rate_limit(policy_name: str):
    """FastAPI dependency enforcing the named fixed-window policy per client IP."""
    # Resolve eagerly so a typo fails at import time.
    get_policy(policy_name)

    def dep(request: Request, response: Response) -> None:
        if not settings.rate_limit_enabled:
            return

        policy = get_policy(policy_name)
        now_ms = int(time.time() * 1000)
        result = get_rate_limit_store().check_and_increment(
            rate_limit_key(policy.name, request), policy.limit, policy.window_ms
        )
        prometheus_metrics.record_rate_limit_decision(policy.name, result.allowed)

        if result.allowed:
            set_rate_headers(response, result, now_ms)
            return

        logger.warning("Rate limit exceeded for policy %s on %s", policy.name, request.url.path)
        raise RateLimitExceededException(
            retry_after=result.retry_after_s(now_ms),
            policy=policy.name,
            headers=rate_headers(result, now_ms),
        )

    return dep
