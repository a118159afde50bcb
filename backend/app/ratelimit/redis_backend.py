import time
from typing import Optional

import redis

from app.core.config import settings

from .fixed_window import RateLimitResult

NAMESPACE = "massava:rl"


def get_redis() -> "redis.Redis":
    return redis.Redis.from_url(settings.redis_url, decode_responses=True)


# Lua script implementing a fixed window counter
# KEYS[1] = storage key
# ARGV[1] = window_ms
# Returns: {count, pttl_ms}
FIXED_WINDOW_LUA = r"""
local key = KEYS[1]
local window_ms = tonumber(ARGV[1])

local count = redis.call('INCR', key)
if count == 1 then
  redis.call('PEXPIRE', key, window_ms)
end
local ttl = redis.call('PTTL', key)
if ttl < 0 then
  redis.call('PEXPIRE', key, window_ms)
  ttl = window_ms
end
return {count, ttl}
"""


class RedisRateLimitStore:
    """Fixed-window counters shared by every process through Redis."""

    def __init__(self, client: Optional["redis.Redis"] = None, namespace: str = NAMESPACE) -> None:
        self.client = client or get_redis()
        self.namespace = namespace
        self._script = self.client.register_script(FIXED_WINDOW_LUA)

    def check_and_increment(self, key: str, limit: int, window_ms: int) -> RateLimitResult:
        now_ms = int(time.time() * 1000)
        count, ttl_ms = self._script(keys=[f"{self.namespace}:{key}"], args=[window_ms])
        count = int(count)
        return RateLimitResult(
            allowed=count <= limit,
            limit=limit,
            remaining=max(0, limit - count),
            reset_at_ms=now_ms + int(ttl_ms),
        )

    def sweep(self) -> int:
        # Redis expires keys itself.
        return 0

    def reset(self) -> None:
        for key in self.client.scan_iter(match=f"{self.namespace}:*"):
            self.client.delete(key)


__all__ = ["get_redis", "FIXED_WINDOW_LUA", "RedisRateLimitStore"]
