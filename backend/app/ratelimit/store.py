import logging
import threading
from typing import Optional, Protocol

from app.core.config import settings

from .fixed_window import RateLimitResult
from .memory_backend import InMemoryRateLimitStore

logger = logging.getLogger(__name__)


class RateLimitStore(Protocol):
    def check_and_increment(self, key: str, limit: int, window_ms: int) -> RateLimitResult:
        ...

    def sweep(self) -> int:
        ...

    def reset(self) -> None:
        ...


_store: Optional[RateLimitStore] = None
_store_lock = threading.Lock()


def _build_store() -> RateLimitStore:
    if settings.rate_limit_backend == "redis":
        from .redis_backend import RedisRateLimitStore

        logger.info("Rate limiting backed by Redis at %s", settings.redis_url)
        return RedisRateLimitStore()
    return InMemoryRateLimitStore(sweep_interval_ms=settings.rate_limit_sweep_interval_seconds * 1000)


def get_rate_limit_store() -> RateLimitStore:
    global _store
    if _store is None:
        with _store_lock:
            if _store is None:
                _store = _build_store()
    return _store


def reset_rate_limit_store() -> None:
    """Drop all counters and forget the configured store (tests, settings reloads)."""
    global _store
    with _store_lock:
        if _store is not None:
            _store.reset()
        _store = None
