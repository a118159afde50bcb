import logging
import threading
import time
from typing import Callable, Dict, Optional

from .fixed_window import RateLimitResult, WindowEntry, fixed_window_decide

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class InMemoryRateLimitStore:
    """
    Process-local fixed-window counters.

    Counters are not shared between worker processes; deployments with more
    than one process should use the Redis store. Expired entries are swept
    lazily, at most once per ``sweep_interval_ms``.
    """

    def __init__(self, sweep_interval_ms: int = 5 * 60 * 1000, clock: Optional[Callable[[], int]] = None) -> None:
        self._entries: Dict[str, WindowEntry] = {}
        self._lock = threading.Lock()
        self._clock = clock or _now_ms
        self._sweep_interval_ms = sweep_interval_ms
        self._next_sweep_ms = self._clock() + sweep_interval_ms

    def check_and_increment(self, key: str, limit: int, window_ms: int) -> RateLimitResult:
        now_ms = self._clock()
        with self._lock:
            if now_ms >= self._next_sweep_ms:
                self._sweep_locked(now_ms)
            entry, result = fixed_window_decide(now_ms, self._entries.get(key), limit, window_ms)
            self._entries[key] = entry
        return result

    def sweep(self) -> int:
        with self._lock:
            return self._sweep_locked(self._clock())

    def _sweep_locked(self, now_ms: int) -> int:
        expired = [key for key, entry in self._entries.items() if now_ms >= entry.reset_at_ms]
        for key in expired:
            del self._entries[key]
        self._next_sweep_ms = now_ms + self._sweep_interval_ms
        if expired:
            logger.debug("Swept %d expired rate-limit windows", len(expired))
        return len(expired)

    def reset(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
