from dataclasses import dataclass
import math
from typing import Optional, Tuple


@dataclass
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    reset_at_ms: int

    def retry_after_s(self, now_ms: int) -> int:
        """Whole seconds until the window resets, never below one."""
        return max(1, math.ceil((self.reset_at_ms - now_ms) / 1000))


@dataclass
class WindowEntry:
    count: int
    reset_at_ms: int


def fixed_window_decide(
    now_ms: int,
    entry: Optional[WindowEntry],
    limit: int,
    window_ms: int,
) -> Tuple[WindowEntry, RateLimitResult]:
    """
    Fixed-window counter pure decision function.

    A missing or expired entry opens a new window counting this request as
    the first; otherwise the count grows by one. The request is denied once
    the count exceeds ``limit``.

    Args:
        now_ms: current wall time in epoch milliseconds
        entry: stored counter for the key, or None if new
        limit: requests permitted per window
        window_ms: window length in milliseconds

    Returns:
        (new_entry, RateLimitResult)
    """
    if entry is None or now_ms >= entry.reset_at_ms:
        new_entry = WindowEntry(count=1, reset_at_ms=now_ms + window_ms)
    else:
        new_entry = WindowEntry(count=entry.count + 1, reset_at_ms=entry.reset_at_ms)

    result = RateLimitResult(
        allowed=new_entry.count <= limit,
        limit=limit,
        remaining=max(0, limit - new_entry.count),
        reset_at_ms=new_entry.reset_at_ms,
    )
    return new_entry, result
