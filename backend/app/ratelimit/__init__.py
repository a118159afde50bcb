"""Fixed-window rate limiting with in-memory and Redis stores."""

from .config import AUTH, BOOKING, MAGIC_LINK, RateLimitPolicy, get_policy
from .dependency import rate_limit
from .fixed_window import RateLimitResult, fixed_window_decide
from .store import get_rate_limit_store, reset_rate_limit_store

__all__ = [
    "AUTH",
    "BOOKING",
    "MAGIC_LINK",
    "RateLimitPolicy",
    "RateLimitResult",
    "fixed_window_decide",
    "get_policy",
    "get_rate_limit_store",
    "rate_limit",
    "reset_rate_limit_store",
]
