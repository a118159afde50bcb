from dataclasses import dataclass
from typing import Dict

from app.core.config import settings


@dataclass(frozen=True)
class RateLimitPolicy:
    name: str
    limit: int
    window_ms: int


AUTH = "auth"
BOOKING = "booking"
MAGIC_LINK = "magic_link"


def build_policies() -> Dict[str, RateLimitPolicy]:
    """Named policies; limits and windows come from application settings."""
    return {
        AUTH: RateLimitPolicy(
            AUTH,
            settings.rate_limit_auth_per_window,
            settings.rate_limit_auth_window_seconds * 1000,
        ),
        BOOKING: RateLimitPolicy(
            BOOKING,
            settings.rate_limit_booking_per_window,
            settings.rate_limit_booking_window_seconds * 1000,
        ),
        MAGIC_LINK: RateLimitPolicy(
            MAGIC_LINK,
            settings.rate_limit_magic_link_per_window,
            settings.rate_limit_magic_link_window_seconds * 1000,
        ),
    }


def get_policy(name: str) -> RateLimitPolicy:
    try:
        return build_policies()[name]
    except KeyError:
        raise ValueError(f"Unknown rate limit policy: {name}") from None
