"""Cookie utilities for consistent session handling."""
from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import Response

from app.core.config import settings


def session_cookie_name() -> str:
    """Return the configured session cookie name."""
    return settings.session_cookie_name or "massava_session"


def set_session_cookie(
    response: Response,
    value: str,
    *,
    max_age: Optional[int] = None,
) -> str:
    """Set the HttpOnly session cookie.

    Production forces ``Secure`` regardless of configuration.

    Returns:
        The cookie name written to the response headers.
    """
    cookie_name = session_cookie_name()
    cookie_kwargs: Dict[str, Any] = {
        "key": cookie_name,
        "value": value,
        "httponly": True,
        "samesite": settings.session_cookie_samesite or "lax",
        "secure": bool(settings.session_cookie_secure or settings.is_production),
        "path": "/",
    }
    if max_age is None:
        max_age = settings.session_ttl_days * 24 * 60 * 60
    cookie_kwargs["max_age"] = max_age

    response.set_cookie(**cookie_kwargs)
    return cookie_name


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=session_cookie_name(),
        path="/",
        httponly=True,
        secure=bool(settings.session_cookie_secure or settings.is_production),
        samesite=settings.session_cookie_samesite or "lax",
    )
