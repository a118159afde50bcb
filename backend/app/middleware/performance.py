# backend/app/middleware/performance.py
"""
Request correlation and timing middleware.

- Accepts or generates an ``X-Request-ID`` and echoes it on the response
- Publishes the id through a ContextVar so log records carry it
- Flags slow requests
"""

import logging
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from ..core.request_context import reset_request_id, resolve_request_id, set_request_id

logger = logging.getLogger(__name__)

SLOW_REQUEST_MS = 1000


class PerformanceMiddleware(BaseHTTPMiddleware):
    """Request id propagation plus a response-time header."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = resolve_request_id(request.headers.get("X-Request-ID"))
        request.state.request_id = request_id
        token = set_request_id(request_id)
        start_time = time.time()

        try:
            response = await call_next(request)
        finally:
            reset_request_id(token)

        duration_ms = (time.time() - start_time) * 1000
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time-MS"] = str(int(duration_ms))

        if duration_ms > SLOW_REQUEST_MS:
            logger.warning(
                f"Slow request: {request.method} {request.url.path} took {duration_ms:.0f}ms",
                extra={"request_id": request_id},
            )
        return response
