# backend/app/core/request_context.py
"""
Per-request correlation id.

The id lives in a ContextVar so log records, audit metadata and problem
responses can all carry it without threading the request through.
"""

from __future__ import annotations

from contextvars import ContextVar, Token
import logging
import re
from typing import Optional

import ulid

_request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# Inbound ids are echoed in headers and logs
_SAFE_REQUEST_ID = re.compile(r"^[A-Za-z0-9._:-]{1,64}$")


def resolve_request_id(inbound: Optional[str]) -> str:
    """Reuse a well-formed ``X-Request-ID`` from the caller, otherwise mint a ULID."""
    if inbound and _SAFE_REQUEST_ID.match(inbound):
        return inbound
    return str(ulid.ULID())


def set_request_id(request_id: Optional[str]) -> Token[str]:
    return _request_id_var.set(request_id or "")


def reset_request_id(token: Token[str]) -> None:
    _request_id_var.reset(token)


def get_request_id(default: Optional[str] = None) -> Optional[str]:
    value = _request_id_var.get()
    return value or default


class RequestIdFilter(logging.Filter):
    """Stamps ``record.request_id`` so the root format string never fails."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = get_request_id("no-request")
        return True


def attach_request_id_filter(logger: Optional[logging.Logger] = None) -> None:
    target = logger or logging.getLogger()
    for handler in target.handlers:
        handler.addFilter(RequestIdFilter())
