"""
Request-scoped identifiers for log correlation.

Only the request id lives in a contextvar. Who is calling (user, permissions,
garage claims) is never ambient: it travels as an explicit
``RequestContext`` argument (see ``garage_booking.principal``).
"""

from __future__ import annotations

from contextvars import ContextVar, Token
import logging
import re
from typing import Optional

from .ulid_helper import generate_ulid

REQUEST_ID_HEADER = "X-Request-ID"

_request_id_var: ContextVar[str] = ContextVar("request_id", default="")
_SAFE_REQUEST_ID = re.compile(r"^[A-Za-z0-9._:-]{1,64}$")


def resolve_request_id(incoming: Optional[str]) -> str:
    """Reuse a well-formed inbound id, otherwise mint a ULID."""
    candidate = (incoming or "").strip()
    if candidate and _SAFE_REQUEST_ID.fullmatch(candidate):
        return candidate
    return generate_ulid()


def set_request_id(request_id: Optional[str]) -> Token[str]:
    return _request_id_var.set(request_id or "")


def reset_request_id(token: Token[str]) -> None:
    _request_id_var.reset(token)


def get_request_id_value(default: str = "no-request") -> str:
    value = _request_id_var.get()
    return value if value else default


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = get_request_id_value()
        return True


def attach_request_id_filter(logger: Optional[logging.Logger] = None) -> None:
    target = logger or logging.getLogger()
    for handler in target.handlers:
        if not any(isinstance(f, RequestIdFilter) for f in handler.filters):
            handler.addFilter(RequestIdFilter())
