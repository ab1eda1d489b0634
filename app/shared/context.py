"""Request context using contextvars.

Async-safe storage for request-scoped values: the request ID set by
RequestIDMiddleware and the principal resolved by the access control
dependency. RequestContextFilter copies both onto log records.
"""

import logging
from contextvars import ContextVar

_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)
_principal_id: ContextVar[str | None] = ContextVar("principal_id", default=None)


def set_request_id(request_id: str | None) -> None:
    _request_id.set(request_id)


def get_request_id() -> str | None:
    return _request_id.get()


def set_current_principal(principal_id: str | None) -> None:
    """Record the authenticated principal for this request (logging only)."""
    _principal_id.set(principal_id)


def get_current_principal_id() -> str | None:
    return _principal_id.get()


class RequestContextFilter(logging.Filter):
    """Adds request_id and principal_id ('-' when unset) to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _request_id.get() or "-"
        record.principal_id = _principal_id.get() or "-"
        return True
