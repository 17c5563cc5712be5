"""
Request correlation IDs for logs.

Each HTTP request gets a UUID (returned as the X-Correlation-ID header). The
ID lives in a `ContextVar` for the duration of the request, so deeper layers
(stats aggregation, storage) can log without passing it around by hand.

`CorrelationIdFilter` copies the current ID onto every log record as
`record.correlation_id` ("-" outside a request), which lets the log format
include `%(correlation_id)s`.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from uuid import UUID, uuid4

_correlation_id_var: ContextVar[UUID | None] = ContextVar("correlation_id", default=None)


def new_correlation_id() -> UUID:
    """Generate an ID and make it current for this request context."""

    correlation_id = uuid4()
    _correlation_id_var.set(correlation_id)
    return correlation_id


def get_correlation_id() -> UUID | None:
    return _correlation_id_var.get()


class CorrelationIdFilter(logging.Filter):
    """Attach the current correlation_id to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        correlation_id = _correlation_id_var.get()
        record.correlation_id = str(correlation_id) if correlation_id else "-"
        return True
