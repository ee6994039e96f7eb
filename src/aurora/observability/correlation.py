"""Correlation ID management for request tracing."""

import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

# Accessible across async calls within one webhook request
correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

CORRELATION_ID_HEADER = "X-Correlation-ID"


def generate_correlation_id() -> str:
    """Generate a new correlation ID."""
    return str(uuid.uuid4())


def get_correlation_id() -> str:
    """Get current correlation ID from context."""
    return correlation_id_var.get()


@contextmanager
def correlation_scope(cid: str | None = None) -> Iterator[str]:
    """Bind a correlation ID for the duration of the block.

    A fresh ID is generated when `cid` is empty. The previous value is
    restored on exit, even if the block raises.
    """
    value = cid or generate_correlation_id()
    token = correlation_id_var.set(value)
    try:
        yield value
    finally:
        correlation_id_var.reset(token)
