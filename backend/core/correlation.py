"""
Request-scoped correlation IDs.

Every request, log line and error body carries the same short ID so a
moderator can quote it when reporting a problem.
"""

import re
import uuid
from contextvars import ContextVar
from typing import Optional

CORRELATION_HEADER = "X-Correlation-ID"

# Caller-supplied IDs end up in logs and Sentry tags
_ACCEPTED_ID = re.compile(r"[A-Za-z0-9_-]{1,64}")

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")


def generate_correlation_id() -> str:
    """
    Generate a short correlation ID.

    Returns:
        8-character hexadecimal string.
    """
    return uuid.uuid4().hex[:8]


def resolve_correlation_id(supplied: Optional[str]) -> str:
    """
    Pick the ID for an incoming request.

    A dashboard may send its own ID so one moderation action can be traced
    end to end. Anything that is not a short token of letters, digits,
    '-' or '_' is replaced by a fresh ID.
    """
    if supplied and _ACCEPTED_ID.fullmatch(supplied):
        return supplied
    return generate_correlation_id()


def get_correlation_id() -> str:
    """Return the correlation ID of the current context, or ''."""
    return correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    """Bind a correlation ID to the current context."""
    correlation_id_var.set(correlation_id)
