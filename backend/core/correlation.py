"""
Request-scoped correlation IDs.

Every request gets an ID that is echoed in the `X-Correlation-ID` response
header, attached to log lines and Sentry events, and returned inside error
envelopes so a user report can be matched to server logs.
"""

import re
import uuid
from contextvars import ContextVar

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

# Client supplied IDs are echoed back into headers and logs
_VALID_INCOMING_ID = re.compile(r"[A-Za-z0-9_-]{1,64}")


def generate_correlation_id() -> str:
    """
    Generate a short correlation ID.

    Returns:
        12 hexadecimal characters.
    """
    return uuid.uuid4().hex[:12]


def resolve_correlation_id(incoming: str | None) -> str:
    """
    Reuse a client supplied correlation ID when it is well formed.

    Args:
        incoming: Raw `X-Correlation-ID` header value, if any.

    Returns:
        The incoming ID, or a freshly generated one.
    """
    if incoming and _VALID_INCOMING_ID.fullmatch(incoming):
        return incoming
    return generate_correlation_id()


def get_correlation_id() -> str:
    """Return the current request's correlation ID, or an empty string."""
    return correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    correlation_id_var.set(correlation_id)
