"""
Sentry SDK configuration.

Sentry is only initialised when `SENTRY_DSN` is set. Events are scrubbed of
personal data (emails, usernames, cookies, bearer tokens) before leaving the
process, and health checks are never traced.
"""

import os
from typing import Any

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.loguru import LoguruIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
from sentry_sdk.types import Event, Hint

HEALTH_PATHS = ("/health", "/api/health")

# Staff and auth endpoints are sampled more heavily than public reads
PRIVILEGED_PREFIXES = ("/api/admin", "/api/moderator", "/api/moderation", "/api/auth")


def _before_send(event: Event, hint: Hint) -> Event | None:
    """
    Remove personal data from an event before it is sent.

    Only the user id is kept for traceability.
    """
    user = event.get("user")
    if user:
        user.pop("email", None)
        user.pop("username", None)
        if "ip_address" in user:
            user["ip_address"] = "{{auto}}"

    request = event.get("request")
    if request and isinstance(request, dict):
        request.pop("cookies", None)
        headers = request.get("headers")
        if isinstance(headers, dict):
            for name in list(headers):
                if name.lower() == "authorization":
                    headers[name] = "[Filtered]"

    return event


def _before_send_transaction(event: Event, hint: Hint) -> Event | None:
    """Drop health check transactions."""
    transaction_name = event.get("transaction", "") or ""
    if transaction_name.split(" ")[-1] in HEALTH_PATHS:
        return None
    return event


def _traces_sampler(sampling_context: dict[str, Any]) -> float:
    """
    Sample rate per request path.

    Args:
        sampling_context: Context about the request being sampled.

    Returns:
        Sample rate between 0.0 and 1.0.
    """
    if sampling_context.get("parent_sampled") is True:
        return 1.0

    path = sampling_context.get("asgi_scope", {}).get("path", "")

    if path in HEALTH_PATHS:
        return 0.0
    if path.startswith(PRIVILEGED_PREFIXES):
        return 0.5
    return float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.2"))


def init_sentry() -> None:
    """
    Initialise Sentry with the FastAPI, SQLAlchemy and loguru integrations.

    Call this before creating the FastAPI app instance.
    """
    dsn = os.getenv("SENTRY_DSN")
    if not dsn:
        return

    sentry_sdk.init(
        dsn=dsn,
        environment=os.getenv("ENVIRONMENT", "development"),
        release=os.getenv("SENTRY_RELEASE", "unknown"),
        send_default_pii=False,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
            LoguruIntegration(),
        ],
        traces_sampler=_traces_sampler,
        sample_rate=1.0,
        before_send=_before_send,
        before_send_transaction=_before_send_transaction,
        attach_stacktrace=True,
        max_breadcrumbs=50,
        ignore_errors=[KeyboardInterrupt, SystemExit],
    )
