"""
Sentry SDK configuration.

Sentry stays disabled unless SENTRY_DSN is set. Reports and appeals carry
member narratives, so request bodies and identity headers are scrubbed
before any event leaves the process.
"""

import os
from typing import Any

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.loguru import LoguruIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
from sentry_sdk.types import Event, Hint

HEALTH_PATHS = ("/health", "/api/health")
DEFAULT_TRACE_RATE = 0.2
# Appeal erasure is rare and compliance-relevant
ALWAYS_TRACED = (("DELETE", "/api/appeals"),)


def _scrub_user(user: dict[str, Any]) -> None:
    for key in ("email", "username"):
        user.pop(key, None)
    if "ip_address" in user:
        user["ip_address"] = "{{auto}}"


def _scrub_request(request: dict[str, Any]) -> None:
    request.pop("cookies", None)
    # Report reasons and appeal narratives live in the body
    request.pop("data", None)
    headers = request.get("headers")
    if isinstance(headers, dict) and "Authorization" in headers:
        headers["Authorization"] = "[Filtered]"


def _before_send(event: Event, hint: Hint) -> Event | None:
    """Keep only the member id and drop request bodies before sending."""
    user = event.get("user")
    if user:
        _scrub_user(user)  # type: ignore[arg-type]

    request = event.get("request")
    if isinstance(request, dict):
        _scrub_request(request)

    return event


def _is_health_check(name: str) -> bool:
    return any(name in (path, f"GET {path}") for path in HEALTH_PATHS)


def _before_send_transaction(event: Event, hint: Hint) -> Event | None:
    """Drop health check transactions."""
    if _is_health_check(event.get("transaction", "")):
        return None
    return event


def _traces_sampler(sampling_context: dict[str, Any]) -> float:
    """Sample traces by endpoint, honouring an upstream sampling decision."""
    if sampling_context.get("parent_sampled") is True:
        return 1.0

    asgi_scope = sampling_context.get("asgi_scope", {})
    path = asgi_scope.get("path", "")
    method = asgi_scope.get("method", "")

    if path in HEALTH_PATHS:
        return 0.0
    for traced_method, prefix in ALWAYS_TRACED:
        if method == traced_method and path.startswith(prefix):
            return 1.0
    return DEFAULT_TRACE_RATE


def init_sentry() -> None:
    """
    Initialize Sentry with the FastAPI, SQLAlchemy and loguru integrations.

    Call this BEFORE creating the FastAPI app instance.
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
        before_send=_before_send,
        before_send_transaction=_before_send_transaction,
        attach_stacktrace=True,
        max_breadcrumbs=50,
    )
