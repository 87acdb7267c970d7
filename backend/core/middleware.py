"""
Request middleware: correlation ids and request timing.
"""

import time
from collections.abc import Awaitable, Callable

import sentry_sdk
from fastapi import Request, Response
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

from core.correlation import (
    CORRELATION_HEADER,
    resolve_correlation_id,
    set_correlation_id,
)


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Bind a correlation id to the request and echo it in the response."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        correlation_id = resolve_correlation_id(request.headers.get(CORRELATION_HEADER))
        set_correlation_id(correlation_id)
        sentry_sdk.set_tag("correlation_id", correlation_id)

        response = await call_next(request)
        response.headers[CORRELATION_HEADER] = correlation_id
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each request with its duration and flag slow ones."""

    def __init__(self, app, slow_request_threshold: float = 1.0):
        super().__init__(app)
        self.slow_request_threshold = slow_request_threshold

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        started = time.perf_counter()
        route = f"{request.method} {request.url.path}"
        client_host = request.client.host if request.client else "unknown"
        logger.info("Request: {} from {}", route, client_host)

        response = await call_next(request)

        duration = time.perf_counter() - started
        logger.info(
            "Response: {} status={} duration={:.3f}s",
            route,
            response.status_code,
            duration,
        )
        if duration > self.slow_request_threshold:
            logger.warning(
                "Slow request: {} took {:.2f}s (threshold: {}s)",
                route,
                duration,
                self.slow_request_threshold,
            )

        response.headers["X-Response-Time"] = f"{duration:.3f}s"
        return response
