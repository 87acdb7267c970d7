"""
Central mapping of domain exceptions to HTTP responses.

Every error body carries `detail` and `correlation_id`. Handlers are looked
up by exception MRO, so each category handler also covers its subclasses
(e.g. ReportAlreadyDeletedException answers 404 through NotFoundException).
"""

from typing import NamedTuple

import sentry_sdk
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from core.correlation import generate_correlation_id, get_correlation_id
from models.config import settings
from models.exceptions import (
    AuthenticationException,
    BusinessRuleException,
    ConflictException,
    DomainException,
    NotFoundException,
    PermissionDeniedException,
    TransientException,
    ValidationException,
)


class ErrorMapping(NamedTuple):
    """How one exception category is answered."""

    status_code: int
    log_label: str
    capture: bool = False
    log_level: str = "WARNING"


ERROR_MAPPINGS: dict[type[DomainException], ErrorMapping] = {
    NotFoundException: ErrorMapping(status.HTTP_404_NOT_FOUND, "Not found"),
    ValidationException: ErrorMapping(
        status.HTTP_422_UNPROCESSABLE_CONTENT, "Validation error"
    ),
    PermissionDeniedException: ErrorMapping(
        status.HTTP_403_FORBIDDEN, "Permission denied"
    ),
    # Auth failures are security-relevant
    AuthenticationException: ErrorMapping(
        status.HTTP_401_UNAUTHORIZED, "Authentication failed", capture=True
    ),
    BusinessRuleException: ErrorMapping(
        status.HTTP_400_BAD_REQUEST, "Business rule violation"
    ),
    ConflictException: ErrorMapping(status.HTTP_409_CONFLICT, "Conflict"),
    TransientException: ErrorMapping(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "Transient failure",
        capture=True,
        log_level="ERROR",
    ),
    DomainException: ErrorMapping(
        status.HTTP_400_BAD_REQUEST, "Domain exception", capture=True
    ),
}


def _response_headers(exc: DomainException) -> dict[str, str] | None:
    if isinstance(exc, AuthenticationException):
        return {"WWW-Authenticate": "Bearer"}
    if isinstance(exc, TransientException):
        return {"Retry-After": str(settings.TRANSIENT_RETRY_AFTER_SECONDS)}
    return None


def _domain_handler(mapping: ErrorMapping):
    async def handler(request: Request, exc: DomainException) -> JSONResponse:
        sentry_sdk.set_tag("correlation_id", exc.correlation_id)
        sentry_sdk.set_tag("exception_type", exc.__class__.__name__)
        if mapping.capture:
            sentry_sdk.capture_exception(exc)

        # Positional args keep ids quoted in the message out of the formatter
        logger.bind(
            correlation_id=exc.correlation_id,
            exception_type=exc.__class__.__name__,
            path=str(request.url.path),
        ).log(mapping.log_level, "{}: {}", mapping.log_label, exc.message)

        return JSONResponse(
            status_code=mapping.status_code,
            content={"detail": exc.message, "correlation_id": exc.correlation_id},
            headers=_response_headers(exc),
        )

    return handler


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Answer malformed bodies and query parameters with 422."""
    correlation_id = get_correlation_id() or generate_correlation_id()

    logger.warning(
        f"Request validation failed: {len(exc.errors())} error(s)",
        correlation_id=correlation_id,
        path=str(request.url.path),
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
        content={
            "detail": jsonable_encoder(exc.errors()),
            "correlation_id": correlation_id,
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Generic 500 with full Sentry capture."""
    correlation_id = get_correlation_id() or generate_correlation_id()

    sentry_sdk.set_tag("correlation_id", correlation_id)
    sentry_sdk.capture_exception(exc)

    logger.bind(
        correlation_id=correlation_id,
        path=str(request.url.path),
        method=request.method,
    ).exception("Unhandled exception: {!r}", exc)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error", "correlation_id": correlation_id},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the domain, request-validation and fallback handlers."""
    app.add_exception_handler(Exception, unhandled_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)  # type: ignore[arg-type]
    for exc_class, mapping in ERROR_MAPPINGS.items():
        app.add_exception_handler(exc_class, _domain_handler(mapping))  # type: ignore[arg-type]
