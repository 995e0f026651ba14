"""Error Handlers — global exception handlers for the PipelinePulse API.

Invariants:
    - PipelinePulseError → its own http_status with the to_response() envelope
    - RequestValidationError → 400 with one details entry per offending field
    - Exception (catch-all) → 500, never leaks internal details
    - DatabaseError responses carry Retry-After so dashboards back off

Design Decisions:
    - Client errors (4xx) log at WARNING, server errors at ERROR: a bad stage
      in a URL is not an outage
    - Envelopes built by _envelope() so every handler emits the same keys
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.errors import (
    DatabaseError, ErrorCategory, ErrorSeverity, PipelinePulseError,
)

logger = logging.getLogger(__name__)

DATABASE_RETRY_AFTER_SECONDS = 5


def register_error_handlers(app: FastAPI) -> None:
    """Install domain, validation and catch-all handlers on the app."""
    app.add_exception_handler(PipelinePulseError, handle_domain_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)


def _envelope(
    code: str,
    message: str,
    category: ErrorCategory,
    severity: ErrorSeverity,
    details: list[dict] | None = None,
) -> dict:
    error = {
        "code": code,
        "message": message,
        "category": category.value,
        "severity": severity.value,
    }
    if details is not None:
        error["details"] = details
    return {"error": error}


async def handle_domain_error(request: Request, exc: PipelinePulseError):
    log = logger.warning if exc.http_status < 500 else logger.error
    log(
        f"{exc.code}: {exc.message}",
        extra={
            "error_code": exc.code,
            "path": request.url.path,
            "deal_id": exc.context.deal_id,
        },
    )
    headers = None
    if isinstance(exc, DatabaseError):
        headers = {"Retry-After": str(DATABASE_RETRY_AFTER_SECONDS)}
    return JSONResponse(
        status_code=exc.http_status, content=exc.to_response(), headers=headers,
    )


async def handle_validation_error(request: Request, exc: RequestValidationError):
    details = [
        {
            "field": ".".join(str(loc) for loc in err["loc"]),
            "message": err["msg"],
            "type": err["type"],
        }
        for err in exc.errors()
    ]
    logger.warning(
        f"Rejected payload on {request.url.path}: "
        f"{', '.join(d['field'] for d in details)}",
        extra={"error_code": "VALIDATION_ERROR", "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_envelope(
            "VALIDATION_ERROR", "Invalid request data",
            ErrorCategory.VALIDATION, ErrorSeverity.ERROR, details,
        ),
    )


async def handle_unexpected_error(request: Request, exc: Exception):
    logger.error(
        f"Unhandled {type(exc).__name__} on {request.url.path}",
        exc_info=exc,
        extra={"error_code": "INTERNAL_ERROR", "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_envelope(
            "INTERNAL_ERROR", "An unexpected error occurred",
            ErrorCategory.INTERNAL, ErrorSeverity.CRITICAL,
        ),
    )
