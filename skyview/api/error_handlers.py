"""Error Handlers — map failures onto the SkyView error envelope.

Invariants:
    - Every error response, including validation and unexpected failures, has the
      SkyViewError.to_response() shape: {"error": {code, message, category, ...}}
    - A retry_after_ms hint on the error context becomes a Retry-After header
      (whole seconds, rounded up)
    - Unexpected exceptions never leak internal details

Design Decisions:
    - Schema and unexpected failures are SkyViewError subclasses too, so the
      envelope is defined once
    - Schema errors (VALIDATION_ERROR) keep a code distinct from viewer-state rule
      violations (INVALID_VIEWER_STATE); both are 400
"""

import logging
import math

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from skyview.core.errors import ErrorCategory, ErrorSeverity, SkyViewError

logger = logging.getLogger(__name__)


class RequestSchemaError(SkyViewError):
    """Request body or query parameters did not match the route's schema."""
    def __init__(self, details: list[dict]):
        super().__init__(
            "Invalid request data", "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, http_status=status.HTTP_400_BAD_REQUEST,
        )
        self.details = details

    def to_response(self) -> dict:
        body = super().to_response()
        body["error"]["details"] = self.details
        return body


class UnexpectedError(SkyViewError):
    def __init__(self):
        super().__init__(
            "An unexpected error occurred", "INTERNAL_ERROR", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, http_status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SkyViewError, skyview_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)


def error_response(exc: SkyViewError) -> JSONResponse:
    headers = None
    if exc.context.retry_after_ms is not None:
        headers = {"Retry-After": str(math.ceil(exc.context.retry_after_ms / 1000))}
    return JSONResponse(
        status_code=exc.http_status, content=exc.to_response(), headers=headers,
    )


async def skyview_error_handler(request: Request, exc: SkyViewError):
    log = logger.error if exc.http_status >= 500 else logger.warning
    log(
        f"{exc.code} on {request.url.path}: {exc.message}",
        extra={
            "error_code": exc.code,
            "short_id": exc.context.short_id,
            "survey": exc.context.survey,
        },
    )
    return error_response(exc)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    details = [
        {
            "field": ".".join(str(loc) for loc in e["loc"]),
            "message": e["msg"],
            "type": e["type"],
        }
        for e in exc.errors()
    ]
    logger.warning(
        f"Validation error on {request.url.path}: {details}",
        extra={"error_code": "VALIDATION_ERROR"},
    )
    return error_response(RequestSchemaError(details))


async def unexpected_error_handler(request: Request, exc: Exception):
    """Catch-all — never leaks internal details."""
    logger.error(
        f"Unhandled exception on {request.url.path}: {exc}",
        exc_info=True,
        extra={"error_code": "INTERNAL_ERROR"},
    )
    return error_response(UnexpectedError())
