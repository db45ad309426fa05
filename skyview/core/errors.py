"""Error Hierarchy — typed, categorized exceptions for all SkyView failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Client-input errors (400-level) are never retried; upstream/infrastructure errors are 500-level
    - to_response() produces the REST envelope
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with SkyViewError base: FastAPI global handler catches all
    - ErrorContext as dataclass: observability fields without coupling to logging
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    RESOURCE_NOT_FOUND = "resource_not_found"
    RESOURCE_EXHAUSTED = "resource_exhausted"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    short_id: str | None = None
    survey: str | None = None
    user_message: str | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_ms: int | None = None


class SkyViewError(Exception):
    """Base exception for all SkyView errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.context.user_message or self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "short_id": self.context.short_id,
                    "survey": self.context.survey,
                    "retry_after_ms": self.context.retry_after_ms,
                },
            }
        }


# ─── Client-Input Errors (400-level) ────────────────────────────

class InvalidStateError(SkyViewError):
    """Viewer state (or cutout coordinates) failed validation."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_VIEWER_STATE", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )
        self.field = field


class MalformedStateError(SkyViewError):
    """Encoded viewer state could not be decoded or failed validation."""
    def __init__(self, reason: str, context: ErrorContext | None = None):
        super().__init__(
            f"Encoded viewer state is invalid: {reason}",
            "MALFORMED_STATE", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )
        self.reason = reason


class InvalidSnapshotError(SkyViewError):
    """Snapshot payload rejected (wrong media type, empty, or too large)."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_SNAPSHOT", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )


class ResourceNotFoundError(SkyViewError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )


# ─── Upstream / Infrastructure Errors (500-level) ───────────────

class ResourceExhaustedError(SkyViewError):
    """Bounded retry loop ran out of attempts (e.g. short-ID collisions)."""
    def __init__(self, resource: str, attempts: int, context: ErrorContext | None = None):
        super().__init__(
            f"Could not allocate a unique {resource} after {attempts} attempts",
            "RESOURCE_EXHAUSTED", ErrorCategory.RESOURCE_EXHAUSTED,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.attempts = attempts


class UpstreamUnavailableError(SkyViewError):
    """Every resolution tier and provider failed for a cutout request."""
    def __init__(
        self,
        last_error: str,
        attempts: int,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.user_message = ctx.user_message or (
            "Science cutout provider is temporarily unavailable. "
            "Try again or use a wider field."
        )
        super().__init__(
            f"Cutout providers unavailable after {attempts} attempts ({last_error})",
            "UPSTREAM_UNAVAILABLE", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, ctx, 503,
        )
        self.last_error = last_error
        self.attempts = attempts


class DatabaseError(SkyViewError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class ShortIdConflictError(DatabaseError):
    """Insert lost a race for a short ID that was free at lookup time.

    Raised by the session manager when the unique short-ID index rejects a row;
    ShortIdGenerator.claim() catches it and draws again.
    """
    def __init__(self, context: ErrorContext | None = None):
        SkyViewError.__init__(
            self, "Short ID already taken by a concurrent insert",
            "SHORT_ID_CONFLICT", ErrorCategory.DATABASE,
            ErrorSeverity.WARNING, context, 409,
        )
        self.operation = "insert"
