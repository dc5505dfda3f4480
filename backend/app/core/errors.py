"""Error Hierarchy — typed, categorized exceptions for all Scoped Unique failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - "Value not unique" is a field failure (PayloadValidationError), never a store error
    - StoreAccessError means "could not determine", never "unique" or "taken"
    - DescriptorConfigError is raised at class-definition / startup time only
    - No internal details leaked in user-facing messages
    - FieldFailure serializes as {field, message} plus a `type` key ("unique"),
      so uniqueness and schema failures share one details list

Design Decisions:
    - Single hierarchy with ScopedUniqueError base: FastAPI global handler catches all
      (ADR: uniform error shape)
    - ErrorContext as dataclass: rich observability without coupling to logging framework
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
    CONFIGURATION = "configuration"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    INTERNAL = "internal"
    CONFLICT = "conflict"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    entity: str | None = None
    field: str | None = None
    user_message: str | None = None
    debug_info: dict[str, Any] | None = None


@dataclass(frozen=True)
class FieldFailure:
    """One field-level validation failure: {field, message}, tagged with its type."""
    field: str
    message: str
    type: str = "unique"

    def to_dict(self) -> dict:
        return {"field": self.field, "message": self.message, "type": self.type}


class ScopedUniqueError(Exception):
    """Base exception for all Scoped Unique errors."""

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
                    "entity": self.context.entity,
                    "field": self.context.field,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class PayloadValidationError(ScopedUniqueError):
    """One or more fields failed uniqueness validation."""
    def __init__(
        self, failures: list[FieldFailure], context: ErrorContext | None = None,
    ):
        super().__init__(
            "Invalid request data", "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.failures = failures

    def to_response(self) -> dict:
        response = super().to_response()
        response["error"]["details"] = [f.to_dict() for f in self.failures]
        return response


class ResourceNotFoundError(ScopedUniqueError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )


class ConcurrencyError(ScopedUniqueError):
    """A write lost the race against a concurrent write of the same unique value."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CONCURRENCY_CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )


# ─── Configuration Errors (boot-time) ───────────────────────────

class DescriptorConfigError(ScopedUniqueError):
    """A uniqueness declaration is malformed or declared twice on one field."""
    def __init__(
        self, message: str, payload_type: str, field_name: str,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.field = field_name
        super().__init__(
            f"{payload_type}.{field_name}: {message}",
            "DESCRIPTOR_CONFIG_ERROR", ErrorCategory.CONFIGURATION,
            ErrorSeverity.CRITICAL, ctx, 500,
        )
        self.payload_type = payload_type
        self.field_name = field_name


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(ScopedUniqueError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class StoreAccessError(DatabaseError):
    """The uniqueness count could not be read — the verdict is unknown."""
    def __init__(
        self, message: str, entity: str, context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.entity = entity
        ctx.user_message = ctx.user_message or "Uniqueness could not be verified"
        super().__init__(message, "count", ctx)
        self.code = "STORE_ACCESS_ERROR"
        self.entity = entity
