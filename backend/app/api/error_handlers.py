"""Error Handlers — global exception handlers for the Scoped Unique API.

Invariants:
    - ScopedUniqueError -> structured JSON with error code, message, severity
    - PayloadValidationError and RequestValidationError share one envelope:
      details = [{field, message, type}]
    - Exception (catch-all) -> never leaks internal details

Design Decisions:
    - Three-layer handler: domain (ScopedUniqueError), validation (Pydantic), catch-all (Exception)
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from app.core.errors import ScopedUniqueError, ErrorSeverity, PayloadValidationError

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_domain_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def _register_domain_error_handler(app: FastAPI) -> None:
    """Register Scoped Unique domain/infrastructure error handler."""

    @app.exception_handler(ScopedUniqueError)
    async def domain_error_handler(request: Request, exc: ScopedUniqueError):
        """Handle all Scoped Unique domain/infrastructure errors."""
        if isinstance(exc, PayloadValidationError):
            logger.warning(
                f"Uniqueness validation failed on {request.url.path}: "
                f"{[f.field for f in exc.failures]}",
                extra={"error_code": exc.code, "path": request.url.path},
            )
        else:
            logger.error(
                f"ScopedUniqueError: {exc.message}",
                extra={
                    "error_code": exc.code,
                    "path": request.url.path,
                    "entity": exc.context.entity,
                },
            )
        return JSONResponse(
            status_code=exc.http_status, content=exc.to_response(),
        )


def _register_validation_error_handler(app: FastAPI) -> None:
    """Register Pydantic validation error handler."""

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        """Handle Pydantic validation errors."""
        logger.warning(
            f"Validation error on {request.url.path}: {exc.errors()}",
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_build_validation_error_response(exc),
        )


def _register_generic_error_handler(app: FastAPI) -> None:
    """Register catch-all error handler."""

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all — never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": "An unexpected error occurred",
                    "category": "internal",
                    "severity": ErrorSeverity.CRITICAL.value,
                },
            },
        )


def _build_validation_error_response(exc: RequestValidationError) -> dict:
    """Build structured validation error response."""
    return {
        "error": {
            "code": "VALIDATION_ERROR",
            "message": "Invalid request data",
            "category": "validation",
            "severity": ErrorSeverity.ERROR.value,
            "details": [
                {
                    "field": ".".join(str(loc) for loc in e["loc"]),
                    "message": e["msg"],
                    "type": e["type"],
                }
                for e in exc.errors()
            ],
        },
    }
