"""
Error handling for the interview API.

Every error leaves the service in one envelope:

    {"error": {"code", "message", "path", "method", "details"?}}

Domain errors (``core.exceptions.InterviewError``) carry their own code and
status. Storage errors are reported as a retryable ``DATABASE_ERROR``.
Access tokens and secrets are redacted from anything echoed back or logged.
"""

import logging
import re
import traceback
from typing import Any, Callable

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError, OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.exceptions import InterviewError, DatabaseError

logger = logging.getLogger(__name__)

# Patterns for sensitive data that should never be logged
SENSITIVE_PATTERNS = [
    re.compile(r'token["\s:=]+[^"\s,}&]+', re.IGNORECASE),
    re.compile(r'secret["\s:=]+[^"\s,}&]+', re.IGNORECASE),
    re.compile(r'api[_-]?key["\s:=]+[^"\s,}&]+', re.IGNORECASE),
    re.compile(r'password["\s:=]+[^"\s,}&]+', re.IGNORECASE),
    re.compile(r'authorization["\s:]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'bearer\s+[A-Za-z0-9\-_\.]+', re.IGNORECASE),
]

# Public interview routes may carry the access token as the path segment;
# interview ids are UUIDs and stay readable
_TOKEN_PATH = re.compile(
    r"(/candidate-interviews/|/interviews?/)"
    r"(?![0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}(?:/|$))"
    r"[A-Za-z0-9\-_]{20,}"
)


def sanitize_error_message(message: Any) -> str:
    """Remove tokens and secrets from an error message."""
    sanitized = str(message)
    for pattern in SENSITIVE_PATTERNS:
        sanitized = pattern.sub("[REDACTED]", sanitized)
    return sanitized


def redact_path(path: str) -> str:
    """Mask an access token embedded in a request path."""
    return _TOKEN_PATH.sub(r"\1[REDACTED]", path)


def error_envelope(
    code: str,
    message: str,
    path: str,
    method: str,
    details: Any = None,
) -> dict[str, Any]:
    error: dict[str, Any] = {
        "code": code,
        "message": message,
        "path": redact_path(path),
        "method": method,
    }
    if details:
        error["details"] = details
    return {"error": error}


def format_validation_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    return [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": sanitize_error_message(error["msg"]),
            "type": error["type"],
        }
        for error in exc.errors()
    ]


def interview_error_response(exc: InterviewError, path: str, method: str) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{method} {redact_path(path)} failed: {exc.code} {exc.message}")
    else:
        logger.info(f"{method} {redact_path(path)} rejected: {exc.code}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(exc.code, exc.message, path, method, exc.details),
    )


class ErrorHandlingMiddleware:
    """
    ASGI middleware that turns anything escaping the route handlers into the
    standard error envelope instead of a bare 500.
    """

    def __init__(self, app: Callable, debug: bool = False):
        self.app = app
        self.debug = debug

    async def __call__(self, scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        try:
            await self.app(scope, receive, send)
        except Exception as exc:
            response = self._handle_exception(exc, scope)
            await response(scope, receive, send)

    def _handle_exception(self, exc: Exception, scope: dict) -> JSONResponse:
        path = scope.get("path", "unknown")
        method = scope.get("method", "unknown")

        if isinstance(exc, InterviewError):
            return interview_error_response(exc, path, method)

        details = None
        if isinstance(exc, OperationalError):
            status_code = status.HTTP_503_SERVICE_UNAVAILABLE
            code = DatabaseError.code
            message = "Database service temporarily unavailable"
            logger.error(f"Database operational error: {method} {redact_path(path)}", exc_info=True)
        elif isinstance(exc, SQLAlchemyError):
            status_code = DatabaseError.status_code
            code = DatabaseError.code
            message = DatabaseError.default_message
            logger.error(f"SQLAlchemy error: {method} {redact_path(path)}", exc_info=True)
        else:
            status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
            code = "INTERNAL_SERVER_ERROR"
            message = "An unexpected error occurred"
            logger.error(
                f"Unhandled exception: {method} {redact_path(path)} - "
                f"{type(exc).__name__}: {sanitize_error_message(exc)}",
                exc_info=True,
            )

        if self.debug:
            details = {
                "type": type(exc).__name__,
                "traceback": sanitize_error_message(traceback.format_exc()),
            }
        return JSONResponse(
            status_code=status_code,
            content=error_envelope(code, message, path, method, details),
        )


def setup_error_handlers(app):
    """Register the exception handlers on a FastAPI application."""

    @app.exception_handler(InterviewError)
    async def interview_exception_handler(request: Request, exc: InterviewError):
        return interview_error_response(exc, request.url.path, request.method)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_envelope(
                "HTTP_EXCEPTION",
                sanitize_error_message(exc.detail),
                request.url.path,
                request.method,
            ),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=error_envelope(
                "VALIDATION_ERROR",
                "Request validation failed",
                request.url.path,
                request.method,
                format_validation_errors(exc),
            ),
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_exception_handler(request: Request, exc: SQLAlchemyError):
        logger.error(
            f"SQLAlchemy error: {request.method} {redact_path(request.url.path)}",
            exc_info=True,
        )
        if isinstance(exc, OperationalError):
            status_code = status.HTTP_503_SERVICE_UNAVAILABLE
            message = "Database service temporarily unavailable"
        else:
            status_code = DatabaseError.status_code
            message = DatabaseError.default_message
        return JSONResponse(
            status_code=status_code,
            content=error_envelope(
                DatabaseError.code,
                message,
                request.url.path,
                request.method,
            ),
        )
