"""
Core middleware package.

- Error handling with the standard error envelope and token redaction
- Structured request logging with token and candidate-text masking
"""

from core.middleware.error_handling import (
    ErrorHandlingMiddleware,
    setup_error_handlers,
    sanitize_error_message,
    redact_path,
)

from core.middleware.logging import (
    StructuredLoggingMiddleware,
    setup_logging,
    mask_sensitive_data,
)

__all__ = [
    # Error handling
    "ErrorHandlingMiddleware",
    "setup_error_handlers",
    "sanitize_error_message",
    "redact_path",
    # Logging
    "StructuredLoggingMiddleware",
    "setup_logging",
    "mask_sensitive_data",
]
