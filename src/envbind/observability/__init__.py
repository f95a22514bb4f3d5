"""Public observability primitives: opt-in structured logging with redaction."""

from envbind.observability.logging import (
    LoggingConfig,
    LogRedactor,
    StructuredLoggingHandle,
    default_log_redactor,
    setup_logging,
)

__all__ = [
    "LogRedactor",
    "LoggingConfig",
    "StructuredLoggingHandle",
    "default_log_redactor",
    "setup_logging",
]
