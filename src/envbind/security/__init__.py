"""Security helpers that keep environment secrets out of logs and error output."""

from envbind.security.redaction import (
    DEFAULT_SENSITIVE_KEY_DENYLIST,
    is_sensitive_key,
    redact_text,
    redact_value,
)

__all__ = [
    "DEFAULT_SENSITIVE_KEY_DENYLIST",
    "is_sensitive_key",
    "redact_text",
    "redact_value",
]
