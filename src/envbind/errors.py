"""
envbind - error taxonomy

File: src/envbind/errors.py

Purpose
- Typed exceptions raised by ``parse``/``must_parse`` and their building blocks.

Functional requirements
- Every failure aborts the whole parse call; errors are raised, never returned.
- Coercion failures carry the field name, declared type, raw value, and cause.
"""

from __future__ import annotations

from envbind.security.redaction import redact_value


class EnvBindError(Exception):
    """Base class for every error raised while binding environment values."""


class InvalidConfigKindError(EnvBindError, TypeError):
    """Raised when the parse target is not a writable dataclass instance."""

    def __init__(self, received: str, detail: str | None = None) -> None:
        self.received = received
        message = f"envbind: invalid config, must be a mutable dataclass instance (got {received})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class RequiredFieldMissingError(EnvBindError, LookupError):
    """Raised when a required field has neither an environment value nor a default."""

    def __init__(self, key: str, name: str) -> None:
        self.key = key
        self.name = name
        super().__init__(f"envbind: required field {name} missing value (set {key})")


class FieldCoercionError(EnvBindError, ValueError):
    """Raised when a raw string cannot be converted into a field's declared type."""

    def __init__(
        self,
        *,
        key: str,
        name: str,
        type_name: str,
        value: str,
        cause: BaseException,
    ) -> None:
        self.key = key
        self.name = name
        self.type_name = type_name
        self.value = value
        self.cause = cause
        # Parser messages usually echo the raw value, so they are masked together.
        shown_value = redact_value(key, value)
        details = str(cause) if shown_value == value else redact_value(key, str(cause))
        super().__init__(
            f"envbind: error assigning to field {name}: converting {shown_value!r} "
            f"to type {type_name}. details: {details}"
        )


__all__ = [
    "EnvBindError",
    "FieldCoercionError",
    "InvalidConfigKindError",
    "RequiredFieldMissingError",
]
