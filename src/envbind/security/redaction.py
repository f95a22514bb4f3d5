"""
envbind - redaction of sensitive environment values

File: src/envbind/security/redaction.py

Purpose
- Keep secrets read from the environment out of log records.

What should be included in this file
- Sensitive key detection on normalized key names (denylist + suffix/prefix rules).
- Value redaction by key and ``key=value`` scrubbing inside free text.

Non-functional requirements
- Deterministic and idempotent; favour redacting over leaking.
"""

from __future__ import annotations

import re
from typing import Final

from envbind.constants import REDACTED_VALUE

DEFAULT_SENSITIVE_KEY_DENYLIST: Final[frozenset[str]] = frozenset(
    {
        "access_token",
        "api_key",
        "apikey",
        "auth_token",
        "authorization",
        "client_secret",
        "credential",
        "credentials",
        "dsn",
        "passphrase",
        "password",
        "passwd",
        "private_key",
        "pwd",
        "refresh_token",
        "secret",
        "secret_key",
        "token",
    }
)

_SENSITIVE_KEY_SUFFIXES: Final[tuple[str, ...]] = (
    "_api_key",
    "_access_token",
    "_auth_token",
    "_client_secret",
    "_credentials",
    "_dsn",
    "_passphrase",
    "_password",
    "_passwd",
    "_private_key",
    "_secret",
    "_token",
)

_SENSITIVE_KEY_PREFIXES: Final[tuple[str, ...]] = (
    "api_key_",
    "password_",
    "private_key_",
    "secret_",
)

_CAMEL_CASE_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_SECRET_ASSIGNMENT = re.compile(
    r"(?i)(\b(?:password|passwd|secret|api[_-]?key|client[_-]?secret|"
    r"access[_-]?token|refresh[_-]?token|token)\b\s*[:=]\s*[\"']?)"
    r"([^\s\"',;]+)"
)


def is_sensitive_key(key: str) -> bool:
    """Return whether values stored under ``key`` must not be logged."""

    normalized = _normalize_key(key)
    if not normalized:
        return False
    if normalized in DEFAULT_SENSITIVE_KEY_DENYLIST:
        return True
    if any(normalized.endswith(suffix) for suffix in _SENSITIVE_KEY_SUFFIXES):
        return True
    return any(normalized.startswith(prefix) for prefix in _SENSITIVE_KEY_PREFIXES)


def redact_value(key: str, value: str) -> str:
    if is_sensitive_key(key):
        return REDACTED_VALUE
    return value


def redact_text(text: str) -> str:
    """Replace the value part of ``secret=value`` style assignments."""
    return _SECRET_ASSIGNMENT.sub(lambda match: f"{match.group(1)}{REDACTED_VALUE}", text)


def _normalize_key(key: str) -> str:
    with_boundaries = _CAMEL_CASE_BOUNDARY.sub(r"\1_\2", key.strip())
    return _NON_ALNUM.sub("_", with_boundaries.lower()).strip("_")


__all__ = [
    "DEFAULT_SENSITIVE_KEY_DENYLIST",
    "is_sensitive_key",
    "redact_text",
    "redact_value",
]
