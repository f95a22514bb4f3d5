"""Stable constants shared across the extractor, resolver, and coercion layers."""

from __future__ import annotations

from typing import Final

LOGGER_NAME: Final[str] = "envbind"

# Field metadata keys recognised on dataclass fields.
TAG_ENV: Final[str] = "env"
TAG_DEFAULT: Final[str] = "default"
TAG_REQUIRED: Final[str] = "required"
TAG_COMPACT: Final[str] = "config"
KNOWN_TAGS: Final[tuple[str, ...]] = (TAG_ENV, TAG_DEFAULT, TAG_REQUIRED)

KEY_SEPARATOR: Final[str] = "_"

BOOLEAN_TRUE: Final[frozenset[str]] = frozenset({"1", "true", "t", "yes", "y", "on"})
BOOLEAN_FALSE: Final[frozenset[str]] = frozenset({"0", "false", "f", "no", "n", "off"})

# The ``required`` annotation only switches on for these literals.
REQUIRED_TRUE: Final[frozenset[str]] = frozenset({"1", "true", "t"})

# Plain ``int`` fields are treated as 64-bit signed integers.
DEFAULT_INT_BITS: Final[int] = 64
SUPPORTED_INT_BITS: Final[tuple[int, ...]] = (8, 16, 32, 64)

NANOSECONDS_PER_UNIT: Final[dict[str, int]] = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,  # micro sign
    "μs": 1_000,  # greek mu
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 60 * 60 * 1_000_000_000,
}

REDACTED_VALUE: Final[str] = "***REDACTED***"

# Resolution sources reported in debug logs.
SOURCE_ENV: Final[str] = "env"
SOURCE_FALLBACK: Final[str] = "fallback"
SOURCE_DEFAULT: Final[str] = "default"
SOURCE_UNSET: Final[str] = "unset"

__all__ = [
    "BOOLEAN_FALSE",
    "BOOLEAN_TRUE",
    "DEFAULT_INT_BITS",
    "KEY_SEPARATOR",
    "KNOWN_TAGS",
    "LOGGER_NAME",
    "NANOSECONDS_PER_UNIT",
    "REDACTED_VALUE",
    "REQUIRED_TRUE",
    "SOURCE_DEFAULT",
    "SOURCE_ENV",
    "SOURCE_FALLBACK",
    "SOURCE_UNSET",
    "SUPPORTED_INT_BITS",
    "TAG_COMPACT",
    "TAG_DEFAULT",
    "TAG_ENV",
    "TAG_REQUIRED",
]
