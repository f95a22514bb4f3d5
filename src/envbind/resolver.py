"""
envbind - value resolver and parse entrypoints

File: src/envbind/resolver.py

Purpose
- Resolve each field descriptor against the environment and write the typed
  value back into the record.

What should be included in this file
- Lookup precedence: prefixed key, then bare override key, then default literal.
- Required-field enforcement (a default always satisfies ``required``).
- ``parse``/``must_parse`` public entrypoints.

Functional requirements
- Descriptors are resolved once each, in extraction order.
- The first failure aborts the call; fields resolved earlier keep their values.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from envbind.coercion import coerce_value, describe_type
from envbind.constants import SOURCE_DEFAULT, SOURCE_ENV, SOURCE_FALLBACK, SOURCE_UNSET
from envbind.environment import Lookup, environ_lookup
from envbind.errors import EnvBindError, FieldCoercionError, RequiredFieldMissingError
from envbind.fields import FieldDescriptor, extract_fields
from envbind.security.redaction import redact_text, redact_value

logger = logging.getLogger(__name__)


def parse(prefix: str, target: object, *, lookup: Lookup | None = None) -> None:
    """Bind environment values into the dataclass instance ``target``.

    Keys are ``PREFIX_FIELD`` (upper-cased), nested dataclasses extend the
    prefix with their field name. ``lookup`` defaults to ``os.environ``.

    Raises:
        InvalidConfigKindError: ``target`` is not a mutable dataclass instance.
        RequiredFieldMissingError: a required field has no value and no default.
        FieldCoercionError: a value cannot be converted to its field's type.
    """

    descriptors = extract_fields(prefix, target)
    resolve(descriptors, lookup if lookup is not None else environ_lookup)


def must_parse(prefix: str, target: object, *, lookup: Lookup | None = None) -> None:
    """Like :func:`parse`, but abort the process with ``SystemExit`` on failure."""

    try:
        parse(prefix, target, lookup=lookup)
    except EnvBindError as exc:
        message = redact_text(str(exc))
        logger.critical("configuration binding failed: %s", message)
        raise SystemExit(message) from exc


def resolve(descriptors: Iterable[FieldDescriptor], lookup: Lookup) -> None:
    for descriptor in descriptors:
        resolve_field(descriptor, lookup)


def resolve_field(descriptor: FieldDescriptor, lookup: Lookup) -> None:
    raw, source = _lookup_raw(descriptor, lookup)

    if raw is None:
        if descriptor.required:
            raise RequiredFieldMissingError(descriptor.effective_key, descriptor.path)
        _log_resolution(descriptor, source, None)
        return

    try:
        value = coerce_value(raw, descriptor.value_type, descriptor.current())
    except (ValueError, TypeError) as exc:
        raise FieldCoercionError(
            key=_source_key(descriptor, source),
            name=descriptor.path,
            type_name=describe_type(descriptor.value_type),
            value=raw,
            cause=exc,
        ) from exc

    descriptor.assign(value)
    _log_resolution(descriptor, source, raw)


def _lookup_raw(descriptor: FieldDescriptor, lookup: Lookup) -> tuple[str | None, str]:
    # Empty strings count as unset, matching how shells export blank variables.
    value = lookup(descriptor.key)
    if value:
        return value, SOURCE_ENV

    fallback = descriptor.fallback_key
    if fallback is not None:
        value = lookup(fallback)
        if value:
            return value, SOURCE_FALLBACK

    if descriptor.default:
        return descriptor.default, SOURCE_DEFAULT
    return None, SOURCE_UNSET


def _source_key(descriptor: FieldDescriptor, source: str) -> str:
    if source == SOURCE_FALLBACK and descriptor.fallback_key is not None:
        return descriptor.fallback_key
    return descriptor.key


def _log_resolution(descriptor: FieldDescriptor, source: str, raw: str | None) -> None:
    if not logger.isEnabledFor(logging.DEBUG):
        return
    key = _source_key(descriptor, source)
    logger.debug(
        "field %s resolved from %s",
        descriptor.path,
        source,
        extra={
            "field": descriptor.path,
            "key": key,
            "source": source,
            "value": None if raw is None else redact_value(key, raw),
        },
    )


__all__ = [
    "must_parse",
    "parse",
    "resolve",
    "resolve_field",
]
