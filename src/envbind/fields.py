"""
envbind - field extractor

File: src/envbind/fields.py

Purpose
- Walk a dataclass record and flatten it into an ordered list of field descriptors.

What should be included in this file
- Record validation (mutable dataclass instance only).
- Lookup key derivation: prefix, ``env`` override, upper-casing.
- Annotation reading from field metadata, including the compact ``config`` form.

Functional requirements
- Descriptor order is declaration order; nested records are spliced in place,
  depth-first, before the next sibling field.
- Private fields (leading underscore) are skipped silently.

Non-functional requirements
- No environment access here; extraction is pure apart from materializing
  missing nested records.
"""

from __future__ import annotations

import dataclasses
import logging
import typing
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Final

from envbind.constants import (
    KEY_SEPARATOR,
    KNOWN_TAGS,
    REQUIRED_TRUE,
    TAG_COMPACT,
    TAG_DEFAULT,
    TAG_ENV,
    TAG_REQUIRED,
)
from envbind.errors import InvalidConfigKindError
from envbind.types import split_annotation

logger = logging.getLogger(__name__)

_PATH_SEPARATOR: Final[str] = "."


@dataclass(frozen=True, slots=True)
class FieldDescriptor:
    """One leaf field of a record, ready for resolution."""

    name: str
    path: str
    key: str
    env_key: str
    required: bool
    default: str
    value_type: object
    owner: object = field(repr=False, compare=False)
    metadata: Mapping[str, object] = field(default_factory=dict, repr=False, compare=False)

    @property
    def fallback_key(self) -> str | None:
        """Prefix-free key consulted when ``key`` is absent, if an override exists."""
        return self.env_key or None

    @property
    def effective_key(self) -> str:
        return self.env_key or self.key

    def current(self) -> object:
        return getattr(self.owner, self.name)

    def assign(self, value: object) -> None:
        setattr(self.owner, self.name, value)


def tag(
    *,
    env: str | None = None,
    default: str | None = None,
    required: bool = False,
) -> dict[str, str]:
    """Build field metadata for ``dataclasses.field(metadata=...)``."""

    metadata: dict[str, str] = {}
    if env:
        metadata[TAG_ENV] = env
    if default is not None and default != "":
        metadata[TAG_DEFAULT] = default
    if required:
        metadata[TAG_REQUIRED] = "true"
    return metadata


def extract_fields(prefix: str, record: object) -> list[FieldDescriptor]:
    """Return descriptors for every leaf field of ``record`` in declaration order."""

    pending: list[tuple[object, str, object]] = []
    descriptors = _extract(prefix, record, path="", pending=pending)
    # Built nested records are attached only once the whole walk succeeded.
    for owner, name, created in pending:
        setattr(owner, name, created)
    logger.debug(
        "extracted %d field(s) for prefix %r",
        len(descriptors),
        prefix,
        extra={"prefix": prefix, "field_count": len(descriptors)},
    )
    return descriptors


def nested_prefix(prefix: str, name: str) -> str:
    return f"{prefix}{KEY_SEPARATOR}{name}"


def lookup_key(prefix: str, base: str) -> str:
    if prefix:
        return f"{prefix}{KEY_SEPARATOR}{base}".upper()
    return base.upper()


def read_tags(metadata: Mapping[str, object]) -> dict[str, str]:
    """Merge the compact ``config`` tag with individual tags; individual tags win."""

    tags: dict[str, str] = {}
    compact = metadata.get(TAG_COMPACT)
    if isinstance(compact, str):
        tags.update(_parse_compact_tag(compact))

    for name in KNOWN_TAGS:
        if name not in metadata:
            continue
        value = metadata[name]
        if isinstance(value, bool):
            tags[name] = "true" if value else "false"
        elif value is not None:
            tags[name] = str(value)
    return tags


def _extract(
    prefix: str,
    record: object,
    *,
    path: str,
    pending: list[tuple[object, str, object]],
) -> list[FieldDescriptor]:
    _assert_writable_record(record)
    hints = _resolve_type_hints(type(record))

    descriptors: list[FieldDescriptor] = []
    for item in dataclasses.fields(record):  # type: ignore[arg-type]
        name = item.name
        if name.startswith("_"):
            continue

        annotation = hints.get(name, item.type)
        field_path = f"{path}{_PATH_SEPARATOR}{name}" if path else name

        bare, _ = split_annotation(annotation)
        if _is_record_type(bare):
            nested = _materialize_nested(record, name, bare, pending)
            descriptors.extend(
                _extract(nested_prefix(prefix, name), nested, path=field_path, pending=pending)
            )
            continue

        descriptors.append(_describe(prefix, record, item, annotation, field_path))
    return descriptors


def _describe(
    prefix: str,
    record: object,
    item: dataclasses.Field[Any],
    annotation: object,
    field_path: str,
) -> FieldDescriptor:
    tags = read_tags(item.metadata)
    env_key = tags.get(TAG_ENV, "").strip().upper()
    base = env_key or item.name

    return FieldDescriptor(
        name=item.name,
        path=field_path,
        key=lookup_key(prefix, base),
        env_key=env_key,
        required=_is_true(tags.get(TAG_REQUIRED, "")),
        default=tags.get(TAG_DEFAULT, ""),
        value_type=annotation,
        owner=record,
        metadata=dict(item.metadata),
    )


def _assert_writable_record(record: object) -> None:
    if isinstance(record, type):
        raise InvalidConfigKindError(f"class {record.__name__}", "pass an instance, not the class")
    if not dataclasses.is_dataclass(record):
        raise InvalidConfigKindError(type(record).__name__)
    params = getattr(type(record), "__dataclass_params__", None)
    if params is not None and params.frozen:
        raise InvalidConfigKindError(type(record).__name__, "frozen dataclasses are read-only")


def _resolve_type_hints(record_type: type) -> dict[str, object]:
    try:
        return typing.get_type_hints(record_type, include_extras=True)
    except (NameError, TypeError) as exc:
        raise InvalidConfigKindError(
            record_type.__name__, f"unable to resolve field annotations: {exc}"
        ) from exc


def _is_record_type(candidate: object) -> bool:
    if not isinstance(candidate, type) or not dataclasses.is_dataclass(candidate):
        return False
    # A dataclass that parses itself is a leaf, not a nested record.
    return not callable(getattr(candidate, "set", None))


def _materialize_nested(
    record: object,
    name: str,
    record_type: type,
    pending: list[tuple[object, str, object]],
) -> object:
    current = getattr(record, name, None)
    if isinstance(current, record_type):
        return current
    if current is not None:
        raise InvalidConfigKindError(
            type(current).__name__, f"field {name} must hold a {record_type.__name__} instance"
        )

    try:
        created = record_type()
    except TypeError as exc:
        raise InvalidConfigKindError(
            record_type.__name__, f"field {name} is None and cannot be built without arguments"
        ) from exc
    pending.append((record, name, created))
    return created


def _parse_compact_tag(raw: str) -> dict[str, str]:
    parsed: dict[str, str] = {}
    for chunk in raw.split(","):
        name, sep, value = chunk.partition("=")
        name = name.strip()
        if not sep or name not in KNOWN_TAGS:
            continue
        parsed[name] = value.strip()
    return parsed


def _is_true(value: str) -> bool:
    return value.strip().lower() in REQUIRED_TRUE


__all__ = [
    "FieldDescriptor",
    "extract_fields",
    "lookup_key",
    "nested_prefix",
    "read_tags",
    "tag",
]
