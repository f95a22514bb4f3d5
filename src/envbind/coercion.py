"""
envbind - string to value coercion

File: src/envbind/coercion.py

Purpose
- Convert one raw environment string into a field's declared type.

What should be included in this file
- Setter capability probing (field value first, then the declared type).
- One explicit coercion rule per supported type, with an "unsupported kind"
  fallthrough.
- Duration literal grammar and the quoted JSON map literal parser.

Functional requirements
- Helpers raise ``ValueError`` for bad input and ``TypeError`` for unsupported
  declared types; the resolver wraps both into ``FieldCoercionError``.
"""

from __future__ import annotations

import json
import math
import re
import struct
from collections.abc import Callable, Mapping, MutableMapping
from datetime import timedelta
from typing import Any, Final, get_args, get_origin

from envbind.constants import (
    BOOLEAN_FALSE,
    BOOLEAN_TRUE,
    DEFAULT_INT_BITS,
    NANOSECONDS_PER_UNIT,
    SUPPORTED_INT_BITS,
)
from envbind.types import Duration, Setter, bit_width, split_annotation

_Coercer = Callable[[str, object, tuple[object, ...]], object]

_DURATION_COMPONENT: Final[re.Pattern[str]] = re.compile(r"(\d*)(?:\.(\d*))?([^\d.]+)")
_MAX_DURATION_NS: Final[int] = (1 << 63) - 1
# A bare leading zero selects base 8, e.g. ``010`` == 8.
_LEGACY_OCTAL: Final[re.Pattern[str]] = re.compile(r"[+-]?0_?\d[\d_]*")
_MAPPING_ORIGINS: Final[tuple[object, ...]] = (dict, Mapping, MutableMapping)
_JSON_TYPE_NAMES: Final[dict[type, str]] = {
    str: "string",
    bool: "boolean",
    int: "number",
    float: "number",
    list: "array",
    dict: "object",
}


def coerce_value(raw: str, annotation: object, current: object = None) -> object:
    """Return ``raw`` converted to ``annotation``.

    ``current`` is the field's present value; when it (or the declared type)
    implements :class:`~envbind.types.Setter`, parsing is delegated to it.
    """

    bare, extras = split_annotation(annotation)

    setter = _find_setter(current, bare)
    if setter is not None:
        setter.set(raw)
        return setter

    coercer = _lookup_coercer(bare)
    if coercer is None:
        raise TypeError(f"unsupported field kind {describe_type(annotation)}")
    return coercer(raw, bare, extras)


def describe_type(annotation: object) -> str:
    bare, extras = split_annotation(annotation)
    if isinstance(bare, type) and not get_args(bare):
        name = bare.__name__
        if bare in (int, float):
            default_bits = DEFAULT_INT_BITS if bare is int else 64
            bits = bit_width(extras, default_bits)
            if bits != default_bits:
                name = f"{name}{bits}"
        return name
    return repr(bare).replace("typing.", "")


def parse_bool(raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in BOOLEAN_TRUE:
        return True
    if lowered in BOOLEAN_FALSE:
        return False
    raise ValueError(f"invalid boolean {raw!r} (expected true/false/1/0/yes/no/on/off)")


def parse_int(raw: str, bits: int = DEFAULT_INT_BITS) -> int:
    if bits not in SUPPORTED_INT_BITS:
        raise TypeError(f"unsupported integer width {bits}")
    try:
        text = raw.strip()
        value = int(text, 8) if _LEGACY_OCTAL.fullmatch(text) else int(text, 0)
    except ValueError as exc:
        raise ValueError(f"invalid syntax for integer {raw!r}") from exc

    low = -(1 << (bits - 1))
    high = (1 << (bits - 1)) - 1
    if not low <= value <= high:
        raise ValueError(f"value {raw!r} out of range for {bits}-bit integer")
    return value


def parse_float(raw: str, bits: int = 64) -> float:
    if bits not in (32, 64):
        raise TypeError(f"unsupported float width {bits}")
    text = raw.strip()
    try:
        value = float(text)
    except ValueError:
        value = _parse_hex_float(text, raw)

    if bits == 64 or not math.isfinite(value):
        return value
    try:
        packed = struct.pack("f", value)
    except OverflowError as exc:
        raise ValueError(f"value {raw!r} out of range for 32-bit float") from exc
    return float(struct.unpack("f", packed)[0])


def parse_duration(raw: str) -> int:
    """Parse a duration literal such as ``300ms``, ``-1.5h`` or ``2h45m`` into nanoseconds."""

    text = raw.strip()
    remaining = text
    negative = False
    if remaining[:1] in ("-", "+"):
        negative = remaining[0] == "-"
        remaining = remaining[1:]

    if remaining == "0":
        return 0
    if not remaining:
        raise ValueError(f"invalid duration {raw!r}")

    total = 0
    while remaining:
        match = _DURATION_COMPONENT.match(remaining)
        if match is None:
            raise ValueError(f"invalid duration {raw!r}")
        whole, fraction, unit = match.group(1), match.group(2) or "", match.group(3)
        if not whole and not fraction:
            raise ValueError(f"invalid duration {raw!r}")
        scale = NANOSECONDS_PER_UNIT.get(unit)
        if scale is None:
            raise ValueError(f"unknown unit {unit!r} in duration {raw!r}")

        total += int(whole or "0") * scale
        if fraction:
            total += int(fraction) * scale // (10 ** len(fraction))
        if total > _MAX_DURATION_NS + (1 if negative else 0):
            raise ValueError(f"invalid duration {raw!r}: out of range")
        remaining = remaining[match.end() :]

    return -total if negative else total


def parse_map(raw: str, annotation: object) -> dict[str, object]:
    """Parse a JSON object literal, optionally wrapped in one layer of quotes."""

    key_type, value_type = _mapping_args(annotation)
    if key_type is not str:
        raise TypeError("map keys must be strings")

    text = _strip_outer_quotes(raw.strip())
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"invalid JSON object: {exc.msg} (char {exc.pos})") from exc

    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValueError(f"expected a JSON object, got {_json_type_name(payload)}")
    return {key: _convert_json(item, value_type, key) for key, item in payload.items()}


def _find_setter(current: object, declared: object) -> Setter | None:
    if current is not None and isinstance(current, Setter) and not isinstance(current, type):
        return current
    if get_origin(declared) is not None:
        return None
    if isinstance(declared, type) and callable(getattr(declared, "set", None)):
        instance = declared()
        if isinstance(instance, Setter):
            return instance
    return None


def _lookup_coercer(bare: object) -> _Coercer | None:
    if get_origin(bare) is not None:
        return _coerce_map if get_origin(bare) in _MAPPING_ORIGINS else None
    if bare is str:
        return _coerce_str
    if bare is bool:
        return _coerce_bool
    if isinstance(bare, type) and issubclass(bare, Duration):
        return _coerce_duration
    if bare is timedelta:
        return _coerce_timedelta
    if bare is int:
        return _coerce_int
    if bare is float:
        return _coerce_float
    if bare in _MAPPING_ORIGINS:
        return _coerce_map
    return None


def _coerce_str(raw: str, _bare: object, _extras: tuple[object, ...]) -> object:
    return raw


def _coerce_bool(raw: str, _bare: object, _extras: tuple[object, ...]) -> object:
    return parse_bool(raw)


def _coerce_int(raw: str, _bare: object, extras: tuple[object, ...]) -> object:
    return parse_int(raw, bit_width(extras, DEFAULT_INT_BITS))


def _coerce_float(raw: str, _bare: object, extras: tuple[object, ...]) -> object:
    return parse_float(raw, bit_width(extras, 64))


def _coerce_duration(raw: str, bare: object, _extras: tuple[object, ...]) -> object:
    duration_type = bare if isinstance(bare, type) else Duration
    return duration_type(parse_duration(raw))


def _coerce_timedelta(raw: str, _bare: object, _extras: tuple[object, ...]) -> object:
    return timedelta(microseconds=parse_duration(raw) / 1_000)


def _coerce_map(raw: str, bare: object, _extras: tuple[object, ...]) -> object:
    return parse_map(raw, bare)


def _mapping_args(annotation: object) -> tuple[object, object]:
    args = get_args(annotation)
    if len(args) == 2:
        return args[0], args[1]
    return str, Any


def _strip_outer_quotes(text: str) -> str:
    if len(text) < 2:
        return text
    if text[0] == '"' and text[-1] == '"':
        try:
            unquoted = json.loads(text)
        except json.JSONDecodeError:
            return text[1:-1]
        return unquoted if isinstance(unquoted, str) else text[1:-1]
    if text[0] == "'" and text[-1] == "'":
        return text[1:-1]
    return text


def _convert_json(value: object, expected: object, where: str) -> object:
    bare, _ = split_annotation(expected)
    if bare is Any or bare is object:
        return value
    if bare is str:
        if isinstance(value, str):
            return value
    elif bare is bool:
        if isinstance(value, bool):
            return value
    elif bare is int:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    elif bare is float:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
    elif bare is dict or get_origin(bare) in _MAPPING_ORIGINS:
        key_type, value_type = _mapping_args(bare)
        if key_type is not str:
            raise TypeError("map keys must be strings")
        if isinstance(value, dict):
            return {
                key: _convert_json(item, value_type, f"{where}.{key}") for key, item in value.items()
            }
    elif bare is list or get_origin(bare) is list:
        args = get_args(bare)
        item_type = args[0] if args else Any
        if isinstance(value, list):
            return [
                _convert_json(item, item_type, f"{where}[{index}]")
                for index, item in enumerate(value)
            ]
    else:
        raise TypeError(f"unsupported map value type {describe_type(expected)}")

    raise ValueError(
        f"cannot use JSON {_json_type_name(value)} at {where!r} as {describe_type(expected)}"
    )


def _parse_hex_float(text: str, raw: str) -> float:
    if not text.lower().lstrip("+-").startswith("0x"):
        raise ValueError(f"invalid syntax for float {raw!r}")
    try:
        return float.fromhex(text)
    except (ValueError, OverflowError) as exc:
        raise ValueError(f"invalid syntax for float {raw!r}") from exc


def _json_type_name(value: object) -> str:
    if value is None:
        return "null"
    return _JSON_TYPE_NAMES.get(type(value), type(value).__name__)


__all__ = [
    "coerce_value",
    "describe_type",
    "parse_bool",
    "parse_duration",
    "parse_float",
    "parse_int",
    "parse_map",
]
