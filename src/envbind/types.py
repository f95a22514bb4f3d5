"""Field value types understood by the coercion table beyond the Python builtins."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from types import NoneType, UnionType
from typing import Annotated, Protocol, Union, get_args, get_origin, runtime_checkable


@runtime_checkable
class Setter(Protocol):
    """Capability for field types that parse their own raw string value.

    ``set`` raises ``ValueError`` (or ``TypeError``) to reject the value. When a
    field's value or declared type provides it, built-in coercion is skipped.
    """

    def set(self, value: str) -> None: ...


@dataclass(frozen=True, slots=True)
class BitWidth:
    """``Annotated`` marker narrowing an ``int``/``float`` field to ``bits``."""

    bits: int


class Duration(int):
    """Integer count of nanoseconds, parsed from literals such as ``2s`` or ``1h30m``."""

    __slots__ = ()

    def total_seconds(self) -> float:
        return int(self) / 1_000_000_000

    def to_timedelta(self) -> timedelta:
        return timedelta(microseconds=int(self) // 1_000)

    def __repr__(self) -> str:
        return f"Duration({int(self)})"


Int8 = Annotated[int, BitWidth(8)]
Int16 = Annotated[int, BitWidth(16)]
Int32 = Annotated[int, BitWidth(32)]
Int64 = Annotated[int, BitWidth(64)]
Float32 = Annotated[float, BitWidth(32)]
Float64 = Annotated[float, BitWidth(64)]


def split_annotation(annotation: object) -> tuple[object, tuple[object, ...]]:
    """Strip ``Annotated[...]`` and ``X | None`` wrappers.

    Returns the bare type plus any ``Annotated`` extras collected on the way.
    """

    extras: tuple[object, ...] = ()
    current = annotation
    while True:
        origin = get_origin(current)
        if origin is Annotated:
            base, *metadata = get_args(current)
            extras += tuple(metadata)
            current = base
            continue
        if origin is Union or origin is UnionType:
            members = [arg for arg in get_args(current) if arg is not NoneType]
            if len(members) == 1:
                current = members[0]
                continue
        return current, extras


def bit_width(extras: tuple[object, ...], default: int) -> int:
    for item in extras:
        if isinstance(item, BitWidth):
            return item.bits
    return default


__all__ = [
    "BitWidth",
    "Duration",
    "Float32",
    "Float64",
    "Int16",
    "Int32",
    "Int64",
    "Int8",
    "Setter",
    "bit_width",
    "split_annotation",
]
