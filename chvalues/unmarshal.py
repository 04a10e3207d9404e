"""Decoding of little-endian scalar values from raw column bytes."""

from __future__ import annotations

import enum
import struct


class ScalarKind(enum.Enum):
    """Fixed-width scalar types that can be read straight from column data."""

    U8 = ("u8", 1, "unsigned")
    U16 = ("u16", 2, "unsigned")
    U32 = ("u32", 4, "unsigned")
    U64 = ("u64", 8, "unsigned")
    U128 = ("u128", 16, "unsigned")
    I8 = ("i8", 1, "signed")
    I16 = ("i16", 2, "signed")
    I32 = ("i32", 4, "signed")
    I64 = ("i64", 8, "signed")
    I128 = ("i128", 16, "signed")
    F32 = ("f32", 4, "float")
    F64 = ("f64", 8, "float")
    BOOL = ("bool", 1, "bool")

    def __init__(self, label: str, size: int, family: str) -> None:
        self.label = label
        self.size = size
        self.family = family


_FLOAT_FORMATS = {4: "<f", 8: "<d"}


def size_of(kind: ScalarKind) -> int:
    """Return the number of bytes a value of ``kind`` occupies."""
    return kind.size


def unmarshal(kind: ScalarKind, scratch: bytes | bytearray | memoryview) -> int | float | bool:
    """Decode one little-endian value of ``kind`` from ``scratch``.

    Booleans only look at the first byte; every other kind needs exactly
    ``size_of(kind)`` bytes.
    """
    data = bytes(scratch)
    if kind is ScalarKind.BOOL:
        if not data:
            raise ValueError("bool needs at least 1 byte, got 0")
        return data[0] != 0
    if len(data) != kind.size:
        raise ValueError(f"{kind.label} needs {kind.size} bytes, got {len(data)}")
    if kind.family == "float":
        (result,) = struct.unpack(_FLOAT_FORMATS[kind.size], data)
        return result
    return int.from_bytes(data, "little", signed=kind.family == "signed")