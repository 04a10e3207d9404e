"""Lightweight column values as they are read back from a block."""

from __future__ import annotations

import uuid as _uuid
from collections.abc import Mapping
from datetime import date, datetime
from email.utils import format_datetime
from typing import Any

from chvalues.sqltype import (
    DEFAULT_TZ,
    Decimal,
    Enum8,
    Enum16,
    SqlType,
    TypeKind,
    days_to_date,
    to_datetime,
)
from chvalues.value import (
    _BYTES_LIKE,
    _FLOAT_KINDS,
    _INT_RANGES,
    ConversionError,
    _format_float,
    _int_kind,
    _require_bytes,
    _round_f32,
    decode_ipv4,
    decode_ipv6,
)

_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"


class FromSqlError(ConversionError):
    """Raised when a value cannot be read as the requested type."""

    def __init__(self, src: str, dst: str) -> None:
        super().__init__(f"Can't convert ValueRef::{src} into {dst}.")
        self.src = src
        self.dst = dst


def _normalize(sql_type: SqlType, data: Any) -> tuple[SqlType, Any]:
    kind = sql_type.kind
    if kind in (TypeKind.LOW_CARDINALITY, TypeKind.SIMPLE_AGGREGATE_FUNCTION):
        return _normalize(sql_type.inner, data)
    if kind is TypeKind.FIXED_STRING:
        sql_type = SqlType.simple(TypeKind.STRING)
        kind = TypeKind.STRING

    if kind is TypeKind.BOOL:
        if not isinstance(data, bool):
            raise TypeError(f"Bool data must be a bool, got {type(data).__name__}")
        return sql_type, data
    if kind in _INT_RANGES:
        if isinstance(data, bool) or not isinstance(data, int):
            raise TypeError(f"{kind.value} data must be an int, got {type(data).__name__}")
        low, high = _INT_RANGES[kind]
        if not low <= data <= high:
            raise ValueError(f"{data} is outside the {kind.value} range [{low}, {high}]")
        return sql_type, data
    if kind in _FLOAT_KINDS:
        if isinstance(data, bool) or not isinstance(data, (int, float)):
            raise TypeError(f"{kind.value} data must be a number, got {type(data).__name__}")
        number = float(data)
        return sql_type, _round_f32(number) if kind is TypeKind.FLOAT32 else number
    if kind is TypeKind.STRING:
        if not isinstance(data, _BYTES_LIKE):
            raise TypeError(f"String data must be bytes, got {type(data).__name__}")
        return sql_type, bytes(data)
    if kind is TypeKind.DATE:
        if isinstance(data, bool) or not isinstance(data, int):
            raise TypeError(f"Date data must be a day count, got {type(data).__name__}")
        days_to_date(data)
        return sql_type, data
    if kind is TypeKind.DATETIME:
        if isinstance(data, datetime):
            if data.tzinfo is None:
                raise ValueError("DateTime data must be an aware datetime")
            return sql_type, data
        if isinstance(data, bool) or not isinstance(data, int):
            raise TypeError(f"DateTime data must be a datetime, got {type(data).__name__}")
        if not 0 <= data <= 2**32 - 1:
            raise ValueError(f"{data} is outside the DateTime range")
        return sql_type, datetime.fromtimestamp(data, DEFAULT_TZ)
    if kind is TypeKind.DATETIME64:
        if isinstance(data, bool) or not isinstance(data, int):
            raise TypeError(f"DateTime64 data must be a tick count, got {type(data).__name__}")
        low, high = _INT_RANGES[TypeKind.INT64]
        if not low <= data <= high:
            raise ValueError(f"{data} is outside the DateTime64 range")
        return sql_type, data
    if kind is TypeKind.IPV4:
        return sql_type, _require_bytes(data, 4, "IPv4")
    if kind is TypeKind.IPV6:
        return sql_type, _require_bytes(data, 16, "IPv6")
    if kind is TypeKind.UUID:
        return sql_type, _require_bytes(data, 16, "UUID")
    if kind is TypeKind.NULLABLE:
        if data is None:
            return sql_type, None
        if isinstance(data, ValueRef):
            return SqlType.nullable(data.sql_type), data
        raise TypeError(f"Nullable data must be None or a ValueRef, got {type(data).__name__}")
    if kind is TypeKind.ARRAY:
        items = tuple(data)
        if not all(isinstance(item, ValueRef) for item in items):
            raise TypeError("Array data must hold ValueRefs only")
        return sql_type, items
    if kind is TypeKind.MAP:
        if not isinstance(data, Mapping):
            raise TypeError(f"Map data must be a mapping, got {type(data).__name__}")
        entries = dict(data)
        if not all(isinstance(k, ValueRef) and isinstance(v, ValueRef) for k, v in entries.items()):
            raise TypeError("Map data must hold ValueRefs only")
        return sql_type, entries
    if kind is TypeKind.DECIMAL:
        if not isinstance(data, Decimal):
            raise TypeError(f"Decimal data must be a Decimal, got {type(data).__name__}")
        return SqlType.decimal(data.precision, data.scale), data
    if kind is TypeKind.ENUM8:
        if not isinstance(data, Enum8):
            raise TypeError(f"Enum8 data must be an Enum8, got {type(data).__name__}")
        return sql_type, data
    if kind is TypeKind.ENUM16:
        if not isinstance(data, Enum16):
            raise TypeError(f"Enum16 data must be an Enum16, got {type(data).__name__}")
        return sql_type, data
    raise ValueError(f"unsupported column type {sql_type}")


def _nanos(ticks: int, precision: int) -> int:
    return ticks * 10 ** (9 - precision)


class ValueRef:
    """A column value as read from a block, with its column type.

    ``data`` holds the same shapes as :class:`chvalues.value.Value`, except
    that nested values are ValueRefs.
    """

    __slots__ = ("sql_type", "data")

    def __init__(self, sql_type: SqlType, data: Any) -> None:
        self.sql_type, self.data = _normalize(sql_type, data)

    @classmethod
    def of(cls, obj: Any) -> ValueRef:
        """Build a value from text, bytes, a bool or a number."""
        if isinstance(obj, ValueRef):
            return obj
        if isinstance(obj, bool):
            return cls(SqlType.simple(TypeKind.BOOL), obj)
        if isinstance(obj, int):
            return cls(SqlType.simple(_int_kind(obj)), obj)
        if isinstance(obj, float):
            return cls(SqlType.simple(TypeKind.FLOAT64), obj)
        if isinstance(obj, str):
            return cls(SqlType.simple(TypeKind.STRING), obj.encode("utf-8"))
        if isinstance(obj, _BYTES_LIKE):
            return cls(SqlType.simple(TypeKind.STRING), obj)
        raise TypeError(f"cannot make a value from {type(obj).__name__}")

    def __str__(self) -> str:
        kind = self.sql_type.kind
        data = self.data
        if kind is TypeKind.BOOL:
            return "true" if data else "false"
        if kind in _INT_RANGES:
            return str(data)
        if kind in _FLOAT_KINDS:
            return _format_float(data, kind is TypeKind.FLOAT32)
        if kind is TypeKind.STRING:
            try:
                return data.decode("utf-8")
            except UnicodeDecodeError:
                return "[" + ", ".join(str(byte) for byte in data) + "]"
        if kind is TypeKind.DATE:
            return days_to_date(data).isoformat()
        if kind is TypeKind.DATETIME:
            return data.strftime(_DATETIME_FORMAT)
        if kind is TypeKind.DATETIME64:
            moment = to_datetime(data, self.sql_type.precision, self.sql_type.tz)
            return moment.strftime(_DATETIME_FORMAT)
        if kind is TypeKind.NULLABLE:
            return "NULL" if data is None else str(data)
        if kind is TypeKind.ARRAY:
            return "[" + ", ".join(str(item) for item in data) + "]"
        if kind is TypeKind.DECIMAL:
            return str(data)
        if kind is TypeKind.IPV4:
            return str(decode_ipv4(data))
        if kind is TypeKind.IPV6:
            return str(decode_ipv6(data))
        if kind is TypeKind.UUID:
            return str(_uuid.UUID(bytes=data[:8][::-1] + data[8:][::-1]))
        if kind in (TypeKind.ENUM8, TypeKind.ENUM16):
            return str(data)
        cells = (f"{key}-{item}" for key, item in data.items())
        return "[" + ", ".join(cells) + "]"

    def format_alternate(self) -> str:
        """Return the alternate text form: DateTime values in RFC 2822."""
        if self.sql_type.kind is TypeKind.DATETIME:
            return format_datetime(self.data)
        return str(self)

    def __repr__(self) -> str:
        return f"ValueRef({self.sql_type}, {self.data!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ValueRef):
            return NotImplemented
        kind = self.sql_type.kind
        if kind is not other.sql_type.kind:
            return False
        if kind is TypeKind.DATETIME64:
            return _nanos(self.data, self.sql_type.precision) == _nanos(
                other.data, other.sql_type.precision
            )
        if kind is TypeKind.NULLABLE:
            if self.data is None and other.data is None:
                return self.sql_type.inner == other.sql_type.inner
            return self.data is not None and other.data is not None and self.data == other.data
        if kind is TypeKind.ARRAY:
            return self.sql_type.inner == other.sql_type.inner and self.data == other.data
        if kind in (TypeKind.ENUM8, TypeKind.ENUM16):
            return (
                self.data == other.data
                and self.sql_type.enum_values == other.sql_type.enum_values
            )
        if kind is TypeKind.MAP:
            if len(self.data) != len(other.data):
                return False
            return (
                self.sql_type.inner == other.sql_type.inner
                and self.sql_type.value_type == other.sql_type.value_type
                and self.data == other.data
            )
        return self.data == other.data

    def __hash__(self) -> int:
        kind = self.sql_type.kind
        if kind is TypeKind.STRING or kind in _INT_RANGES:
            return hash(self.data)
        raise TypeError(f"a value of type {self.sql_type} is not hashable")

    def _fail(self, target: str) -> FromSqlError:
        return FromSqlError(str(self.sql_type), target)

    def as_str(self) -> str:
        """Return a string value as text; invalid UTF-8 raises UnicodeDecodeError."""
        if self.sql_type.kind is TypeKind.STRING:
            return self.data.decode("utf-8")
        raise self._fail("&str")

    def as_string(self) -> str:
        """Return a string value as a new text object."""
        return str(self.as_str())

    def as_bytes(self) -> bytes:
        """Return the raw bytes of a string value."""
        if self.sql_type.kind is TypeKind.STRING:
            return self.data
        raise self._fail("&[u8]")

    def as_int(self) -> int:
        """Return an integer value."""
        if self.sql_type.kind in _INT_RANGES:
            return self.data
        raise self._fail("int")

    def as_float(self) -> float:
        """Return a floating-point value."""
        if self.sql_type.kind in _FLOAT_KINDS:
            return self.data
        raise self._fail("float")

    def as_bool(self) -> bool:
        """Return a boolean value."""
        if self.sql_type.kind is TypeKind.BOOL:
            return self.data
        raise self._fail("bool")

    def as_date(self) -> date:
        """Return a Date value as a calendar date."""
        if self.sql_type.kind is TypeKind.DATE:
            return days_to_date(self.data)
        raise self._fail("AppDate")

    def as_datetime(self) -> datetime:
        """Return a DateTime or DateTime64 value as an aware datetime."""
        if self.sql_type.kind is TypeKind.DATETIME:
            return self.data
        if self.sql_type.kind is TypeKind.DATETIME64:
            return to_datetime(self.data, self.sql_type.precision, self.sql_type.tz)
        raise self._fail("DateTime<Tz>")

    def as_enum8(self) -> Enum8:
        """Return the code of an Enum8 value."""
        if self.sql_type.kind is TypeKind.ENUM8:
            return self.data
        raise self._fail("Enum8")

    def as_enum16(self) -> Enum16:
        """Return the code of an Enum16 value."""
        if self.sql_type.kind is TypeKind.ENUM16:
            return self.data
        raise self._fail("Enum16")