"""Owned client-side values of table columns."""

from __future__ import annotations

import decimal as _decimal
import math
import struct
import uuid as _uuid
from collections.abc import Mapping
from datetime import date, datetime, timezone
from email.utils import format_datetime
from ipaddress import IPv4Address, IPv6Address
from typing import Any

from chvalues.sqltype import (
    DEFAULT_TZ,
    Decimal,
    Enum8,
    Enum16,
    SqlType,
    TypeKind,
    date_to_days,
    days_to_date,
    to_datetime,
)

_INT_RANGES: dict[TypeKind, tuple[int, int]] = {
    TypeKind.UINT8: (0, 2**8 - 1),
    TypeKind.UINT16: (0, 2**16 - 1),
    TypeKind.UINT32: (0, 2**32 - 1),
    TypeKind.UINT64: (0, 2**64 - 1),
    TypeKind.UINT128: (0, 2**128 - 1),
    TypeKind.INT8: (-(2**7), 2**7 - 1),
    TypeKind.INT16: (-(2**15), 2**15 - 1),
    TypeKind.INT32: (-(2**31), 2**31 - 1),
    TypeKind.INT64: (-(2**63), 2**63 - 1),
    TypeKind.INT128: (-(2**127), 2**127 - 1),
}

_FLOAT_KINDS = frozenset({TypeKind.FLOAT32, TypeKind.FLOAT64})
_BYTES_LIKE = (bytes, bytearray, memoryview)
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class ConversionError(TypeError):
    """Raised when a value cannot be turned into the requested Python type."""


def decode_ipv4(octets: bytes) -> IPv4Address:
    """Decode the stored (byte-reversed) form of an IPv4 address."""
    return IPv4Address(bytes(reversed(bytes(octets))))


def decode_ipv6(octets: bytes) -> IPv6Address:
    """Decode the stored form of an IPv6 address."""
    return IPv6Address(bytes(octets))


def get_str_buffer(value: Value) -> bytes:
    """Return the raw bytes of a string value."""
    if value.sql_type.kind is TypeKind.STRING:
        return value.data
    raise ConversionError(f"Can't convert Value::{value.sql_type} into &[u8].")


def _round_f32(number: float) -> float:
    try:
        return struct.unpack("<f", struct.pack("<f", number))[0]
    except OverflowError as exc:
        raise ValueError(f"{number} does not fit in Float32") from exc


def _format_float(number: float, single: bool) -> str:
    if math.isnan(number):
        return "NaN"
    if math.isinf(number):
        return "inf" if number > 0 else "-inf"
    if single:
        text = repr(number)
        for digits in range(1, 10):
            candidate = f"{number:.{digits}g}"
            if _round_f32(float(candidate)) == number:
                text = candidate
                break
    else:
        text = repr(number)
    plain = format(_decimal.Decimal(text), "f")
    if "." in plain:
        plain = plain.rstrip("0").rstrip(".")
    return plain


def _int_kind(number: int) -> TypeKind:
    for kind in (TypeKind.INT64, TypeKind.UINT64, TypeKind.INT128, TypeKind.UINT128):
        low, high = _INT_RANGES[kind]
        if low <= number <= high:
            return kind
    raise OverflowError(f"integer {number} does not fit in any column type")


def _datetime_to_ticks(moment: datetime, precision: int) -> int:
    if moment.tzinfo is None:
        raise ValueError("a naive datetime has no time zone")
    delta = moment - _EPOCH
    micros = (delta.days * 86_400 + delta.seconds) * 1_000_000 + delta.microseconds
    return micros * 10**precision // 1_000_000


def _require_bytes(data: Any, size: int, what: str) -> bytes:
    if not isinstance(data, _BYTES_LIKE):
        raise TypeError(f"{what} data must be bytes, got {type(data).__name__}")
    raw = bytes(data)
    if len(raw) != size:
        raise ValueError(f"{what} data must be {size} bytes, got {len(raw)}")
    return raw


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
        return sql_type, datetime.fromtimestamp(data, timezone.utc)
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
        if isinstance(data, Value):
            return SqlType.nullable(data.sql_type), data
        raise TypeError(f"Nullable data must be None or a Value, got {type(data).__name__}")
    if kind is TypeKind.ARRAY:
        items = tuple(data)
        if not all(isinstance(item, Value) for item in items):
            raise TypeError("Array data must hold Values only")
        return sql_type, items
    if kind is TypeKind.MAP:
        entries = dict(data)
        if not all(isinstance(k, Value) and isinstance(v, Value) for k, v in entries.items()):
            raise TypeError("Map data must hold Values only")
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


def _coerce(sql_type: SqlType, obj: Any) -> Value:
    """Build a value of ``sql_type`` from a plain Python object."""
    if isinstance(obj, Value):
        return obj
    kind = sql_type.kind
    if kind in (TypeKind.LOW_CARDINALITY, TypeKind.SIMPLE_AGGREGATE_FUNCTION):
        return _coerce(sql_type.inner, obj)
    if kind in (TypeKind.STRING, TypeKind.FIXED_STRING) and isinstance(obj, str):
        obj = obj.encode("utf-8")
    elif kind is TypeKind.DATE and isinstance(obj, date):
        obj = date_to_days(obj)
    elif kind is TypeKind.DATETIME64 and isinstance(obj, datetime):
        obj = _datetime_to_ticks(obj, sql_type.precision)
    elif kind is TypeKind.IPV4 and isinstance(obj, (str, IPv4Address)):
        obj = IPv4Address(obj).packed[::-1]
    elif kind is TypeKind.IPV6 and isinstance(obj, (str, IPv6Address)):
        obj = IPv6Address(obj).packed
    elif kind is TypeKind.UUID and isinstance(obj, (str, _uuid.UUID)):
        return Value.from_uuid(_uuid.UUID(str(obj)))
    elif kind is TypeKind.NULLABLE:
        return Value(sql_type, None if obj is None else _coerce(sql_type.inner, obj))
    elif kind is TypeKind.ARRAY:
        return Value.from_list(obj, sql_type.inner)
    elif kind is TypeKind.MAP:
        return Value.from_dict(obj, sql_type.inner, sql_type.value_type)
    elif kind is TypeKind.DECIMAL and isinstance(obj, (int, float)) and not isinstance(obj, bool):
        made = Decimal.of(obj, sql_type.scale)
        obj = Decimal(made.underlying, sql_type.precision, sql_type.scale)
    elif kind is TypeKind.ENUM8 and isinstance(obj, int) and not isinstance(obj, bool):
        obj = Enum8(obj)
    elif kind is TypeKind.ENUM16 and isinstance(obj, int) and not isinstance(obj, bool):
        obj = Enum16(obj)
    return Value(sql_type, obj)


class Value:
    """A single column value together with its column type.

    ``data`` holds: bool, int or float for scalars; bytes for strings,
    addresses and UUIDs; a day count for Date; an aware datetime for
    DateTime; a tick count for DateTime64; None or a Value for Nullable;
    a tuple of Values for Array; a dict of Values for Map; Decimal,
    Enum8 or Enum16 for those types.
    """

    __slots__ = ("sql_type", "data")

    def __init__(self, sql_type: SqlType, data: Any) -> None:
        self.sql_type, self.data = _normalize(sql_type, data)

    @classmethod
    def of(cls, obj: Any) -> Value:
        """Build a value from a Python object, picking the natural column type."""
        if isinstance(obj, Value):
            return obj
        if obj is None:
            raise TypeError("None has no column type; use Value.optional")
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
        if isinstance(obj, Decimal):
            return cls(SqlType.decimal(obj.precision, obj.scale), obj)
        if isinstance(obj, Enum8):
            return cls(SqlType.enum8(()), obj)
        if isinstance(obj, Enum16):
            return cls(SqlType.enum16(()), obj)
        if isinstance(obj, datetime):
            return cls(SqlType.simple(TypeKind.DATETIME), obj)
        if isinstance(obj, date):
            return cls(SqlType.simple(TypeKind.DATE), date_to_days(obj))
        if isinstance(obj, _uuid.UUID):
            return cls.from_uuid(obj)
        if isinstance(obj, IPv4Address):
            return cls(SqlType.simple(TypeKind.IPV4), obj.packed[::-1])
        if isinstance(obj, IPv6Address):
            return cls(SqlType.simple(TypeKind.IPV6), obj.packed)
        if isinstance(obj, Mapping):
            if not obj:
                raise ValueError("cannot infer the types of an empty mapping")
            key, item = next(iter(obj.items()))
            return cls.from_dict(obj, cls.of(key).sql_type, cls.of(item).sql_type)
        if isinstance(obj, (list, tuple)):
            if not obj:
                raise ValueError("cannot infer the element type of an empty sequence")
            return cls.from_list(obj, cls.of(obj[0]).sql_type)
        raise TypeError(f"cannot make a value from {type(obj).__name__}")

    @classmethod
    def optional(cls, obj: Any, sql_type: SqlType | None = None) -> Value:
        """Build a Nullable value; ``None`` becomes NULL of ``sql_type``."""
        if obj is None:
            if sql_type is None:
                raise TypeError("a NULL value needs a column type")
            return cls(SqlType.nullable(sql_type), None)
        inner = cls.of(obj) if sql_type is None else _coerce(sql_type, obj)
        return cls(SqlType.nullable(inner.sql_type), inner)

    @classmethod
    def from_uuid(cls, uuid: _uuid.UUID) -> Value:
        """Build a UUID value, storing each half byte-reversed."""
        raw = uuid.bytes
        return cls(SqlType.simple(TypeKind.UUID), raw[:8][::-1] + raw[8:][::-1])

    @classmethod
    def from_list(cls, items, item_type: SqlType) -> Value:
        """Build an Array value whose elements are of ``item_type``."""
        return cls(SqlType.array(item_type), tuple(_coerce(item_type, item) for item in items))

    @classmethod
    def from_dict(cls, mapping, key_type: SqlType, value_type: SqlType) -> Value:
        """Build a Map value from a mapping."""
        entries = {
            _coerce(key_type, key): _coerce(value_type, item) for key, item in dict(mapping).items()
        }
        return cls(SqlType.map(key_type, value_type), entries)

    @classmethod
    def default(cls, sql_type: SqlType) -> Value:
        """Return the default (zero) value of a column type."""
        kind = sql_type.kind
        if kind is TypeKind.BOOL:
            return cls(sql_type, False)
        if kind in _INT_RANGES:
            return cls(sql_type, 0)
        if kind in _FLOAT_KINDS:
            return cls(sql_type, 0.0)
        if kind is TypeKind.STRING:
            return cls(sql_type, b"")
        if kind in (TypeKind.LOW_CARDINALITY, TypeKind.SIMPLE_AGGREGATE_FUNCTION):
            return cls.default(sql_type.inner)
        if kind is TypeKind.FIXED_STRING:
            return cls(SqlType.simple(TypeKind.STRING), bytes(sql_type.length))
        if kind is TypeKind.DATE:
            return cls(sql_type, 0)
        if kind is TypeKind.DATETIME64:
            return cls(SqlType.datetime64(1, DEFAULT_TZ), 0)
        if kind is TypeKind.DATETIME:
            return cls(sql_type, _EPOCH.astimezone(DEFAULT_TZ))
        if kind is TypeKind.NULLABLE:
            return cls(sql_type, None)
        if kind is TypeKind.ARRAY:
            return cls(sql_type, ())
        if kind is TypeKind.DECIMAL:
            return cls(sql_type, Decimal(0, sql_type.precision, sql_type.scale))
        if kind is TypeKind.IPV4:
            return cls(sql_type, bytes(4))
        if kind in (TypeKind.IPV6, TypeKind.UUID):
            return cls(sql_type, bytes(16))
        if kind is TypeKind.ENUM8:
            return cls(sql_type, Enum8(0))
        if kind is TypeKind.ENUM16:
            return cls(sql_type, Enum16(0))
        if kind is TypeKind.MAP:
            return cls(sql_type, {})
        raise ValueError(f"unsupported column type {sql_type}")

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
            return format_datetime(data)
        if kind is TypeKind.DATETIME64:
            return format_datetime(to_datetime(data, self.sql_type.precision, self.sql_type.tz))
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
        if kind is TypeKind.ENUM8:
            return f"Enum8, {data}"
        if kind is TypeKind.ENUM16:
            return f"Enum16, {data}"
        cells = (f"key=>{key} value=>{item}" for key, item in data.items())
        return "[" + ", ".join(cells) + "]"

    def __repr__(self) -> str:
        return f"Value({self.sql_type}, {self.data!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        kind = self.sql_type.kind
        if kind is not other.sql_type.kind:
            return False
        if kind is TypeKind.DATETIME64:
            return (
                self.sql_type.precision == other.sql_type.precision
                and self.data == other.data
            )
        if kind is TypeKind.NULLABLE:
            if self.data is None and other.data is None:
                return self.sql_type.inner == other.sql_type.inner
            return self.data is not None and other.data is not None and self.data == other.data
        if kind is TypeKind.ARRAY:
            return self.sql_type.inner == other.sql_type.inner and self.data == other.data
        if kind in (TypeKind.ENUM8, TypeKind.ENUM16):
            return (
                self.sql_type.enum_values == other.sql_type.enum_values
                and self.data == other.data
            )
        if kind is TypeKind.MAP:
            return (
                self.sql_type.inner == other.sql_type.inner
                and self.sql_type.value_type == other.sql_type.value_type
                and self.data == other.data
            )
        return self.data == other.data

    def __hash__(self) -> int:
        kind = self.sql_type.kind
        if kind is TypeKind.STRING or kind in _INT_RANGES or kind is TypeKind.DATE:
            return hash(self.data)
        if kind is TypeKind.DATETIME:
            return hash(int(self.data.timestamp()))
        if kind is TypeKind.DATETIME64:
            return hash((self.data, self.sql_type.precision))
        raise TypeError(f"a value of type {self.sql_type} is not hashable")

    def _fail(self, target: str) -> ConversionError:
        return ConversionError(f"Can't convert Value::{self.sql_type} into {target}.")

    def as_str(self) -> str:
        """Return a string value as text."""
        if self.sql_type.kind is TypeKind.STRING:
            try:
                return self.data.decode("utf-8")
            except UnicodeDecodeError:
                pass
        raise self._fail("String")

    def as_bytes(self) -> bytes:
        """Return the raw bytes of a string value."""
        if self.sql_type.kind is TypeKind.STRING:
            return self.data
        raise self._fail("Vec<u8>")

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

    def as_ipv4(self) -> bytes:
        """Return the four stored bytes of an IPv4 value."""
        if self.sql_type.kind is TypeKind.IPV4:
            return self.data
        raise self._fail("[u8; 4]")