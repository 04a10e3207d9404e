"""Column type descriptions and the small value types they refer to."""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone, tzinfo
from fractions import Fraction
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

DEFAULT_TZ: tzinfo = timezone.utc

_EPOCH_DATE = date(1970, 1, 1)
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MAX_DATE_DAYS = 0xFFFF
_DEFAULT_DECIMAL_PRECISION = 18
_MAX_DECIMAL_PRECISION = 76


def _resolve_tz(tz: tzinfo | str | None) -> tzinfo:
    if tz is None:
        return DEFAULT_TZ
    if isinstance(tz, tzinfo):
        return tz
    if isinstance(tz, str):
        if tz.upper() == "UTC":
            return timezone.utc
        try:
            return ZoneInfo(tz)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown time zone {tz!r}") from exc
    raise TypeError(f"expected a time zone, got {type(tz).__name__}")


class TypeKind(enum.Enum):
    """The families of column types; the value is the type's SQL name."""

    BOOL = "Bool"
    UINT8 = "UInt8"
    UINT16 = "UInt16"
    UINT32 = "UInt32"
    UINT64 = "UInt64"
    UINT128 = "UInt128"
    INT8 = "Int8"
    INT16 = "Int16"
    INT32 = "Int32"
    INT64 = "Int64"
    INT128 = "Int128"
    STRING = "String"
    FIXED_STRING = "FixedString"
    FLOAT32 = "Float32"
    FLOAT64 = "Float64"
    DATE = "Date"
    DATETIME = "DateTime"
    DATETIME64 = "DateTime64"
    IPV4 = "IPv4"
    IPV6 = "IPv6"
    UUID = "UUID"
    NULLABLE = "Nullable"
    ARRAY = "Array"
    MAP = "Map"
    DECIMAL = "Decimal"
    ENUM8 = "Enum8"
    ENUM16 = "Enum16"
    LOW_CARDINALITY = "LowCardinality"
    SIMPLE_AGGREGATE_FUNCTION = "SimpleAggregateFunction"


_PARAMETRIC = frozenset(
    {
        TypeKind.FIXED_STRING,
        TypeKind.DATETIME64,
        TypeKind.NULLABLE,
        TypeKind.ARRAY,
        TypeKind.MAP,
        TypeKind.DECIMAL,
        TypeKind.ENUM8,
        TypeKind.ENUM16,
        TypeKind.LOW_CARDINALITY,
        TypeKind.SIMPLE_AGGREGATE_FUNCTION,
    }
)


def _check_range(value: int, low: int, high: int, what: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{what} expects an integer, got {type(value).__name__}")
    if not low <= value <= high:
        raise ValueError(f"{what} value {value} is outside [{low}, {high}]")


@dataclass(frozen=True)
class SqlType:
    """A column type. ``inner`` is the wrapped, element or key type;
    ``value_type`` is the value type of a map."""

    kind: TypeKind
    inner: SqlType | None = None
    value_type: SqlType | None = None
    length: int = 0
    precision: int = 0
    scale: int = 0
    tz: tzinfo | None = None
    enum_values: tuple[tuple[str, int], ...] = ()
    function: str = ""

    @classmethod
    def simple(cls, kind: TypeKind) -> SqlType:
        if kind in _PARAMETRIC:
            raise ValueError(f"{kind.value} needs parameters")
        return cls(kind)

    @classmethod
    def nullable(cls, inner: SqlType) -> SqlType:
        return cls(TypeKind.NULLABLE, inner=inner)

    @classmethod
    def array(cls, inner: SqlType) -> SqlType:
        return cls(TypeKind.ARRAY, inner=inner)

    @classmethod
    def map(cls, key: SqlType, value: SqlType) -> SqlType:
        return cls(TypeKind.MAP, inner=key, value_type=value)

    @classmethod
    def fixed_string(cls, length: int) -> SqlType:
        if length < 0:
            raise ValueError(f"FixedString length must not be negative, got {length}")
        return cls(TypeKind.FIXED_STRING, length=length)

    @classmethod
    def decimal(cls, precision: int, scale: int) -> SqlType:
        if not 1 <= precision <= _MAX_DECIMAL_PRECISION:
            raise ValueError(f"Decimal precision {precision} is out of range")
        if not 0 <= scale <= precision:
            raise ValueError(f"Decimal scale {scale} is out of range for precision {precision}")
        return cls(TypeKind.DECIMAL, precision=precision, scale=scale)

    @classmethod
    def datetime64(cls, precision: int, tz: tzinfo | str | None) -> SqlType:
        if not 0 <= precision <= 9:
            raise ValueError(f"DateTime64 precision {precision} is outside [0, 9]")
        return cls(TypeKind.DATETIME64, precision=precision, tz=_resolve_tz(tz))

    @classmethod
    def enum8(cls, values) -> SqlType:
        pairs = tuple((str(name), int(code)) for name, code in values)
        for _, code in pairs:
            _check_range(code, -128, 127, "Enum8")
        return cls(TypeKind.ENUM8, enum_values=pairs)

    @classmethod
    def enum16(cls, values) -> SqlType:
        pairs = tuple((str(name), int(code)) for name, code in values)
        for _, code in pairs:
            _check_range(code, -32768, 32767, "Enum16")
        return cls(TypeKind.ENUM16, enum_values=pairs)

    @classmethod
    def low_cardinality(cls, inner: SqlType) -> SqlType:
        return cls(TypeKind.LOW_CARDINALITY, inner=inner)

    def __str__(self) -> str:
        name = self.kind.value
        match self.kind:
            case TypeKind.NULLABLE | TypeKind.ARRAY | TypeKind.LOW_CARDINALITY:
                return f"{name}({self.inner})"
            case TypeKind.MAP:
                return f"{name}({self.inner}, {self.value_type})"
            case TypeKind.FIXED_STRING:
                return f"{name}({self.length})"
            case TypeKind.DECIMAL:
                return f"{name}({self.precision}, {self.scale})"
            case TypeKind.DATETIME64:
                return f"{name}({self.precision}, '{self.tz}')"
            case TypeKind.ENUM8 | TypeKind.ENUM16:
                cells = ", ".join(f"'{label}' = {code}" for label, code in self.enum_values)
                return f"{name}({cells})"
            case TypeKind.SIMPLE_AGGREGATE_FUNCTION:
                return f"{name}({self.function}, {self.inner})"
            case _:
                return name


@dataclass(frozen=True, order=True)
class Enum8:
    """The numeric code of an Enum8 column value."""

    value: int

    def __post_init__(self) -> None:
        _check_range(self.value, -128, 127, "Enum8")

    @classmethod
    def of(cls, value: int) -> Enum8:
        return cls(value)

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True, order=True)
class Enum16:
    """The numeric code of an Enum16 column value."""

    value: int

    def __post_init__(self) -> None:
        _check_range(self.value, -32768, 32767, "Enum16")

    @classmethod
    def of(cls, value: int) -> Enum16:
        return cls(value)

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True, eq=False)
class Decimal:
    """A fixed-point number stored as ``underlying / 10 ** scale``.

    Two decimals are equal when they denote the same number, whatever
    their scales.
    """

    underlying: int
    precision: int
    scale: int

    @classmethod
    def of(cls, value: int | float, scale: int) -> Decimal:
        if scale < 0:
            raise ValueError(f"scale must not be negative, got {scale}")
        if isinstance(value, bool):
            raise TypeError("a decimal cannot be made from a bool")
        factor = 10**scale
        if isinstance(value, int):
            underlying = value * factor
        elif isinstance(value, float):
            if not math.isfinite(value):
                raise ValueError(f"cannot make a decimal from {value}")
            underlying = round(value * factor)
        else:
            raise TypeError(f"cannot make a decimal from {type(value).__name__}")
        return cls(underlying, _DEFAULT_DECIMAL_PRECISION, scale)

    def _fraction(self) -> Fraction:
        return Fraction(self.underlying, 10**self.scale)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Decimal):
            return NotImplemented
        return self._fraction() == other._fraction()

    def __hash__(self) -> int:
        return hash(self._fraction())

    def __float__(self) -> float:
        return self.underlying / 10**self.scale

    def __str__(self) -> str:
        if self.scale == 0:
            return str(self.underlying)
        sign = "-" if self.underlying < 0 else ""
        whole, frac = divmod(abs(self.underlying), 10**self.scale)
        return f"{sign}{whole}.{frac:0{self.scale}d}"


def to_datetime(value: int, precision: int, tz: tzinfo | str | None) -> datetime:
    """Turn a DateTime64 tick count into an aware datetime in ``tz``.

    Digits finer than microseconds are dropped.
    """
    if not 0 <= precision <= 9:
        raise ValueError(f"DateTime64 precision {precision} is outside [0, 9]")
    unit = 10**precision
    seconds, sub = divmod(value, unit)
    micros = sub * 1_000_000 // unit
    moment = _EPOCH + timedelta(seconds=seconds, microseconds=micros)
    return moment.astimezone(_resolve_tz(tz))


def days_to_date(days: int) -> date:
    """Return the calendar date ``days`` days after 1970-01-01."""
    _check_range(days, 0, _MAX_DATE_DAYS, "Date")
    return _EPOCH_DATE + timedelta(days=days)


def date_to_days(value: date) -> int:
    """Return the number of days from 1970-01-01 to ``value``."""
    if isinstance(value, datetime):
        value = value.date()
    days = (value - _EPOCH_DATE).days
    if not 0 <= days <= _MAX_DATE_DAYS:
        raise ValueError(f"date {value.isoformat()} cannot be stored as a Date")
    return days