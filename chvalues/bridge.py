"""Conversions between read-back values and owned values."""

from __future__ import annotations

from chvalues.sqltype import TypeKind
from chvalues.value import Value
from chvalues.value_ref import ValueRef


def value_from_ref(value_ref: ValueRef) -> Value:
    """Return an owned value equal to ``value_ref``, converting nested values too."""
    if not isinstance(value_ref, ValueRef):
        raise TypeError(f"expected a ValueRef, got {type(value_ref).__name__}")
    sql_type = value_ref.sql_type
    data = value_ref.data
    match sql_type.kind:
        case TypeKind.NULLABLE:
            return Value(sql_type, None if data is None else value_from_ref(data))
        case TypeKind.ARRAY:
            return Value(sql_type, tuple(value_from_ref(item) for item in data))
        case TypeKind.MAP:
            entries = {value_from_ref(key): value_from_ref(item) for key, item in data.items()}
            return Value(sql_type, entries)
        case _:
            return Value(sql_type, data)


def ref_from_value(value: Value) -> ValueRef:
    """Return a read-back value equal to ``value``, converting nested values too.

    Map keys must be strings or integers; other keys raise TypeError.
    """
    if not isinstance(value, Value):
        raise TypeError(f"expected a Value, got {type(value).__name__}")
    sql_type = value.sql_type
    data = value.data
    match sql_type.kind:
        case TypeKind.NULLABLE:
            return ValueRef(sql_type, None if data is None else ref_from_value(data))
        case TypeKind.ARRAY:
            return ValueRef(sql_type, tuple(ref_from_value(item) for item in data))
        case TypeKind.MAP:
            entries = {ref_from_value(key): ref_from_value(item) for key, item in data.items()}
            return ValueRef(sql_type, entries)
        case _:
            return ValueRef(sql_type, data)