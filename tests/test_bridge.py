import uuid
from datetime import date

import pytest
from hypothesis import given
from hypothesis import strategies as st

from chvalues.bridge import ref_from_value, value_from_ref
from chvalues.sqltype import DEFAULT_TZ, Decimal, Enum8, SqlType, TypeKind
from chvalues.value import Value
from chvalues.value_ref import ValueRef


def simple(kind):
    return SqlType.simple(kind)


@pytest.mark.parametrize(
    "kind",
    [
        TypeKind.UINT8,
        TypeKind.UINT16,
        TypeKind.UINT32,
        TypeKind.UINT64,
        TypeKind.UINT128,
        TypeKind.INT8,
        TypeKind.INT16,
        TypeKind.INT32,
        TypeKind.INT64,
        TypeKind.INT128,
    ],
)
def test_value_from_ref_integers(kind):
    assert value_from_ref(ValueRef(simple(kind), 42)) == Value(simple(kind), 42)


@pytest.mark.parametrize("kind", [TypeKind.FLOAT32, TypeKind.FLOAT64])
def test_value_from_ref_floats(kind):
    assert value_from_ref(ValueRef(simple(kind), 42.0)) == Value(simple(kind), 42.0)


def test_value_from_ref_date():
    result = value_from_ref(ValueRef(simple(TypeKind.DATE), 42))
    assert result == Value(simple(TypeKind.DATE), 42)
    assert result.as_date() == date(1970, 2, 12)


def test_value_from_ref_datetime():
    result = value_from_ref(ValueRef(simple(TypeKind.DATETIME), 42))
    assert result == Value(simple(TypeKind.DATETIME), 42)
    assert result.as_datetime().tzinfo == DEFAULT_TZ


def test_value_from_ref_decimal():
    decimal_type = SqlType.decimal(18, 4)
    result = value_from_ref(ValueRef(decimal_type, Decimal.of(2.0, 4)))
    assert result == Value(decimal_type, Decimal.of(2.0, 4))
    assert str(result) == "2.0000"


def test_value_from_ref_array():
    int32 = simple(TypeKind.INT32)
    ref = ValueRef(SqlType.array(int32), [ValueRef(int32, 1), ValueRef(int32, 2), ValueRef(int32, 3)])
    expected = Value(SqlType.array(int32), [Value(int32, 1), Value(int32, 2), Value(int32, 3)])
    result = value_from_ref(ref)
    assert result == expected
    assert str(result) == "[1, 2, 3]"


def test_value_from_ref_string():
    result = value_from_ref(ValueRef.of("text"))
    assert result.as_str() == "text"


def test_value_from_ref_nullable():
    uint8 = simple(TypeKind.UINT8)
    null = value_from_ref(ValueRef(SqlType.nullable(uint8), None))
    assert null == Value(SqlType.nullable(uint8), None)
    assert str(null) == "NULL"
    filled = value_from_ref(ValueRef(SqlType.nullable(uint8), ValueRef(uint8, 42)))
    assert filled == Value(SqlType.nullable(uint8), Value(uint8, 42))


def test_value_from_ref_map():
    uint8 = simple(TypeKind.UINT8)
    string = simple(TypeKind.STRING)
    ref = ValueRef(SqlType.map(string, uint8), {ValueRef.of("foo"): ValueRef(uint8, 1)})
    result = value_from_ref(ref)
    assert result == Value.from_dict({"foo": 1}, string, uint8)


def test_value_from_ref_datetime64():
    dt64 = SqlType.datetime64(3, "UTC")
    result = value_from_ref(ValueRef(dt64, 1500))
    assert result == Value(dt64, 1500)
    assert result.as_datetime().microsecond == 500_000


def test_ref_from_value_uuid():
    value = Value.from_uuid(uuid.UUID("936da01f-9abd-4d9d-80c7-02af85c822a8"))
    assert str(ref_from_value(value)) == "936da01f-9abd-4d9d-80c7-02af85c822a8"


def test_ref_from_value_enum():
    enum_type = SqlType.enum8([("zero", 1), ("first", 2)])
    ref = ref_from_value(Value(enum_type, Enum8.of(2)))
    assert ref.as_enum8() == Enum8.of(2)
    assert ref == ValueRef(enum_type, Enum8.of(2))


def test_round_trip_nested():
    int32 = simple(TypeKind.INT32)
    value = Value.optional([1, 2, 3], SqlType.array(int32))
    assert value_from_ref(ref_from_value(value)) == value


def test_round_trip_map():
    value = Value.of({"a": 1, "b": 2})
    ref = ref_from_value(value)
    assert str(ref) in ("[a-1, b-2]", "[b-2, a-1]")
    assert value_from_ref(ref) == value


def test_ref_from_value_map_with_date_keys_is_rejected():
    value = Value.from_dict({date(2020, 1, 1): 1}, simple(TypeKind.DATE), simple(TypeKind.UINT8))
    with pytest.raises(TypeError):
        ref_from_value(value)


def test_wrong_input_types():
    with pytest.raises(TypeError):
        value_from_ref(Value.of(1))
    with pytest.raises(TypeError):
        ref_from_value(ValueRef.of(1))


@given(st.integers(min_value=-(2**63), max_value=2**63 - 1))
def test_round_trip_int64(number):
    value = Value(simple(TypeKind.INT64), number)
    assert value_from_ref(ref_from_value(value)).as_int() == number


@given(st.binary())
def test_round_trip_bytes(raw):
    value = Value.of(raw)
    assert value_from_ref(ref_from_value(value)).as_bytes() == raw