# chvalues

Client-side values for ClickHouse columns: a typed `Value` that owns its
data, a lightweight `ValueRef` for values read back from a block, the
`SqlType` that describes both, and helpers for decoding little-endian
scalars.

## Installation

```
pip install chvalues
```

## Modules

- `chvalues.sqltype` – `TypeKind`, `SqlType` (built with `simple`,
  `nullable`, `array`, `map`, `fixed_string`, `decimal`, `datetime64`,
  `enum8`, `enum16`, `low_cardinality`), the small value types `Enum8`,
  `Enum16` and `Decimal`, and the helpers `to_datetime`, `days_to_date`
  and `date_to_days`.
- `chvalues.value` – `Value`, `ConversionError`, `decode_ipv4`,
  `decode_ipv6`, `get_str_buffer`.
- `chvalues.value_ref` – `ValueRef` and `FromSqlError`.
- `chvalues.bridge` – `value_from_ref` and `ref_from_value`.
- `chvalues.unmarshal` – `ScalarKind`, `unmarshal`, `size_of`.

## Building values

```python
from chvalues.sqltype import SqlType, TypeKind, Decimal
from chvalues.value import Value

v = Value.of(42)                     # type inferred from the object
print(v)                             # 42

s = Value.of("text")
print(s.as_str())                    # text

n = Value.optional(None, SqlType.simple(TypeKind.UINT8))
print(n)                             # NULL

arr = Value.from_list([1, 2, 3], SqlType.simple(TypeKind.INT32))
print(arr)                           # [1, 2, 3]

m = Value.from_dict({"a": 1}, SqlType.simple(TypeKind.STRING),
                    SqlType.simple(TypeKind.UINT8))
print(m)                             # [key=>a value=>1]

d = Value.default(SqlType.fixed_string(4))
print(d.as_bytes())                  # b'\x00\x00\x00\x00'

print(Decimal.of(2.0, 2))            # 2.00
```

`Value(sql_type, data)` checks that `data` fits the column type (integer
ranges, byte lengths, Date day counts from 0 to 65535) and raises
`TypeError` or `ValueError` otherwise. `Value.default(sql_type)` gives the
zero value of a type. The accessors `as_str`, `as_bytes`, `as_int`,
`as_float`, `as_bool`, `as_date`, `as_datetime` and `as_ipv4` raise
`ConversionError` (a `TypeError`) when the value is of another type.

UUIDs are stored in the server's byte order and shown in the usual form:

```python
import uuid
u = Value.from_uuid(uuid.UUID("936da01f-9abd-4d9d-80c7-02af85c822a8"))
print(u)                             # 936da01f-9abd-4d9d-80c7-02af85c822a8
```

String, integer, Date, DateTime and DateTime64 values are hashable and can
be used as map keys; hashing any other kind raises `TypeError`.

## Read-back values

`ValueRef` mirrors `Value` for data read from a block. Dates format as
`YYYY-MM-DD` and date-times as `YYYY-MM-DD HH:MM:SS`; `format_alternate()`
gives DateTime values in RFC 2822 form. Type mismatches in the `as_*`
accessors (including `as_enum8` and `as_enum16`) raise `FromSqlError`;
`as_str` on bytes that are not valid UTF-8 raises `UnicodeDecodeError`.

```python
from chvalues.value_ref import ValueRef
from chvalues.bridge import value_from_ref, ref_from_value

r = ValueRef.of(b"text")
print(r.as_string())                 # text
owned = value_from_ref(r)            # a Value, nested values converted too
back = ref_from_value(owned)         # and back to a ValueRef
```

## Decoding scalars

```python
from chvalues.unmarshal import ScalarKind, unmarshal, size_of

unmarshal(ScalarKind.U16, b"\x01\x02")   # 513
size_of(ScalarKind.F64)                  # 8
```

`unmarshal` raises `ValueError` when the byte count does not match the
kind; `BOOL` only looks at the first byte.

## What is not included

This package only models values and their types. It does not connect to a
server, run queries, or encode and decode whole blocks or columns.

## Running the tests

```
pip install "chvalues[test]"
pytest
```