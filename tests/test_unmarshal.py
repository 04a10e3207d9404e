import math
import struct

import pytest
from hypothesis import given
from hypothesis import strategies as st

from chvalues.unmarshal import ScalarKind, size_of, unmarshal

UNSIGNED = [ScalarKind.U8, ScalarKind.U16, ScalarKind.U32, ScalarKind.U64, ScalarKind.U128]
SIGNED = [ScalarKind.I8, ScalarKind.I16, ScalarKind.I32, ScalarKind.I64, ScalarKind.I128]

QUIET_NAN_F64 = b"\x00\x00\x00\x00\x00\x00\xf8\x7f"


def test_little_endian_order():
    assert unmarshal(ScalarKind.U16, b"\x01\x00") == 1
    assert unmarshal(ScalarKind.U32, b"\x00\x00\x00\x01") == 1 << 24


@pytest.mark.parametrize("unsigned, signed", list(zip(UNSIGNED, SIGNED)))
def test_signed_and_unsigned_share_width(unsigned, signed):
    assert size_of(unsigned) == size_of(signed)


@pytest.mark.parametrize("kind", UNSIGNED)
def test_all_ones_unsigned_is_maximum(kind):
    width = size_of(kind)
    assert unmarshal(kind, b"\xff" * width) == (1 << (8 * width)) - 1


@pytest.mark.parametrize("kind", SIGNED)
def test_all_ones_signed_is_minus_one(kind):
    assert unmarshal(kind, b"\xff" * size_of(kind)) == -1


@pytest.mark.parametrize("kind", UNSIGNED + SIGNED)
def test_zero_bytes_decode_to_zero(kind):
    assert unmarshal(kind, bytearray(size_of(kind))) == 0


@given(st.integers(min_value=-(2**127), max_value=2**127 - 1))
def test_i128_round_trip(number):
    assert unmarshal(ScalarKind.I128, number.to_bytes(16, "little", signed=True)) == number


@given(st.integers(min_value=0, max_value=2**64 - 1))
def test_u64_round_trip(number):
    assert unmarshal(ScalarKind.U64, number.to_bytes(8, "little")) == number


@given(st.floats(allow_nan=False))
def test_f64_round_trip(number):
    assert unmarshal(ScalarKind.F64, struct.pack("<d", number)) == number


@given(st.floats(width=32, allow_nan=False))
def test_f32_round_trip(number):
    assert unmarshal(ScalarKind.F32, struct.pack("<f", number)) == number


def test_float_sizes_match_ieee_widths():
    assert size_of(ScalarKind.F32) == struct.calcsize("<f")
    assert size_of(ScalarKind.F64) == struct.calcsize("<d")


def test_nan_decodes_as_nan():
    result = unmarshal(ScalarKind.F64, QUIET_NAN_F64)
    assert math.isnan(result) is True
    assert struct.pack("<d", result) == QUIET_NAN_F64


def test_bool_reads_first_byte():
    assert unmarshal(ScalarKind.BOOL, b"\x00") is False
    assert unmarshal(ScalarKind.BOOL, b"\x02") is True
    assert unmarshal(ScalarKind.BOOL, b"\x00\x01") is False


def test_bool_needs_a_byte():
    with pytest.raises(ValueError):
        unmarshal(ScalarKind.BOOL, b"")


@pytest.mark.parametrize("kind", UNSIGNED + SIGNED + [ScalarKind.F32, ScalarKind.F64])
def test_wrong_length_is_rejected(kind):
    with pytest.raises(ValueError):
        unmarshal(kind, b"\x00" * (size_of(kind) + 1))
    with pytest.raises(ValueError):
        unmarshal(kind, b"\x00" * (size_of(kind) - 1))


def test_accepts_memoryview():
    assert unmarshal(ScalarKind.U8, memoryview(b"\x07")) == 7