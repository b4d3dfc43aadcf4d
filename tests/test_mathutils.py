import math

import pytest

from wasmhost.errors import DivisionByZero, IntegerConversion, IntegerOverflow
from wasmhost.mathutils import (
    TruncTarget,
    div_s,
    div_u,
    fmax,
    fmin,
    rem_s,
    rem_u,
    rotl32,
    rotl64,
    rotr32,
    rotr64,
    trunc,
    trunc_sat,
)


@pytest.mark.parametrize("n", [0, 1, 0x80000000, 0xDEADBEEF, 0xFFFFFFFF])
@pytest.mark.parametrize("c", [0, 1, 5, 31, 32, 33])
def test_rot32_round_trip(n, c):
    assert rotr32(rotl32(n, c), c) == n
    assert rotl32(rotr32(n, c), c) == n


@pytest.mark.parametrize("n", [0, 1, 2**63, 0x0123456789ABCDEF, 2**64 - 1])
@pytest.mark.parametrize("c", [0, 1, 17, 63, 64, 65])
def test_rot64_round_trip(n, c):
    assert rotr64(rotl64(n, c), c) == n
    assert rotl64(rotr64(n, c), c) == n


@pytest.mark.parametrize("c", range(32))
def test_rotl32_of_one_is_shift(c):
    assert rotl32(1, c) == 1 << c


def test_rotation_count_is_masked():
    n = 0x12345678
    assert rotl32(n, 32) == n
    assert rotl32(n, 33) == rotl32(n, 1)
    assert rotr64(n, 64 + 3) == rotr64(n, 3)


def test_rotl32_stays_in_range():
    assert rotl32(0xFFFFFFFF, 7) == 0xFFFFFFFF
    assert rotl32(0x80000000, 1) < 2**32


def test_unsigned_division_by_zero_traps():
    with pytest.raises(DivisionByZero):
        div_u(7, 0)
    with pytest.raises(DivisionByZero):
        rem_u(7, 0)


@pytest.mark.parametrize("a, b", [(100, 7), (2**32 - 1, 3), (5, 9)])
def test_unsigned_div_rem_invariant(a, b):
    assert div_u(a, b) * b + rem_u(a, b) == a
    assert 0 <= rem_u(a, b) < b


def test_signed_division_by_zero_traps():
    with pytest.raises(DivisionByZero):
        div_s(-5, 0, 32)
    with pytest.raises(DivisionByZero):
        rem_s(-5, 0, 64)


@pytest.mark.parametrize("bits", [32, 64])
def test_signed_min_over_minus_one_overflows(bits):
    with pytest.raises(IntegerOverflow):
        div_s(-(2 ** (bits - 1)), -1, bits)


@pytest.mark.parametrize("bits", [32, 64])
def test_signed_min_rem_minus_one_is_zero(bits):
    assert rem_s(-(2 ** (bits - 1)), -1, bits) == 0


@pytest.mark.parametrize("a, b", [(-7, 2), (7, -2), (-7, -2), (7, 2), (-1, 5), (123456, -789)])
def test_signed_div_rem_truncates_toward_zero(a, b):
    q = div_s(a, b, 32)
    r = rem_s(a, b, 32)
    assert q * b + r == a
    assert abs(r) < abs(b)
    assert r == 0 or (r < 0) == (a < 0)


def test_signed_accepts_unsigned_representation():
    assert div_s(2**32 - 6, 2**32 - 2, 32) == div_s(-6, -2, 32)
    assert rem_s(2**64 - 7, 2, 64) == rem_s(-7, 2, 64)


@pytest.mark.parametrize("target", list(TruncTarget))
def test_trunc_nan_traps(target):
    with pytest.raises(IntegerConversion):
        trunc(math.nan, target)


@pytest.mark.parametrize("target", list(TruncTarget))
def test_trunc_bounds_are_exclusive(target):
    with pytest.raises(IntegerOverflow):
        trunc(target.rmax, target)
    with pytest.raises(IntegerOverflow):
        trunc(target.rmin, target)
    with pytest.raises(IntegerOverflow):
        trunc(math.inf, target)


def test_trunc_in_range():
    assert trunc(-2147483648.0, TruncTarget.I32_F64) == -2147483648
    assert trunc(4294967295.0, TruncTarget.U32_F64) == 4294967295
    assert trunc(-1.5, TruncTarget.I32_F64) == -1
    assert trunc(-0.5, TruncTarget.U32_F64) == 0


@pytest.mark.parametrize("target", list(TruncTarget))
def test_trunc_sat_limits(target):
    assert trunc_sat(math.nan, target) == 0
    assert trunc_sat(math.inf, target) == target.int_max
    assert trunc_sat(-math.inf, target) == target.int_min
    assert trunc_sat(target.rmax, target) == target.int_max


def test_trunc_sat_values():
    assert trunc_sat(1e30, TruncTarget.I64_F64) == 9223372036854775807
    assert trunc_sat(-5.0, TruncTarget.U32_F32) == 0
    assert trunc_sat(-2147483648.0, TruncTarget.I32_F64) == -2147483648


@pytest.mark.parametrize("target", list(TruncTarget))
def test_trunc_small_values_agree_with_sat(target):
    assert trunc(0.0, target) == 0
    assert trunc(42.9, target) == 42
    assert trunc_sat(42.9, target) == trunc(42.9, target)


def test_fmin_fmax_nan():
    assert math.isnan(fmin(math.nan, 1.0))
    assert math.isnan(fmax(1.0, math.nan))


def test_fmin_fmax_signed_zero():
    assert math.copysign(1.0, fmin(0.0, -0.0)) < 0
    assert math.copysign(1.0, fmin(-0.0, 0.0)) < 0
    assert math.copysign(1.0, fmax(-0.0, 0.0)) > 0
    assert math.copysign(1.0, fmax(0.0, -0.0)) > 0


@pytest.mark.parametrize("a, b", [(2.0, 3.0), (-1.5, 1.5), (math.inf, -math.inf)])
def test_fmin_fmax_ordinary(a, b):
    assert fmin(a, b) == min(a, b)
    assert fmax(a, b) == max(a, b)
    assert fmin(a, b) <= fmax(a, b)