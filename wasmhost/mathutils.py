"""Integer and floating point helpers with WebAssembly semantics."""

from __future__ import annotations

import math
from enum import Enum

from .errors import DivisionByZero, IntegerConversion, IntegerOverflow

_MASK32 = 0xFFFFFFFF
_MASK64 = 0xFFFFFFFFFFFFFFFF


def _rotl(n: int, c: int, bits: int) -> int:
    mask = (1 << bits) - 1
    n &= mask
    c &= bits - 1
    return ((n << c) | (n >> ((-c) & (bits - 1)))) & mask


def _rotr(n: int, c: int, bits: int) -> int:
    mask = (1 << bits) - 1
    n &= mask
    c &= bits - 1
    return ((n >> c) | (n << ((-c) & (bits - 1)))) & mask


def rotl32(n: int, c: int) -> int:
    """Rotate a 32-bit value left by c bits (c taken modulo 32)."""
    return _rotl(n, c, 32)


def rotr32(n: int, c: int) -> int:
    """Rotate a 32-bit value right by c bits (c taken modulo 32)."""
    return _rotr(n, c, 32)


def rotl64(n: int, c: int) -> int:
    """Rotate a 64-bit value left by c bits (c taken modulo 64)."""
    return _rotl(n, c, 64)


def rotr64(n: int, c: int) -> int:
    """Rotate a 64-bit value right by c bits (c taken modulo 64)."""
    return _rotr(n, c, 64)


def div_u(a: int, b: int) -> int:
    """Unsigned division; raises DivisionByZero for a zero divisor."""
    if b == 0:
        raise DivisionByZero()
    return a // b


def rem_u(a: int, b: int) -> int:
    """Unsigned remainder; raises DivisionByZero for a zero divisor."""
    if b == 0:
        raise DivisionByZero()
    return a % b


def _signed(value: int, bits: int) -> int:
    value &= (1 << bits) - 1
    if value >> (bits - 1):
        value -= 1 << bits
    return value


def _trunc_div(a: int, b: int) -> int:
    q = abs(a) // abs(b)
    return q if (a < 0) == (b < 0) else -q


def div_s(a: int, b: int, bits: int) -> int:
    """Signed division truncating toward zero at the given width."""
    a, b = _signed(a, bits), _signed(b, bits)
    if b == 0:
        raise DivisionByZero()
    if b == -1 and a == -(1 << (bits - 1)):
        raise IntegerOverflow()
    return _trunc_div(a, b)


def rem_s(a: int, b: int, bits: int) -> int:
    """Signed remainder whose sign follows the dividend."""
    a, b = _signed(a, bits), _signed(b, bits)
    if b == 0:
        raise DivisionByZero()
    if b == -1 and a == -(1 << (bits - 1)):
        return 0
    return a - b * _trunc_div(a, b)


class TruncTarget(Enum):
    """Float-to-integer conversion: integer width, signedness, float width and exclusive bounds."""

    I32_F32 = (32, True, 32, -2147483904.0, 2147483648.0)
    U32_F32 = (32, False, 32, -1.0, 4294967296.0)
    I32_F64 = (32, True, 64, -2147483649.0, 2147483648.0)
    U32_F64 = (32, False, 64, -1.0, 4294967296.0)
    I64_F32 = (64, True, 32, -9223373136366403584.0, 9223372036854775808.0)
    U64_F32 = (64, False, 32, -1.0, 18446744073709551616.0)
    I64_F64 = (64, True, 64, -9223372036854777856.0, 9223372036854775808.0)
    U64_F64 = (64, False, 64, -1.0, 18446744073709551616.0)

    def __init__(self, bits: int, signed: bool, float_bits: int, rmin: float, rmax: float) -> None:
        self.bits = bits
        self.signed = signed
        self.float_bits = float_bits
        self.rmin = rmin
        self.rmax = rmax

    @property
    def int_min(self) -> int:
        return -(1 << (self.bits - 1)) if self.signed else 0

    @property
    def int_max(self) -> int:
        return (1 << (self.bits - 1)) - 1 if self.signed else (1 << self.bits) - 1


def trunc(value: float, target: TruncTarget) -> int:
    """Truncate a float toward zero, trapping on NaN or out-of-range values."""
    if math.isnan(value):
        raise IntegerConversion()
    if value <= target.rmin or value >= target.rmax:
        raise IntegerOverflow()
    return int(value)


def trunc_sat(value: float, target: TruncTarget) -> int:
    """Truncate a float toward zero, saturating at the target's limits and mapping NaN to 0."""
    if math.isnan(value):
        return 0
    if value <= target.rmin:
        return target.int_min
    if value >= target.rmax:
        return target.int_max
    return int(value)


def _negative(x: float) -> bool:
    return math.copysign(1.0, x) < 0


def fmin(a: float, b: float) -> float:
    """Minimum with NaN propagation and -0.0 ordered below +0.0."""
    if math.isnan(a) or math.isnan(b):
        return math.nan
    if a == 0 and a == b:
        return a if _negative(a) else b
    return b if a > b else a


def fmax(a: float, b: float) -> float:
    """Maximum with NaN propagation and +0.0 ordered above -0.0."""
    if math.isnan(a) or math.isnan(b):
        return math.nan
    if a == 0 and a == b:
        return b if _negative(a) else a
    return a if a > b else b