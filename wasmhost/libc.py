"""Host functions for a minimal C library and the spec-test environment."""

from __future__ import annotations

import time

from .bind import HostModule, RawFunction
from .errors import FunctionLookupFailed, TrapAbort, TrapExit
from .hostapi import Frame, Runtime

_MASK32 = 0xFFFFFFFF
CLOCKS_PER_SEC = 1_000_000


def libc_abort(runtime: Runtime, frame: Frame) -> None:
    """Stop execution with an abort trap."""
    raise TrapAbort()


def libc_exit(runtime: Runtime, frame: Frame) -> None:
    """Stop execution with an exit trap carrying the status code."""
    code = frame.arg("i")
    raise TrapExit(code)


def libc_memset(runtime: Runtime, frame: Frame) -> None:
    """Fill guest memory with a byte value and return the destination offset."""
    ptr = frame.arg("*")
    value = frame.arg("i")
    size = frame.arg("i") & _MASK32
    runtime.memory.write_bytes(ptr, bytes([value & 0xFF]) * size)
    frame.set_return("i", ptr)


def libc_memmove(runtime: Runtime, frame: Frame) -> None:
    """Copy a possibly overlapping region of guest memory; return the destination."""
    dst = frame.arg("*")
    src = frame.arg("*")
    size = frame.arg("i") & _MASK32
    data = runtime.memory.read_bytes(src, size)
    runtime.memory.write_bytes(dst, data)
    frame.set_return("i", dst)


def libc_clock(runtime: Runtime, frame: Frame) -> None:
    """Return processor time used, in ticks of CLOCKS_PER_SEC."""
    ticks = int(time.process_time() * CLOCKS_PER_SEC)
    frame.set_return("i", ticks & _MASK32)


def spectest_print(runtime: Runtime, frame: Frame) -> None:
    """Accept any spec-test print call and do nothing."""


def raw_sum(runtime: Runtime, frame: Frame) -> None:
    """Return the sum of four 32-bit arguments as a 64-bit value."""
    total = sum(frame.arg("i") for _ in range(4))
    frame.set_return("I", total)


def _link_optional(
    module: HostModule, module_name: str, field_name: str, signature: str, function: RawFunction
) -> None:
    try:
        module.link_raw_function(module_name, field_name, signature, function)
    except FunctionLookupFailed:
        pass


_SPECTEST_LINKS = (
    ("spectest", "print", "v()", spectest_print),
    ("spectest", "print_i32", "v(i)", spectest_print),
    ("spectest", "print_i64", "v(I)", spectest_print),
    ("spectest", "print_f32", "v(f)", spectest_print),
    ("spectest", "print_f64", "v(F)", spectest_print),
    ("spectest", "print_i32_f32", "v(if)", spectest_print),
    ("spectest", "print_i64_f64", "v(IF)", spectest_print),
    ("wasm3", "raw_sum", "I(iiii)", raw_sum),
)

_LIBC_LINKS = (
    ("env", "_memset", "*(*ii)", libc_memset),
    ("env", "_memmove", "*(**i)", libc_memmove),
    ("env", "_memcpy", "*(**i)", libc_memmove),
    ("env", "_abort", "v()", libc_abort),
    ("env", "_exit", "v(i)", libc_exit),
    ("env", "_clock", "i()", libc_clock),
)


def link_spectest(module: HostModule) -> None:
    """Link the spec-test print functions and raw_sum wherever the module imports them."""
    for entry in _SPECTEST_LINKS:
        _link_optional(module, *entry)


def link_libc(module: HostModule) -> None:
    """Link the C library functions wherever the module imports them."""
    for entry in _LIBC_LINKS:
        _link_optional(module, *entry)