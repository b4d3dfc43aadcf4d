"""Interpreter configuration and platform helpers."""

from __future__ import annotations

import platform
from dataclasses import dataclass


@dataclass(frozen=True)
class Config:
    """Tunable limits and switches of the interpreter."""

    code_page_align_size: int = 4096
    enable_code_page_ref_counting: bool = False
    max_function_stack_height: int = 2000
    max_function_slots: int = 4000
    max_constant_table_size: int = 120
    log_output: bool = True
    verbose_logs: bool = True
    fixed_heap: int | None = None
    fixed_heap_align: int = 16
    use_32bit_slots: bool = True
    profiler_slot_mask: int = 0xFFFF

    enable_op_profiling: bool = False
    enable_op_tracing: bool = False

    log_parse: bool = True
    log_module: bool = True
    log_compile: bool = True
    log_wasm_stack: bool = True
    log_emit: bool = True
    log_code_pages: bool = True
    log_exec: bool = True
    log_runtime: bool = True
    log_stack_trace: bool = True
    log_native_stack: bool = False

    has_float: bool = True
    skip_stack_check: bool = False
    skip_memory_bounds_check: bool = False

    def __post_init__(self) -> None:
        for name in ("code_page_align_size", "fixed_heap_align"):
            value = getattr(self, name)
            if value <= 0 or value & (value - 1):
                raise ValueError(f"{name} must be a positive power of two, got {value}")
        if self.max_function_stack_height <= 0:
            raise ValueError("max_function_stack_height must be positive")
        if self.max_function_slots <= 0:
            raise ValueError("max_function_slots must be positive")
        if self.fixed_heap is not None and self.fixed_heap <= 0:
            raise ValueError("fixed_heap must be positive when set")


_EXACT_ARCH = {
    "wasm32": "wasm",
    "wasm64": "wasm",
    "x86_64": "x86_64",
    "amd64": "x86_64",
    "x64": "x86_64",
    "i386": "i386",
    "i486": "i386",
    "i586": "i386",
    "i686": "i386",
    "x86": "i386",
    "aarch64": "arm64-v8a",
    "arm64": "arm64-v8a",
    "armv7l": "arm-v7a",
    "armv7a": "arm-v7a",
    "armv7": "arm-v7a",
    "riscv32": "rv32i",
    "riscv64": "rv64i",
    "riscv128": "rv128i",
    "mips": "mips",
    "mipsel": "mipsel",
    "mips64": "mips64",
    "mips64el": "mips64el",
    "ppc64le": "ppc64le",
    "ppc64": "ppc64",
    "ppc": "ppc",
    "powerpc": "ppc",
    "sparc64": "sparc64",
    "sparc": "sparc",
    "s390x": "s390x",
    "alpha": "alpha",
    "m68k": "m68k",
    "xtensa": "xtensa",
    "arc": "arc32",
    "avr": "avr",
}


def detect_arch(machine: str | None = None) -> str:
    """Return the architecture name for a machine string (the host's by default)."""
    if machine is None:
        machine = platform.machine()
    key = machine.strip().lower()
    if key in _EXACT_ARCH:
        return _EXACT_ARCH[key]
    if key.startswith("arm"):
        return "arm"
    return "unknown"


def _bswap(x: int, size: int) -> int:
    mask = (1 << (8 * size)) - 1
    return int.from_bytes((x & mask).to_bytes(size, "little"), "big")


def bswap16(x: int) -> int:
    """Reverse the byte order of a 16-bit value."""
    return _bswap(x, 2)


def bswap32(x: int) -> int:
    """Reverse the byte order of a 32-bit value."""
    return _bswap(x, 4)


def bswap64(x: int) -> int:
    """Reverse the byte order of a 64-bit value."""
    return _bswap(x, 8)