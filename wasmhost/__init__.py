"""Host-side support for a WebAssembly interpreter: signatures, code pages, memory and host function sets."""

__version__ = "0.1.0"

__all__ = [
    "errors",
    "config",
    "mathutils",
    "code",
    "hostapi",
    "bind",
    "libc",
    "tracer",
    "wasi_support",
    "wasi",
]