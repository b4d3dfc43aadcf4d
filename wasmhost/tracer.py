"""Host functions that record execution and memory accesses to a CSV trace."""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path
from typing import IO, Callable

from .bind import HostModule, RawFunction
from .errors import FunctionLookupFailed
from .hostapi import Frame, Runtime

DEFAULT_TRACE_PATH = "wasm3_trace.csv"


def _format(kind: str, value: int | float) -> str:
    if kind in ("f", "F"):
        return f"{value:f}"
    return str(value)


class Tracer:
    """Writes trace lines; the output is opened once any trace import gets linked."""

    def __init__(
        self, path: str | os.PathLike[str] = DEFAULT_TRACE_PATH, stream: IO[str] | None = None
    ) -> None:
        self.path = Path(path)
        self._stream = stream
        self._owned = False

    def __enter__(self) -> Tracer:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        """Whether trace output is available."""
        return self._stream is not None

    def _open(self) -> None:
        if self._stream is None:
            self._stream = open(self.path, "w", encoding="utf-8")
            self._owned = True

    def log(self, line: str) -> None:
        """Write one trace line."""
        self._open()
        assert self._stream is not None
        self._stream.write(line + "\n")

    def close(self) -> None:
        """Close the trace file if this tracer opened it."""
        if self._stream is not None and self._owned:
            self._stream.close()
        self._stream = None
        self._owned = False

    def _log_execution(self, runtime: Runtime, frame: Frame) -> None:
        self.log(f"exec;{frame.arg('i')}")

    def _log_exec_enter(self, runtime: Runtime, frame: Frame) -> None:
        ident, func = frame.arg("i"), frame.arg("i")
        self.log(f"enter;{ident};{func}")

    def _log_exec_exit(self, runtime: Runtime, frame: Frame) -> None:
        ident, func = frame.arg("i"), frame.arg("i")
        self.log(f"exit;{ident};{func}")

    def _log_exec_loop(self, runtime: Runtime, frame: Frame) -> None:
        self.log(f"loop;{frame.arg('i')}")

    def _pointer(self, name: str) -> RawFunction:
        def host(runtime: Runtime, frame: Frame) -> None:
            ident, align, offset, address = (frame.arg("i") for _ in range(4))
            self.log(f"{name};{ident};{align};{offset};{address}")
            frame.set_return("i", address)

        return host

    def _memory_value(self, name: str, kind: str) -> RawFunction:
        def host(runtime: Runtime, frame: Frame) -> None:
            ident = frame.arg("i")
            value = frame.arg(kind)
            self.log(f"{name};{ident};{_format(kind, value)}")
            frame.set_return(kind, value)

        return host

    def _local_value(self, name: str, kind: str) -> RawFunction:
        def host(runtime: Runtime, frame: Frame) -> None:
            ident = frame.arg("i")
            local = frame.arg("i")
            value = frame.arg(kind)
            self.log(f"{name};{ident};{local};{_format(kind, value)}")
            frame.set_return(kind, value)

        return host

    def _host_functions(self) -> Iterator[tuple[str, str, Callable[[Runtime, Frame], None]]]:
        yield "log_execution", "v(i)", self._log_execution
        yield "log_exec_enter", "v(ii)", self._log_exec_enter
        yield "log_exec_exit", "v(ii)", self._log_exec_exit
        yield "log_exec_loop", "v(i)", self._log_exec_loop
        yield "load_ptr", "i(iiii)", self._pointer("load ptr")
        yield "store_ptr", "i(iiii)", self._pointer("store ptr")
        for op in ("load", "store"):
            for kind, type_name in (("i", "i32"), ("I", "i64"), ("f", "f32"), ("F", "f64")):
                yield (
                    f"{op}_val_{type_name}",
                    f"{kind}(i{kind})",
                    self._memory_value(f"{op} {type_name}", kind),
                )
        for op in ("get", "set"):
            for kind, type_name in (("i", "i32"), ("I", "i64"), ("f", "f32"), ("F", "f64")):
                yield (
                    f"{op}_{type_name}",
                    f"{kind}(ii{kind})",
                    self._local_value(f"{op} {type_name}", kind),
                )

    def link(self, module: HostModule) -> None:
        """Link every trace function the module imports from "env"."""
        for field_name, signature, function in self._host_functions():
            try:
                module.link_raw_function("env", field_name, signature, function)
            except FunctionLookupFailed:
                continue
            self._open()