"""WASI host functions backed by the host operating system."""

from __future__ import annotations

import os
import time
from collections.abc import Iterator
from typing import Callable

from .bind import HostModule
from .errors import FunctionLookupFailed, TrapExit
from .hostapi import Frame, Runtime
from .wasi_support import (
    ALL_RIGHTS,
    DEFAULT_CLOCK_RESOLUTION,
    FILETYPE_DIRECTORY,
    FILETYPE_REGULAR_FILE,
    NANOSECONDS_PER_SECOND,
    PREOPENTYPE_DIR,
    Preopen,
    WasiClock,
    WasiErrno,
    default_preopens,
    errno_to_wasi,
    fdflags_from_os,
    filetype_from_mode,
    open_flags,
    timespec_to_timestamp,
    whence_to_os,
)

try:
    import fcntl as _fcntl
except ImportError:  # pragma: no cover - platforms without fcntl
    _fcntl = None

NAMESPACES = ("wasi_unstable", "wasi_snapshot_preview1")
MAX_PATH_LENGTH = 512
FIRST_PREOPENED_DIR = 3
FILE_MODE = 0o644

_MASK32 = 0xFFFFFFFF

_FALLBACK_CLOCKS: dict[WasiClock, Callable[[], int]] = {
    WasiClock.REALTIME: time.time_ns,
    WasiClock.MONOTONIC: time.monotonic_ns,
    WasiClock.PROCESS_CPUTIME_ID: time.process_time_ns,
    WasiClock.THREAD_CPUTIME_ID: time.thread_time_ns,
}


def _now_ns(clock: WasiClock) -> int:
    os_clock = clock.os_clock
    if os_clock is not None and hasattr(time, "clock_gettime_ns"):
        return time.clock_gettime_ns(os_clock)
    return _FALLBACK_CLOCKS[clock]()


def _ns_to_timestamp(total_ns: int) -> int:
    seconds, nanoseconds = divmod(total_ns, NANOSECONDS_PER_SECOND)
    return timespec_to_timestamp(seconds, nanoseconds)


def _reply(frame: Frame, code: int) -> None:
    frame.set_return("i", int(code))


class Wasi:
    """WASI system calls for one guest, with its table of pre-opened descriptors."""

    def __init__(self, preopens: list[Preopen] | None = None) -> None:
        self.preopens = preopens if preopens is not None else default_preopens()

    def __enter__(self) -> Wasi:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def open_preopens(self) -> None:
        """Open the pre-opened directories; an entry that cannot be opened keeps fd -1."""
        for preopen in self.preopens[FIRST_PREOPENED_DIR:]:
            if preopen.fd >= 0:
                continue
            try:
                preopen.fd = os.open(preopen.path, os.O_RDONLY)
            except OSError:
                preopen.fd = -1

    def close(self) -> None:
        """Close the pre-opened directories."""
        for preopen in self.preopens[FIRST_PREOPENED_DIR:]:
            if preopen.fd >= 0:
                try:
                    os.close(preopen.fd)
                except OSError:
                    pass
                preopen.fd = -1

    def _host_functions(self) -> Iterator[tuple[str, str, Callable[[Runtime, Frame], None]]]:
        yield "args_get", "i(**)", self.args_get
        yield "args_sizes_get", "i(**)", self.args_sizes_get
        yield "clock_res_get", "i(i*)", self.clock_res_get
        yield "clock_time_get", "i(iI*)", self.clock_time_get
        yield "environ_get", "i(**)", self.environ_get
        yield "environ_sizes_get", "i(**)", self.environ_sizes_get
        yield "fd_close", "i(i)", self.fd_close
        yield "fd_datasync", "i(i)", self.fd_datasync
        yield "fd_fdstat_get", "i(i*)", self.fd_fdstat_get
        yield "fd_fdstat_set_flags", "i(ii)", self.fd_fdstat_set_flags
        yield "fd_prestat_get", "i(i*)", self.fd_prestat_get
        yield "fd_prestat_dir_name", "i(i*i)", self.fd_prestat_dir_name
        yield "fd_read", "i(i*i*)", self.fd_read
        yield "fd_seek", "i(iIi*)", self.fd_seek
        yield "fd_write", "i(i*i*)", self.fd_write
        yield "path_open", "i(ii*iiIIi*)", self.path_open
        yield "proc_exit", "v(i)", self.proc_exit
        yield "random_get", "i(*i)", self.random_get

    def link(self, module: HostModule) -> None:
        """Open the pre-opens and link every WASI function the module imports."""
        self.open_preopens()
        for namespace in NAMESPACES:
            for field_name, signature, function in self._host_functions():
                try:
                    module.link_raw_function(namespace, field_name, signature, function)
                except FunctionLookupFailed:
                    continue

    def args_get(self, runtime: Runtime, frame: Frame) -> None:
        """Write argument pointers and the NUL-terminated arguments into guest memory."""
        argv = frame.arg("*")
        argv_buf = frame.arg("*")
        if runtime is None:
            return _reply(frame, WasiErrno.EINVAL)
        for index, argument in enumerate(runtime.argv):
            runtime.memory.write32(argv + 4 * index, argv_buf)
            encoded = argument.encode() + b"\0"
            runtime.memory.write_bytes(argv_buf, encoded)
            argv_buf += len(encoded)
        _reply(frame, WasiErrno.ESUCCESS)

    def args_sizes_get(self, runtime: Runtime, frame: Frame) -> None:
        """Write the argument count and the buffer size the arguments need."""
        argc_ptr = frame.arg("*")
        size_ptr = frame.arg("*")
        if runtime is None:
            return _reply(frame, WasiErrno.EINVAL)
        buffer_size = sum(len(argument.encode()) + 1 for argument in runtime.argv)
        runtime.memory.write32(argc_ptr, len(runtime.argv))
        runtime.memory.write32(size_ptr, buffer_size)
        _reply(frame, WasiErrno.ESUCCESS)

    def environ_get(self, runtime: Runtime, frame: Frame) -> None:
        """The guest environment is empty: nothing is written."""
        frame.arg("*")
        frame.arg("*")
        if runtime is None:
            return _reply(frame, WasiErrno.EINVAL)
        _reply(frame, WasiErrno.ESUCCESS)

    def environ_sizes_get(self, runtime: Runtime, frame: Frame) -> None:
        """Report an empty environment."""
        count_ptr = frame.arg("*")
        size_ptr = frame.arg("*")
        if runtime is None:
            return _reply(frame, WasiErrno.EINVAL)
        runtime.memory.write32(count_ptr, 0)
        runtime.memory.write32(size_ptr, 0)
        _reply(frame, WasiErrno.ESUCCESS)

    def _preopen_dir(self, fd: int) -> Preopen | None:
        if FIRST_PREOPENED_DIR <= fd < len(self.preopens):
            return self.preopens[fd]
        return None

    def fd_prestat_dir_name(self, runtime: Runtime, frame: Frame) -> None:
        """Copy a pre-opened directory's path, truncated to the buffer length."""
        fd = frame.arg("i")
        path_ptr = frame.arg("*")
        path_len = frame.arg("i") & _MASK32
        if runtime is None:
            return _reply(frame, WasiErrno.EINVAL)
        preopen = self._preopen_dir(fd)
        if preopen is None:
            return _reply(frame, WasiErrno.EBADF)
        runtime.memory.write_bytes(path_ptr, preopen.path.encode()[:path_len])
        _reply(frame, WasiErrno.ESUCCESS)

    def fd_prestat_get(self, runtime: Runtime, frame: Frame) -> None:
        """Describe a pre-opened directory: its type and path length."""
        fd = frame.arg("i")
        buf = frame.arg("*")
        if runtime is None:
            return _reply(frame, WasiErrno.EINVAL)
        preopen = self._preopen_dir(fd)
        if preopen is None:
            return _reply(frame, WasiErrno.EBADF)
        runtime.memory.write32(buf, PREOPENTYPE_DIR)
        runtime.memory.write32(buf + 4, len(preopen.path.encode()))
        _reply(frame, WasiErrno.ESUCCESS)

    def fd_fdstat_get(self, runtime: Runtime, frame: Frame) -> None:
        """Write a descriptor's file type, flags and rights."""
        fd = frame.arg("i")
        stat_ptr = frame.arg("*")
        if runtime is None:
            return _reply(frame, WasiErrno.EINVAL)
        if _fcntl is None:
            filetype = FILETYPE_DIRECTORY if fd < len(self.preopens) else FILETYPE_REGULAR_FILE
            flags = 0
        else:
            try:
                status = _fcntl.fcntl(fd, _fcntl.F_GETFL)
                mode = os.fstat(fd).st_mode
            except OSError as exc:
                return _reply(frame, errno_to_wasi(exc.errno or 0))
            filetype = filetype_from_mode(mode)
            flags = fdflags_from_os(status)
        runtime.memory.write_bytes(stat_ptr, bytes([filetype]))
        runtime.memory.write16(stat_ptr + 2, flags)
        runtime.memory.write64(stat_ptr + 8, ALL_RIGHTS)
        runtime.memory.write64(stat_ptr + 16, ALL_RIGHTS)
        _reply(frame, WasiErrno.ESUCCESS)

    def fd_fdstat_set_flags(self, runtime: Runtime, frame: Frame) -> None:
        """Accept a request to change descriptor flags without acting on it."""
        frame.arg("i")
        frame.arg("i")
        _reply(frame, WasiErrno.ESUCCESS)

    def fd_seek(self, runtime: Runtime, frame: Frame) -> None:
        """Move a descriptor's offset and write the new position."""
        fd = frame.arg("i")
        offset = frame.arg("I")
        whence = frame.arg("i")
        result_ptr = frame.arg("*")
        if runtime is None:
            return _reply(frame, WasiErrno.EINVAL)
        try:
            position = os.lseek(fd, offset, whence_to_os(whence))
        except OSError as exc:
            return _reply(frame, errno_to_wasi(exc.errno or 0))
        runtime.memory.write64(result_ptr, position)
        _reply(frame, WasiErrno.ESUCCESS)

    def path_open(self, runtime: Runtime, frame: Frame) -> None:
        """Open a path relative to a directory descriptor and write the new descriptor."""
        dirfd = frame.arg("i")
        frame.arg("i")  # lookup flags
        path_ptr = frame.arg("*")
        path_len = frame.arg("i") & _MASK32
        oflags = frame.arg("i")
        rights_base = frame.arg("I")
        frame.arg("I")  # inheriting rights
        fs_flags = frame.arg("i")
        fd_ptr = frame.arg("*")

        if path_len >= MAX_PATH_LENGTH:
            return _reply(frame, WasiErrno.EINVAL)
        raw_path = runtime.memory.read_bytes(path_ptr, path_len).split(b"\0", 1)[0]
        path = os.fsdecode(raw_path)
        flags = open_flags(oflags, fs_flags, rights_base)

        preopen = self._preopen_dir(dirfd)
        host_dirfd = preopen.fd if preopen is not None and preopen.fd >= 0 else dirfd
        try:
            if os.open in os.supports_dir_fd:
                host_fd = os.open(path, flags, FILE_MODE, dir_fd=host_dirfd)
            else:
                if preopen is not None:
                    path = os.path.join(preopen.path, path)
                host_fd = os.open(path, flags, FILE_MODE)
        except OSError as exc:
            return _reply(frame, errno_to_wasi(exc.errno or 0))
        runtime.memory.write32(fd_ptr, host_fd)
        _reply(frame, WasiErrno.ESUCCESS)

    def _iovecs(self, runtime: Runtime, iovs: int, count: int) -> Iterator[tuple[int, int]]:
        for index in range(count):
            base = iovs + 8 * index
            yield runtime.memory.read32(base), runtime.memory.read32(base + 4)

    def fd_read(self, runtime: Runtime, frame: Frame) -> None:
        """Scatter-read into guest buffers; stops at the first short read."""
        fd = frame.arg("i")
        iovs = frame.arg("*")
        count = frame.arg("i") & _MASK32
        nread_ptr = frame.arg("*")
        if runtime is None:
            return _reply(frame, WasiErrno.EINVAL)
        total = 0
        for address, length in self._iovecs(runtime, iovs, count):
            if length == 0:
                continue
            try:
                data = os.read(fd, length)
            except OSError as exc:
                return _reply(frame, errno_to_wasi(exc.errno or 0))
            runtime.memory.write_bytes(address, data)
            total += len(data)
            if len(data) < length:
                break
        runtime.memory.write32(nread_ptr, total)
        _reply(frame, WasiErrno.ESUCCESS)

    def fd_write(self, runtime: Runtime, frame: Frame) -> None:
        """Gather-write guest buffers; stops at the first short write."""
        fd = frame.arg("i")
        iovs = frame.arg("*")
        count = frame.arg("i") & _MASK32
        nwritten_ptr = frame.arg("*")
        if runtime is None:
            return _reply(frame, WasiErrno.EINVAL)
        total = 0
        for address, length in self._iovecs(runtime, iovs, count):
            if length == 0:
                continue
            try:
                written = os.write(fd, runtime.memory.read_bytes(address, length))
            except OSError as exc:
                return _reply(frame, errno_to_wasi(exc.errno or 0))
            total += written
            if written < length:
                break
        runtime.memory.write32(nwritten_ptr, total)
        _reply(frame, WasiErrno.ESUCCESS)

    def fd_close(self, runtime: Runtime, frame: Frame) -> None:
        """Close a descriptor."""
        fd = frame.arg("i")
        try:
            os.close(fd)
        except OSError as exc:
            return _reply(frame, errno_to_wasi(exc.errno or 0))
        _reply(frame, WasiErrno.ESUCCESS)

    def fd_datasync(self, runtime: Runtime, frame: Frame) -> None:
        """Flush a descriptor's data to storage."""
        fd = frame.arg("i")
        sync = getattr(os, "fdatasync", None) or getattr(os, "fsync", None)
        if sync is None:
            return _reply(frame, WasiErrno.ENOSYS)
        try:
            sync(fd)
        except OSError as exc:
            return _reply(frame, errno_to_wasi(exc.errno or 0))
        _reply(frame, WasiErrno.ESUCCESS)

    def random_get(self, runtime: Runtime, frame: Frame) -> None:
        """Fill a guest buffer with random bytes."""
        buf = frame.arg("*")
        length = frame.arg("i") & _MASK32
        try:
            data = os.urandom(length)
        except OSError as exc:
            return _reply(frame, errno_to_wasi(exc.errno or 0))
        runtime.memory.write_bytes(buf, data)
        _reply(frame, WasiErrno.ESUCCESS)

    def clock_res_get(self, runtime: Runtime, frame: Frame) -> None:
        """Write a clock's resolution in nanoseconds."""
        clock_id = frame.arg("i")
        result_ptr = frame.arg("*")
        if runtime is None:
            return _reply(frame, WasiErrno.EINVAL)
        try:
            clock = WasiClock(clock_id)
        except ValueError:
            return _reply(frame, WasiErrno.EINVAL)
        resolution = DEFAULT_CLOCK_RESOLUTION
        if clock.os_clock is not None and hasattr(time, "clock_getres"):
            try:
                seconds = time.clock_getres(clock.os_clock)
            except OSError:
                pass
            else:
                whole = int(seconds)
                nanos = round((seconds - whole) * NANOSECONDS_PER_SECOND)
                resolution = timespec_to_timestamp(whole, nanos)
        runtime.memory.write64(result_ptr, resolution)
        _reply(frame, WasiErrno.ESUCCESS)

    def clock_time_get(self, runtime: Runtime, frame: Frame) -> None:
        """Write a clock's current time in nanoseconds."""
        clock_id = frame.arg("i")
        frame.arg("I")  # precision
        result_ptr = frame.arg("*")
        if runtime is None:
            return _reply(frame, WasiErrno.EINVAL)
        try:
            clock = WasiClock(clock_id)
        except ValueError:
            return _reply(frame, WasiErrno.EINVAL)
        try:
            now = _now_ns(clock)
        except OSError as exc:
            return _reply(frame, errno_to_wasi(exc.errno or 0))
        runtime.memory.write64(result_ptr, _ns_to_timestamp(now))
        _reply(frame, WasiErrno.ESUCCESS)

    def proc_exit(self, runtime: Runtime, frame: Frame) -> None:
        """Record the exit code and stop execution."""
        code = frame.arg("i") & _MASK32
        runtime.exit_code = code
        raise TrapExit(code)


def link_wasi(module: HostModule) -> Wasi:
    """Link WASI functions into the module and return the instance serving them."""
    wasi = Wasi()
    wasi.link(module)
    return wasi