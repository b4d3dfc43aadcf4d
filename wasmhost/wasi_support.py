"""WASI constants and translations between WASI values and the host's."""

from __future__ import annotations

import errno
import os
import stat
import time
from dataclasses import dataclass
from enum import IntEnum

UINT64_MAX = 0xFFFFFFFFFFFFFFFF
NANOSECONDS_PER_SECOND = 1_000_000_000
DEFAULT_CLOCK_RESOLUTION = 1_000_000

PREOPEN_COUNT = 4
PREOPENTYPE_DIR = 0

FILETYPE_UNKNOWN = 0
FILETYPE_BLOCK_DEVICE = 1
FILETYPE_CHARACTER_DEVICE = 2
FILETYPE_DIRECTORY = 3
FILETYPE_REGULAR_FILE = 4
FILETYPE_SOCKET_DGRAM = 5
FILETYPE_SOCKET_STREAM = 6
FILETYPE_SYMBOLIC_LINK = 7

FDFLAG_APPEND = 0x0001
FDFLAG_DSYNC = 0x0002
FDFLAG_NONBLOCK = 0x0004
FDFLAG_RSYNC = 0x0008
FDFLAG_SYNC = 0x0010

O_CREAT = 0x0001
O_DIRECTORY = 0x0002
O_EXCL = 0x0004
O_TRUNC = 0x0008

RIGHT_FD_DATASYNC = 1 << 0
RIGHT_FD_READ = 1 << 1
RIGHT_FD_SEEK = 1 << 2
RIGHT_FD_FDSTAT_SET_FLAGS = 1 << 3
RIGHT_FD_SYNC = 1 << 4
RIGHT_FD_TELL = 1 << 5
RIGHT_FD_WRITE = 1 << 6
ALL_RIGHTS = UINT64_MAX

# Host flags that some platforms lack; 0 means "not available".
_OS_O_DSYNC = getattr(os, "O_DSYNC", 0)
_OS_O_NONBLOCK = getattr(os, "O_NONBLOCK", 0)
_OS_O_SYNC = getattr(os, "O_SYNC", 0)


class WasiErrno(IntEnum):
    """WASI error numbers."""

    ESUCCESS = 0
    E2BIG = 1
    EACCES = 2
    EADDRINUSE = 3
    EADDRNOTAVAIL = 4
    EAFNOSUPPORT = 5
    EAGAIN = 6
    EALREADY = 7
    EBADF = 8
    EBADMSG = 9
    EBUSY = 10
    ECANCELED = 11
    ECHILD = 12
    ECONNABORTED = 13
    ECONNREFUSED = 14
    ECONNRESET = 15
    EDEADLK = 16
    EDESTADDRREQ = 17
    EDOM = 18
    EDQUOT = 19
    EEXIST = 20
    EFAULT = 21
    EFBIG = 22
    EHOSTUNREACH = 23
    EIDRM = 24
    EILSEQ = 25
    EINPROGRESS = 26
    EINTR = 27
    EINVAL = 28
    EIO = 29
    EISCONN = 30
    EISDIR = 31
    ELOOP = 32
    EMFILE = 33
    EMLINK = 34
    EMSGSIZE = 35
    EMULTIHOP = 36
    ENAMETOOLONG = 37
    ENETDOWN = 38
    ENETRESET = 39
    ENETUNREACH = 40
    ENFILE = 41
    ENOBUFS = 42
    ENODEV = 43
    ENOENT = 44
    ENOEXEC = 45
    ENOLCK = 46
    ENOLINK = 47
    ENOMEM = 48
    ENOMSG = 49
    ENOPROTOOPT = 50
    ENOSPC = 51
    ENOSYS = 52
    ENOTCONN = 53
    ENOTDIR = 54
    ENOTEMPTY = 55
    ENOTRECOVERABLE = 56
    ENOTSOCK = 57
    ENOTSUP = 58
    ENOTTY = 59
    ENXIO = 60
    EOVERFLOW = 61
    EOWNERDEAD = 62
    EPERM = 63
    EPIPE = 64
    EPROTO = 65
    EPROTONOSUPPORT = 66
    EPROTOTYPE = 67
    ERANGE = 68
    EROFS = 69
    ESPIPE = 70
    ESRCH = 71
    ESTALE = 72
    ETIMEDOUT = 73
    ETXTBSY = 74
    EXDEV = 75
    ENOTCAPABLE = 76


class WasiClock(IntEnum):
    """WASI clock identifiers."""

    REALTIME = 0
    MONOTONIC = 1
    PROCESS_CPUTIME_ID = 2
    THREAD_CPUTIME_ID = 3

    @property
    def os_clock(self) -> int | None:
        """The matching host clock id, or None where the host has none."""
        return _OS_CLOCKS.get(self)


_OS_CLOCKS: dict[WasiClock, int | None] = {
    WasiClock.REALTIME: getattr(time, "CLOCK_REALTIME", None),
    WasiClock.MONOTONIC: getattr(time, "CLOCK_MONOTONIC", None),
    WasiClock.PROCESS_CPUTIME_ID: getattr(time, "CLOCK_PROCESS_CPUTIME_ID", None),
    WasiClock.THREAD_CPUTIME_ID: getattr(time, "CLOCK_THREAD_CPUTIME_ID", None),
}


class WasiWhence(IntEnum):
    """Seek origins as numbered by WASI."""

    CUR = 0
    END = 1
    SET = 2


@dataclass
class Preopen:
    """A pre-opened descriptor and the path it stands for (fd is -1 until opened)."""

    fd: int
    path: str


_ERRNO_NAMES = (
    "EPERM", "ENOENT", "ESRCH", "EINTR", "EIO", "ENXIO", "E2BIG", "ENOEXEC",
    "EBADF", "ECHILD", "EAGAIN", "ENOMEM", "EACCES", "EFAULT", "EBUSY", "EEXIST",
    "EXDEV", "ENODEV", "ENOTDIR", "EISDIR", "EINVAL", "ENFILE", "EMFILE", "ENOTTY",
    "ETXTBSY", "EFBIG", "ENOSPC", "ESPIPE", "EROFS", "EMLINK", "EPIPE", "EDOM",
    "ERANGE",
)


def _build_errno_map() -> dict[int, WasiErrno]:
    host_codes = {name: code for code, name in errno.errorcode.items()}
    mapping: dict[int, WasiErrno] = {}
    # Earlier names win where the host gives two names the same number.
    for name in reversed(_ERRNO_NAMES):
        code = host_codes.get(name)
        if code is not None:
            mapping[code] = WasiErrno[name]
    return mapping


_ERRNO_MAP = _build_errno_map()


def errno_to_wasi(errnum: int) -> WasiErrno:
    """Translate a host errno to its WASI number; anything unknown becomes EINVAL."""
    return _ERRNO_MAP.get(errnum, WasiErrno.EINVAL)


def timespec_to_timestamp(seconds: int, nanoseconds: int) -> int:
    """Nanoseconds since the epoch, clamped to 0 and to the largest 64-bit value."""
    if seconds < 0:
        return 0
    if seconds >= UINT64_MAX // NANOSECONDS_PER_SECOND:
        return UINT64_MAX
    return seconds * NANOSECONDS_PER_SECOND + nanoseconds


def default_preopens() -> list[Preopen]:
    """The standard streams followed by the current directory, not yet opened."""
    return [
        Preopen(0, "<stdin>"),
        Preopen(1, "<stdout>"),
        Preopen(2, "<stderr>"),
        Preopen(-1, "./"),
    ]


_WHENCE_TO_OS = {
    WasiWhence.CUR: os.SEEK_CUR,
    WasiWhence.END: os.SEEK_END,
    WasiWhence.SET: os.SEEK_SET,
}


def whence_to_os(whence: int) -> int:
    """Translate a WASI seek origin; raises OSError(EINVAL) for unknown values."""
    try:
        return _WHENCE_TO_OS[WasiWhence(whence)]
    except ValueError:
        raise OSError(errno.EINVAL, f"invalid whence {whence}") from None


def open_flags(oflags: int, fs_flags: int, rights_base: int) -> int:
    """Host open() flags for WASI open flags, descriptor flags and base rights."""
    flags = 0
    if oflags & O_CREAT:
        flags |= os.O_CREAT
    if oflags & O_EXCL:
        flags |= os.O_EXCL
    if oflags & O_TRUNC:
        flags |= os.O_TRUNC
    if fs_flags & FDFLAG_APPEND:
        flags |= os.O_APPEND
    if fs_flags & FDFLAG_DSYNC:
        flags |= _OS_O_DSYNC
    if fs_flags & FDFLAG_NONBLOCK:
        flags |= _OS_O_NONBLOCK
    if fs_flags & FDFLAG_SYNC:
        flags |= _OS_O_SYNC

    can_read = bool(rights_base & RIGHT_FD_READ)
    can_write = bool(rights_base & RIGHT_FD_WRITE)
    if can_read and can_write:
        flags |= os.O_RDWR
    elif can_write:
        flags |= os.O_WRONLY
    elif can_read:
        flags |= os.O_RDONLY
    return flags


def filetype_from_mode(mode: int) -> int:
    """WASI file type for a host st_mode value."""
    filetype = 0
    if stat.S_ISBLK(mode):
        filetype |= FILETYPE_BLOCK_DEVICE
    if stat.S_ISCHR(mode):
        filetype |= FILETYPE_CHARACTER_DEVICE
    if stat.S_ISDIR(mode):
        filetype |= FILETYPE_DIRECTORY
    if stat.S_ISREG(mode):
        filetype |= FILETYPE_REGULAR_FILE
    if stat.S_ISLNK(mode):
        filetype |= FILETYPE_SYMBOLIC_LINK
    return filetype


def fdflags_from_os(flags: int) -> int:
    """WASI descriptor flags for host file status flags."""
    result = 0
    if flags & os.O_APPEND:
        result |= FDFLAG_APPEND
    if flags & _OS_O_DSYNC:
        result |= FDFLAG_DSYNC
    if flags & _OS_O_NONBLOCK:
        result |= FDFLAG_NONBLOCK
    if flags & _OS_O_SYNC:
        result |= FDFLAG_SYNC
    return result