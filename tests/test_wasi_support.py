import errno
import os
import stat
import time

import pytest

from wasmhost.wasi_support import (
    FDFLAG_APPEND,
    FILETYPE_DIRECTORY,
    FILETYPE_REGULAR_FILE,
    FILETYPE_SYMBOLIC_LINK,
    FILETYPE_UNKNOWN,
    O_CREAT,
    O_EXCL,
    O_TRUNC,
    RIGHT_FD_READ,
    RIGHT_FD_WRITE,
    UINT64_MAX,
    NANOSECONDS_PER_SECOND,
    Preopen,
    WasiClock,
    WasiErrno,
    WasiWhence,
    default_preopens,
    errno_to_wasi,
    fdflags_from_os,
    filetype_from_mode,
    open_flags,
    timespec_to_timestamp,
    whence_to_os,
)


@pytest.mark.parametrize(
    "host, expected",
    [
        (errno.EPERM, WasiErrno.EPERM),
        (errno.ENOENT, WasiErrno.ENOENT),
        (errno.EBADF, WasiErrno.EBADF),
        (errno.EACCES, WasiErrno.EACCES),
        (errno.EEXIST, WasiErrno.EEXIST),
        (errno.EISDIR, WasiErrno.EISDIR),
        (errno.ENOTDIR, WasiErrno.ENOTDIR),
        (errno.ESPIPE, WasiErrno.ESPIPE),
        (errno.ERANGE, WasiErrno.ERANGE),
        (errno.EINVAL, WasiErrno.EINVAL),
    ],
)
def test_errno_to_wasi_known(host, expected):
    assert errno_to_wasi(host) is expected


def test_errno_to_wasi_unknown_is_einval():
    assert errno_to_wasi(987654) is WasiErrno.EINVAL


def test_errno_to_wasi_unmapped_host_errno_is_einval():
    assert errno_to_wasi(errno.ENAMETOOLONG) is WasiErrno.EINVAL


def test_wasi_errno_pinned_values():
    assert int(errno_to_wasi(errno.ENOENT)) == 44
    assert int(errno_to_wasi(errno.EBADF)) == 8


def test_timestamp_negative_seconds_is_zero():
    assert timespec_to_timestamp(-1, 500) == 0


def test_timestamp_saturates():
    limit = UINT64_MAX // NANOSECONDS_PER_SECOND
    assert timespec_to_timestamp(limit, 0) == UINT64_MAX
    assert timespec_to_timestamp(limit + 10, 0) == UINT64_MAX


def test_timestamp_one_second():
    assert timespec_to_timestamp(1, 0) == NANOSECONDS_PER_SECOND


def test_timestamp_is_monotonic_in_nanoseconds():
    assert timespec_to_timestamp(5, 1) > timespec_to_timestamp(5, 0)
    assert timespec_to_timestamp(6, 0) > timespec_to_timestamp(5, 999_999_999)


def test_default_preopens():
    preopens = default_preopens()
    assert [p.fd for p in preopens] == [0, 1, 2, -1]
    assert [p.path for p in preopens] == ["<stdin>", "<stdout>", "<stderr>", "./"]


def test_default_preopens_are_independent():
    first = default_preopens()
    first[3].fd = 42
    assert default_preopens()[3] == Preopen(-1, "./")


@pytest.mark.parametrize(
    "whence, expected",
    [
        (WasiWhence.CUR, os.SEEK_CUR),
        (WasiWhence.END, os.SEEK_END),
        (WasiWhence.SET, os.SEEK_SET),
    ],
)
def test_whence_to_os(whence, expected):
    assert whence_to_os(int(whence)) == expected


def test_whence_invalid_raises_einval():
    with pytest.raises(OSError) as info:
        whence_to_os(7)
    assert info.value.errno == errno.EINVAL


def test_open_flags_access_modes():
    access = os.O_RDWR | os.O_WRONLY
    assert open_flags(0, 0, RIGHT_FD_READ | RIGHT_FD_WRITE) & access == os.O_RDWR
    assert open_flags(0, 0, RIGHT_FD_WRITE) & access == os.O_WRONLY
    assert open_flags(0, 0, RIGHT_FD_READ) & access == os.O_RDONLY


def test_open_flags_creation_bits():
    flags = open_flags(O_CREAT | O_EXCL | O_TRUNC, FDFLAG_APPEND, RIGHT_FD_WRITE)
    for bit in (os.O_CREAT, os.O_EXCL, os.O_TRUNC, os.O_APPEND):
        assert flags & bit == bit


def test_open_flags_without_oflags_has_no_create():
    assert open_flags(0, 0, RIGHT_FD_READ) & os.O_CREAT == 0


def test_open_flags_round_trip_with_real_file(tmp_path):
    path = tmp_path / "data.bin"
    fd = os.open(path, open_flags(O_CREAT, 0, RIGHT_FD_WRITE), 0o644)
    try:
        os.write(fd, b"hello")
    finally:
        os.close(fd)
    fd = os.open(path, open_flags(0, 0, RIGHT_FD_READ))
    try:
        assert os.read(fd, 16) == b"hello"
    finally:
        os.close(fd)
    with pytest.raises(FileExistsError):
        os.open(path, open_flags(O_CREAT | O_EXCL, 0, RIGHT_FD_WRITE), 0o644)


def test_filetype_from_mode_directory(tmp_path):
    assert filetype_from_mode(os.stat(tmp_path).st_mode) == FILETYPE_DIRECTORY


def test_filetype_from_mode_regular(tmp_path):
    path = tmp_path / "f.txt"
    path.write_text("x")
    assert filetype_from_mode(os.stat(path).st_mode) == FILETYPE_REGULAR_FILE


def test_filetype_from_mode_symlink_and_unknown():
    assert filetype_from_mode(stat.S_IFLNK | 0o777) == FILETYPE_SYMBOLIC_LINK
    assert filetype_from_mode(0) == FILETYPE_UNKNOWN


def test_fdflags_from_os_append():
    assert fdflags_from_os(os.O_APPEND) & FDFLAG_APPEND == FDFLAG_APPEND
    assert fdflags_from_os(0) == 0


def test_clock_maps_to_host_clock():
    assert WasiClock.REALTIME.os_clock == getattr(time, "CLOCK_REALTIME", None)
    assert WasiClock.MONOTONIC.os_clock == getattr(time, "CLOCK_MONOTONIC", None)
    assert WasiClock(2) is WasiClock.PROCESS_CPUTIME_ID