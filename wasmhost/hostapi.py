"""Guest memory, argument frames and runtime state seen by host functions."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field

from .code import CodePageList
from .errors import Trap

_MASK32 = 0xFFFFFFFF
_MASK64 = 0xFFFFFFFFFFFFFFFF

DEFAULT_MEMORY_SIZE = 65536


class Memory:
    """Linear little-endian guest memory addressed by 32-bit offsets."""

    def __init__(self, size: int = DEFAULT_MEMORY_SIZE, data: bytes | None = None) -> None:
        self.data = bytearray(data) if data is not None else bytearray(size)

    def __len__(self) -> int:
        return len(self.data)

    def _check(self, offset: int, length: int) -> None:
        if offset < 0 or length < 0 or offset + length > len(self.data):
            raise Trap("[trap] out of bounds memory access")

    def _read(self, fmt: str, offset: int) -> int:
        self._check(offset, struct.calcsize(fmt))
        return struct.unpack_from(fmt, self.data, offset)[0]

    def _write(self, fmt: str, offset: int, value: int, mask: int) -> None:
        self._check(offset, struct.calcsize(fmt))
        struct.pack_into(fmt, self.data, offset, value & mask)

    def read16(self, offset: int) -> int:
        """Read an unsigned 16-bit value."""
        return self._read("<H", offset)

    def read32(self, offset: int) -> int:
        """Read an unsigned 32-bit value."""
        return self._read("<I", offset)

    def read64(self, offset: int) -> int:
        """Read an unsigned 64-bit value."""
        return self._read("<Q", offset)

    def write16(self, offset: int, value: int) -> None:
        """Write the low 16 bits of value."""
        self._write("<H", offset, value, 0xFFFF)

    def write32(self, offset: int, value: int) -> None:
        """Write the low 32 bits of value."""
        self._write("<I", offset, value, _MASK32)

    def write64(self, offset: int, value: int) -> None:
        """Write the low 64 bits of value."""
        self._write("<Q", offset, value, _MASK64)

    def read_bytes(self, offset: int, length: int) -> bytes:
        """Copy length bytes out of memory."""
        self._check(offset, length)
        return bytes(self.data[offset:offset + length])

    def write_bytes(self, offset: int, data: bytes) -> None:
        """Copy data into memory at offset."""
        self._check(offset, len(data))
        self.data[offset:offset + len(data)] = data


def _signed(value: int, bits: int) -> int:
    value &= (1 << bits) - 1
    return value - (1 << bits) if value >> (bits - 1) else value


@dataclass
class Frame:
    """Stack slots of one host call: arguments are read in order, the result goes to slot 0."""

    slots: list[int]
    position: int = 0

    def _next_slot(self) -> int:
        if self.position >= len(self.slots):
            raise IndexError("not enough arguments on the stack")
        value = self.slots[self.position]
        self.position += 1
        return value

    def arg(self, kind: str) -> int | float:
        """Take the next argument; kind is one of 'i', 'I', 'f', 'F', '*'."""
        if kind not in ("i", "I", "f", "F", "*"):
            raise ValueError(f"unknown argument kind {kind!r}")
        raw = self._next_slot() & _MASK64
        if kind == "i":
            return _signed(raw, 32)
        if kind == "I":
            return _signed(raw, 64)
        if kind == "f":
            return struct.unpack("<f", (raw & _MASK32).to_bytes(4, "little"))[0]
        if kind == "F":
            return struct.unpack("<d", raw.to_bytes(8, "little"))[0]
        return raw & _MASK32

    def set_return(self, kind: str, value: int | float) -> None:
        """Store the call's result in slot 0."""
        if not self.slots:
            raise IndexError("no stack slot for the return value")
        current = self.slots[0] & _MASK64
        if kind in ("i", "*"):
            self.slots[0] = (current & ~_MASK32 & _MASK64) | (int(value) & _MASK32)
        elif kind == "I":
            self.slots[0] = int(value) & _MASK64
        elif kind == "f":
            bits = int.from_bytes(struct.pack("<f", value), "little")
            self.slots[0] = (current & ~_MASK32 & _MASK64) | bits
        elif kind == "F":
            self.slots[0] = int.from_bytes(struct.pack("<d", value), "little")
        else:
            raise ValueError(f"unknown return kind {kind!r}")


@dataclass
class Runtime:
    """State shared by host functions: memory, program arguments, exit code and code pages."""

    memory: Memory = field(default_factory=Memory)
    argv: list[str] = field(default_factory=list)
    exit_code: int = 0
    code_pages: CodePageList = field(default_factory=CodePageList)