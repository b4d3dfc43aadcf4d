"""Code pages: fixed-capacity blocks of compiled words, and lists of them."""

from __future__ import annotations

import itertools
from collections.abc import Iterator
from typing import Any

WORD_SIZE = 8
PAGE_HEADER_SIZE = 32
DEFAULT_ALIGN_SIZE = 4096

_MASK32 = 0xFFFFFFFF
_MASK64 = 0xFFFFFFFFFFFFFFFF

_sequence = itertools.count(1)


class CodePage:
    """A block of code lines sized up to the page alignment."""

    def __init__(self, min_num_lines: int, align_size: int = DEFAULT_ALIGN_SIZE) -> None:
        if min_num_lines < 0:
            raise ValueError("line count must not be negative")
        if align_size <= 0 or align_size & (align_size - 1):
            raise ValueError("align_size must be a positive power of two")
        page_size = PAGE_HEADER_SIZE + WORD_SIZE * min_num_lines
        page_size = (page_size + align_size - 1) & ~(align_size - 1)
        self.sequence = next(_sequence)
        self.num_lines = (page_size - PAGE_HEADER_SIZE) // WORD_SIZE
        self.line_index = 0
        self.code: list[Any] = [None] * self.num_lines

    def __repr__(self) -> str:
        return (
            f"CodePage(sequence={self.sequence}, "
            f"used={self.line_index}/{self.num_lines})"
        )

    @property
    def num_free_lines(self) -> int:
        """Lines still available for emitting."""
        return self.num_lines - self.line_index

    @property
    def start_pc(self) -> int:
        """Index of the first line of the page."""
        return 0

    @property
    def pc(self) -> int:
        """Index of the next line to be written."""
        return self.line_index

    def _take_line(self) -> int:
        if self.line_index + 1 > self.num_lines:
            raise OverflowError(f"code page {self.sequence} is full")
        index = self.line_index
        self.line_index += 1
        return index

    def emit(self, word: Any) -> None:
        """Append one word (an operation, a callable or any value)."""
        self.code[self._take_line()] = word

    def emit32(self, word: int) -> None:
        """Append a 32-bit integer word."""
        self.code[self._take_line()] = word & _MASK32

    def emit64(self, word: int) -> None:
        """Append a 64-bit integer word; it occupies a single line."""
        self.code[self._take_line()] = word & _MASK64


class CodePageList:
    """A last-in, first-out chain of code pages."""

    def __init__(self) -> None:
        self._pages: list[CodePage] = []

    def __len__(self) -> int:
        return len(self._pages)

    def __iter__(self) -> Iterator[CodePage]:
        """Iterate from the most recently pushed page to the oldest."""
        return reversed(self._pages)

    def push(self, page: CodePage) -> None:
        """Put a page at the head of the list."""
        self._pages.append(page)

    def pop(self) -> CodePage:
        """Remove and return the head page."""
        if not self._pages:
            raise IndexError("pop from an empty code page list")
        return self._pages.pop()

    def end(self) -> CodePage | None:
        """The last page of the chain (the oldest pushed), or None if empty."""
        return self._pages[0] if self._pages else None

    def clear(self) -> None:
        """Release every page."""
        self._pages.clear()