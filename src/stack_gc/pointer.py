from __future__ import annotations

from typing import TYPE_CHECKING

from .errors import InvalidHandleError
from .heap import WORD_SIZE

if TYPE_CHECKING:
    from .heap import HeapSpace
    from .stack import StackFrame

HEADER_SIZE = WORD_SIZE


class Pointer:
    """
    Handle to a block of heap memory.

    The block's size lives in a 4-byte big-endian header directly in front of
    the data, so ``size`` is always read back from the heap rather than cached
    on the handle. Reads and writes are relative to the data address and are
    not checked against the size; the caller owns the offsets.
    """

    __slots__ = ("_frame", "_address", "_valid")

    def __init__(self, frame: "StackFrame", header_address: int, size: int) -> None:
        self._frame = frame
        self._address = header_address + HEADER_SIZE
        self._valid = True
        frame.register(self)
        self.write_word(size, -HEADER_SIZE)

    def __repr__(self) -> str:
        state = "valid" if self._valid else "freed"
        return f"Pointer(address={self._address}, {state})"

    @property
    def _heap(self) -> "HeapSpace":
        return self._frame.heap

    @property
    def address(self) -> int:
        """Start of the data, just past the header."""
        return self._address

    @property
    def header_address(self) -> int:
        return self._address - HEADER_SIZE

    @property
    def size(self) -> int:
        return self._heap.read_word(self.header_address)

    @property
    def valid(self) -> bool:
        return self._valid

    def is_valid(self) -> bool:
        return self._valid

    def refers_to(self, address: int) -> bool:
        return self._address == address

    # -- Access --------------------------------------------------------------------
    def read(self, offset: int = 0) -> int:
        self._guard()
        return self._heap.read_byte(self._address + offset)

    def write(self, value: int, offset: int = 0) -> None:
        self._guard()
        self._heap.write_byte(self._address + offset, value)

    def read_word(self, offset: int = 0) -> int:
        self._guard()
        return self._heap.read_word(self._address + offset)

    def write_word(self, value: int, offset: int = 0) -> None:
        """Write a 32-bit value, most significant byte first."""
        self._guard()
        self._heap.write_word(self._address + offset, value)

    def fill(self, value: int) -> None:
        """Set every byte of the data to ``value``; ``fill(0)`` zeroes it."""
        for offset in range(self.size):
            self.write(value, offset)

    def data(self) -> bytes:
        self._guard()
        return self._heap.read_range(self._address, self._address + self.size)

    # -- Lifetime ------------------------------------------------------------------
    def free(self) -> None:
        """Zero the data and header and retire the handle for good."""
        self.fill(0)
        self.write_word(0, -HEADER_SIZE)
        self._valid = False

    def _guard(self) -> None:
        if not self._valid and self._frame.collector.config.check_handles:
            raise InvalidHandleError(f"{self!r} was used after being freed")
