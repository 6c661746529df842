from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, slots=True)
class Chunk:
    """A contiguous, currently unallocated byte range ``[start, end)`` of the heap."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(f"Chunk start {self.start} is past its end {self.end}")

    @property
    def size(self) -> int:
        return self.end - self.start

    def contains(self, address: int) -> bool:
        return self.start <= address < self.end

    def is_adjacent(self, other: "Chunk") -> bool:
        return self.start == other.end or self.end == other.start

    def merge(self, other: "Chunk") -> Optional["Chunk"]:
        """Return the union of two adjacent chunks, or None if they do not touch."""
        if self.end == other.start:
            return Chunk(self.start, other.end)
        if self.start == other.end:
            return Chunk(other.start, self.end)
        return None

    def split_tail(self, offset: int) -> "Chunk":
        """
        Return the remainder of this chunk once its first ``offset`` bytes
        have been handed out to an allocation.
        """
        return Chunk(self.start + offset, self.end)
