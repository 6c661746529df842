from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from .chunk import Chunk

logger = logging.getLogger(__name__)

WORD_SIZE = 4


class HeapSpace:
    """
    Fixed-size emulated heap plus its free-chunk list.

    The free list is kept in insertion order rather than address order: the
    first chunk that fits wins, and remainders are appended to the end. Which
    chunk a request lands in therefore depends on the history of allocations
    and collections, not only on the current layout.
    """

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError(f"Heap capacity must be positive, got {capacity}")
        self.capacity = capacity
        self.buffer = bytearray(capacity)
        self._free_chunks: List[Chunk] = [Chunk(0, capacity)]

    # -- Free list -----------------------------------------------------------------
    def available(self) -> int:
        return sum(chunk.size for chunk in self._free_chunks)

    def allocated(self) -> int:
        return self.capacity - self.available()

    def largest_free(self) -> int:
        return max((chunk.size for chunk in self._free_chunks), default=0)

    def fragmentation(self) -> float:
        available = self.available()
        if available == 0:
            return 0.0
        return 1.0 - (self.largest_free() / available)

    def free_chunks(self) -> List[Chunk]:
        """Return a copy of the current free list for inspection."""
        return list(self._free_chunks)

    def take_first_fit(self, span: int) -> Optional[Chunk]:
        """
        Remove and return the first free chunk able to hold ``span`` bytes.

        Any remainder goes back on the free list as the chunk's tail. Returns
        None, leaving the free list untouched, when nothing fits.
        """
        for index, chunk in enumerate(self._free_chunks):
            if chunk.size >= span:
                del self._free_chunks[index]
                if chunk.size > span:
                    self._free_chunks.append(chunk.split_tail(span))
                return chunk
        return None

    def release(self, chunk: Chunk) -> None:
        self._free_chunks.append(chunk)

    def coalesce(self) -> None:
        """
        Merge adjacent free chunks in one forward pass.

        Each chunk is compared only against chunks already placed in the
        rebuilt list, so a run of three neighbours may stay split in two.
        """
        rebuilt: List[Chunk] = []
        for chunk in self._free_chunks:
            neighbour = self._find_mergeable(rebuilt, chunk)
            if neighbour is None:
                rebuilt.append(chunk)
                continue
            rebuilt.remove(neighbour)
            merged = neighbour.merge(chunk)
            assert merged is not None
            rebuilt.append(merged)
        if len(rebuilt) != len(self._free_chunks):
            logger.debug("Coalesced %d free chunks into %d", len(self._free_chunks), len(rebuilt))
        self._free_chunks = rebuilt

    @staticmethod
    def _find_mergeable(candidates: List[Chunk], chunk: Chunk) -> Optional[Chunk]:
        mergeable = None
        for candidate in candidates:
            if candidate.is_adjacent(chunk):
                mergeable = candidate
        return mergeable

    # -- Raw access ----------------------------------------------------------------
    def read_byte(self, address: int) -> int:
        self._check_bounds(address, 1)
        return self.buffer[address]

    def write_byte(self, address: int, value: int) -> None:
        self._check_bounds(address, 1)
        self.buffer[address] = value & 0xFF

    def read_word(self, address: int) -> int:
        self._check_bounds(address, WORD_SIZE)
        return int.from_bytes(self.buffer[address:address + WORD_SIZE], "big")

    def write_word(self, address: int, value: int) -> None:
        self._check_bounds(address, WORD_SIZE)
        self.buffer[address:address + WORD_SIZE] = (value & 0xFFFFFFFF).to_bytes(WORD_SIZE, "big")

    def _check_bounds(self, address: int, width: int) -> None:
        # Negative indices would silently wrap around the bytearray.
        if address < 0 or address + width > self.capacity:
            raise IndexError(f"Access of {width} byte(s) at {address} falls outside the heap")

    def read_range(self, start: int, end: int) -> bytes:
        return bytes(self.buffer[start:end])

    def snapshot(self) -> Dict[str, List[Tuple[int, int]]]:
        """Expose the free map for diagnostics."""
        return {"free": [(chunk.start, chunk.size) for chunk in self._free_chunks]}
