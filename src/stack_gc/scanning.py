from __future__ import annotations

from typing import Set

from .heap import WORD_SIZE


def candidate_addresses(window: bytes) -> Set[int]:
    """
    Guess which values in ``window`` might be heap addresses.

    Every 4-byte big-endian sequence is a candidate, advancing one byte at a
    time, so unaligned values are found as well. Nothing is known about the
    layout of the data; false positives simply keep garbage alive longer.
    """
    return {
        int.from_bytes(window[offset:offset + WORD_SIZE], "big")
        for offset in range(len(window) - WORD_SIZE + 1)
    }
