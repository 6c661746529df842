from __future__ import annotations

from dataclasses import dataclass


@dataclass
class CollectorConfig:
    """
    Tunables for a Collector.

    heap_size: number of bytes in the emulated heap.
    frame_capacity: pointer slots available in every stack frame.
    check_handles: raise InvalidHandleError when a freed pointer is used
        instead of silently touching whatever now lives at its address.
    strict_allocation: raise OutOfMemoryError instead of returning None.
    scan_threshold: smallest pointer size whose contents are scanned for
        candidate addresses during collection.
    """

    heap_size: int
    frame_capacity: int
    check_handles: bool = False
    strict_allocation: bool = False
    scan_threshold: int = 8

    def validate(self) -> None:
        if self.heap_size <= 0:
            raise ValueError(f"heap_size must be positive, got {self.heap_size}")
        if self.frame_capacity <= 0:
            raise ValueError(f"frame_capacity must be positive, got {self.frame_capacity}")
        if self.scan_threshold < 4:
            raise ValueError(f"scan_threshold must be at least one word, got {self.scan_threshold}")
