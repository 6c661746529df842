from __future__ import annotations


class HeapError(Exception):
    """Base class for failures reported by the collector."""


class OutOfMemoryError(HeapError, MemoryError):
    """No free chunk can hold the requested allocation (strict mode only)."""

    def __init__(self, size: int, span: int, largest_free: int) -> None:
        super().__init__(
            f"Unable to allocate {size} bytes ({span} with header); largest free chunk is {largest_free} bytes"
        )
        self.size = size
        self.span = span
        self.largest_free = largest_free


class FrameCapacityExceeded(HeapError, OverflowError):
    """A stack frame has no free slot left for another pointer."""

    def __init__(self, capacity: int) -> None:
        super().__init__(f"Stack frame is full ({capacity} slots in use)")
        self.capacity = capacity


class InvalidHandleError(HeapError, RuntimeError):
    """A freed pointer was used while handle checking is enabled."""


class StackUnderflowError(HeapError, RuntimeError):
    """Attempted to leave the base stack frame."""
