from __future__ import annotations

from typing import TYPE_CHECKING, Iterator, List, Optional

from .errors import FrameCapacityExceeded

if TYPE_CHECKING:
    from .collector import Collector
    from .heap import HeapSpace
    from .pointer import Pointer


class StackFrame:
    """
    One frame of the emulated call stack.

    Every pointer is registered in the frame that was current when it was
    allocated. Frames only know their parent, so once the collector moves
    past a frame on leave nothing can walk back into it.
    """

    def __init__(
        self,
        collector: "Collector",
        capacity: int,
        parent: Optional["StackFrame"] = None,
    ) -> None:
        self.collector = collector
        self.parent = parent
        self.capacity = capacity
        self._slots: List[Optional["Pointer"]] = [None] * capacity
        self._next_free = 0
        # Set on leave; informational only, the root walk never consults it.
        self.in_scope = True

    def __repr__(self) -> str:
        return f"StackFrame(depth={self.depth}, used={self._next_free}/{self.capacity})"

    @property
    def heap(self) -> "HeapSpace":
        return self.collector.space

    @property
    def depth(self) -> int:
        return sum(1 for _ in self.ancestors()) - 1

    def is_full(self) -> bool:
        return self._next_free >= self.capacity

    def register(self, pointer: "Pointer") -> None:
        if self.is_full():
            raise FrameCapacityExceeded(self.capacity)
        self._slots[self._next_free] = pointer
        self._next_free += 1

    def pointers(self) -> List["Pointer"]:
        """Occupied slots in registration order."""
        return [pointer for pointer in self._slots if pointer is not None]

    def ancestors(self) -> Iterator["StackFrame"]:
        """Yield this frame, then each enclosing frame out to the base."""
        frame: Optional[StackFrame] = self
        while frame is not None:
            yield frame
            frame = frame.parent

    def has_pointer(self, address: int) -> bool:
        """Check whether this frame or any enclosing one holds a pointer to ``address``."""
        return any(
            pointer.refers_to(address)
            for frame in self.ancestors()
            for pointer in frame.pointers()
        )

    def set_out_of_scope(self) -> None:
        self.in_scope = False
