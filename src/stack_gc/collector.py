from __future__ import annotations

import dataclasses
import logging
import time
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional

from .chunk import Chunk
from .config import CollectorConfig
from .errors import FrameCapacityExceeded, OutOfMemoryError, StackUnderflowError
from .gc_policy import GCPolicy
from .heap import HeapSpace
from .pointer import HEADER_SIZE, Pointer
from .scanning import candidate_addresses
from .stack import StackFrame

if TYPE_CHECKING:
    from experiments.instrumentation import HeapProfiler

logger = logging.getLogger(__name__)

MAX_ALLOCATION = 2 ** 32 - 1


class Collector:
    """
    Conservative, stack-rooted mark-and-sweep collector over an emulated heap.

    The collector owns the heap bytes, the free-chunk list, the chain of stack
    frames and every live pointer. Callers allocate through it, move between
    frames as they would between function calls, and call ``collect`` to
    reclaim pointers that no frame on the current chain can still reach.
    """

    def __init__(
        self,
        heap_size: int,
        frame_capacity: int,
        *,
        config: Optional[CollectorConfig] = None,
        profiler: Optional["HeapProfiler"] = None,
        policies: Optional[List[GCPolicy]] = None,
    ) -> None:
        if config is None:
            config = CollectorConfig(heap_size=heap_size, frame_capacity=frame_capacity)
        else:
            config = dataclasses.replace(config, heap_size=heap_size, frame_capacity=frame_capacity)
        config.validate()
        self.config = config
        self.space = HeapSpace(heap_size)
        self.profiler = profiler
        self.policies = policies or []

        self.base_frame = StackFrame(self, frame_capacity)
        self.current_frame = self.base_frame
        self._pointers: List[Pointer] = []
        self.gc_events: List[Dict[str, Any]] = []
        self._allocation_failures = 0

    @classmethod
    def from_config(
        cls,
        config: CollectorConfig,
        *,
        profiler: Optional["HeapProfiler"] = None,
        policies: Optional[List[GCPolicy]] = None,
    ) -> "Collector":
        return cls(config.heap_size, config.frame_capacity, config=config, profiler=profiler, policies=policies)

    @property
    def heap(self) -> bytearray:
        """The raw bytes backing this collector."""
        return self.space.buffer

    @staticmethod
    def real_size(size: int) -> int:
        """Bytes consumed by an allocation of ``size``, header included."""
        return size + HEADER_SIZE

    # -- Allocation -----------------------------------------------------------------
    def allocate(self, size: int) -> Optional[Pointer]:
        """
        Allocate ``size`` bytes in the current stack frame.

        Returns None when no free chunk is large enough, unless the collector
        is configured for strict allocation. Raises FrameCapacityExceeded if
        the current frame has no slot left. Neither failure changes any state.
        """
        if not isinstance(size, int) or size < 0 or size > MAX_ALLOCATION:
            raise ValueError(f"Allocation size must be an unsigned 32-bit integer, got {size!r}")
        frame = self.current_frame
        if frame.is_full():
            raise FrameCapacityExceeded(frame.capacity)

        span = self.real_size(size)
        chunk = self.space.take_first_fit(span)
        if chunk is None:
            return self._allocation_failed(size, span)

        pointer = Pointer(frame, chunk.start, size)
        self._pointers.append(pointer)
        logger.debug("Allocated %d bytes at %d (frame depth %d)", size, pointer.address, frame.depth)
        if self.profiler:
            self.profiler.record_event(
                "allocation",
                {
                    "address": pointer.address,
                    "size": size,
                    "frame_depth": frame.depth,
                    "heap_used": self.space.allocated(),
                    "heap_free": self.space.available(),
                },
            )
        self._maybe_trigger_policies("allocation")
        return pointer

    def _allocation_failed(self, size: int, span: int) -> Optional[Pointer]:
        self._allocation_failures += 1
        largest = self.space.largest_free()
        logger.debug("Allocation of %d bytes failed; largest free chunk is %d", size, largest)
        if self.profiler:
            self.profiler.record_event(
                "allocation_failure",
                {
                    "size": size,
                    "largest_free": largest,
                    "heap_free": self.space.available(),
                },
            )
        if self.config.strict_allocation:
            raise OutOfMemoryError(size, span, largest)
        return None

    # -- Stack frames ---------------------------------------------------------------
    def enter_frame(self) -> StackFrame:
        """Push a new frame, for example when a function is called."""
        self.current_frame = StackFrame(self, self.config.frame_capacity, parent=self.current_frame)
        self._record_frame_event("frame_enter")
        return self.current_frame

    def leave_frame(self) -> None:
        """Drop the current frame, for example when a function returns."""
        frame = self.current_frame
        if frame.parent is None:
            raise StackUnderflowError("Cannot leave the base stack frame")
        frame.set_out_of_scope()
        self.current_frame = frame.parent
        self._record_frame_event("frame_leave")

    @contextmanager
    def frame(self) -> Iterator[StackFrame]:
        entered = self.enter_frame()
        try:
            yield entered
        finally:
            if self.current_frame is not entered:
                raise StackUnderflowError("Frame stack was left unbalanced inside a frame() block")
            self.leave_frame()

    def _record_frame_event(self, event_type: str) -> None:
        logger.debug("%s: now at depth %d", event_type, self.current_frame.depth)
        if self.profiler:
            self.profiler.record_event(event_type, {"frame_depth": self.current_frame.depth})

    # -- Garbage collection ---------------------------------------------------------
    def collect(self, trigger: str = "manual") -> Dict[str, Any]:
        """
        Free every pointer that the current frame chain cannot reach.

        A pointer is reachable if a frame on the chain holds it, or if the
        data of such a held pointer contains its address somewhere. Only that
        one level of indirection is followed.
        """
        cycle_start = time.time()
        unreachable: Dict[int, Pointer] = {pointer.address: pointer for pointer in self._pointers}

        for frame in self.current_frame.ancestors():
            if not unreachable:
                break
            for pointer in frame.pointers():
                unreachable.pop(pointer.address, None)
                if pointer.size >= self.config.scan_threshold:
                    for candidate in candidate_addresses(pointer.data()):
                        unreachable.pop(candidate, None)

        freed_bytes = 0
        for pointer in unreachable.values():
            chunk = Chunk(pointer.header_address, pointer.address + pointer.size)
            self.space.release(chunk)
            pointer.free()
            freed_bytes += chunk.size
            self._record_free(chunk)
        if unreachable:
            swept = set(unreachable.values())
            self._pointers = [pointer for pointer in self._pointers if pointer not in swept]

        self.space.coalesce()
        pause_duration = time.time() - cycle_start

        event = {
            "trigger": trigger,
            "freed": len(unreachable),
            "freed_bytes": freed_bytes,
            "live_pointers": len(self._pointers),
            "heap_used": self.space.allocated(),
            "fragmentation": self.space.fragmentation(),
            "timestamp": time.time(),
            "pause_duration": pause_duration,
        }
        self.gc_events.append(event)
        logger.debug(
            "Collection (%s) freed %d pointers / %d bytes, %d live",
            trigger,
            event["freed"],
            freed_bytes,
            event["live_pointers"],
        )
        if self.profiler:
            self.profiler.record_event(
                "gc_cycle",
                {
                    "trigger": trigger,
                    "freed": event["freed"],
                    "freed_bytes": freed_bytes,
                    "heap_used": event["heap_used"],
                    "fragmentation": event["fragmentation"],
                    "pause_duration": pause_duration,
                },
            )
        for policy in self.policies:
            policy.notify_gc(self, event)
        return event

    def _record_free(self, chunk: Chunk) -> None:
        if self.profiler:
            self.profiler.record_event(
                "free",
                {"address": chunk.start + HEADER_SIZE, "size": chunk.size - HEADER_SIZE},
            )

    def _maybe_trigger_policies(self, reason: str) -> None:
        for policy in self.policies:
            if policy.should_trigger(self, reason):
                self.collect(trigger=f"policy:{policy.__class__.__name__}")

    def tick(self) -> None:
        self._maybe_trigger_policies("tick")

    # -- Introspection --------------------------------------------------------------
    def live_pointers(self) -> List[Pointer]:
        return list(self._pointers)

    def stats(self) -> Dict[str, Any]:
        return {
            "live_pointers": len(self._pointers),
            "frame_depth": self.current_frame.depth,
            "heap_capacity": self.space.capacity,
            "heap_used": self.space.allocated(),
            "heap_free": self.space.available(),
            "largest_free": self.space.largest_free(),
            "free_chunks": len(self.space.free_chunks()),
            "fragmentation": self.space.fragmentation(),
            "allocation_failures": self._allocation_failures,
            "gc_cycles": len(self.gc_events),
        }

    def debug_snapshot(self) -> Dict[str, Any]:
        pointer_summaries = [
            {
                "address": pointer.address,
                "header_address": pointer.header_address,
                "size": pointer.size,
            }
            for pointer in self._pointers
        ]
        frames = [
            {"depth": frame.depth, "slots": [pointer.address for pointer in frame.pointers()]}
            for frame in self.current_frame.ancestors()
        ]
        return {
            "pointers": pointer_summaries,
            "space": self.space.snapshot(),
            "frames": frames,
        }


def new_collector(heap_size: int, frame_capacity: int) -> Collector:
    return Collector(heap_size, frame_capacity)
