"""
Conservative, stack-rooted garbage collector over an emulated heap.

Expose the collector and its building blocks for experiments and teaching.
"""

from .chunk import Chunk
from .collector import Collector, new_collector
from .config import CollectorConfig
from .errors import (
    FrameCapacityExceeded,
    HeapError,
    InvalidHandleError,
    OutOfMemoryError,
    StackUnderflowError,
)
from .gc_policy import FragmentationGCPolicy, OccupancyGCPolicy, PeriodicGCPolicy
from .heap import HeapSpace
from .pointer import HEADER_SIZE, Pointer
from .scanning import candidate_addresses
from .stack import StackFrame

__all__ = [
    "Chunk",
    "Collector",
    "new_collector",
    "CollectorConfig",
    "HeapError",
    "OutOfMemoryError",
    "FrameCapacityExceeded",
    "InvalidHandleError",
    "StackUnderflowError",
    "PeriodicGCPolicy",
    "FragmentationGCPolicy",
    "OccupancyGCPolicy",
    "HeapSpace",
    "HEADER_SIZE",
    "Pointer",
    "candidate_addresses",
    "StackFrame",
]
