from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .collector import Collector


class GCPolicy(ABC):
    @abstractmethod
    def should_trigger(self, collector: "Collector", reason: str) -> bool:
        """Return True if a collection should run given the current reason."""

    def notify_gc(self, collector: "Collector", event: dict) -> None:
        """Called after a collection completes; `event` contains its statistics."""


class PeriodicGCPolicy(GCPolicy):
    def __init__(self, interval: int) -> None:
        if interval <= 0:
            raise ValueError("PeriodicGCPolicy interval must be positive")
        self.interval = interval
        self._counter = 0

    def should_trigger(self, collector: "Collector", reason: str) -> bool:
        self._counter += 1
        if self._counter >= self.interval:
            self._counter = 0
            return True
        return False

    def notify_gc(self, collector: "Collector", event: dict) -> None:
        self._counter = 0


class FragmentationGCPolicy(GCPolicy):
    """Collect once the free list is split up beyond ``threshold``."""

    def __init__(self, threshold: float = 0.4, min_allocations: int = 0) -> None:
        self.threshold = threshold
        self.min_allocations = min_allocations
        self._since_last = 0

    def should_trigger(self, collector: "Collector", reason: str) -> bool:
        if reason not in {"allocation", "tick"}:
            return False
        if reason == "allocation":
            self._since_last += 1
        if self._since_last < self.min_allocations:
            return False
        return collector.space.fragmentation() >= self.threshold

    def notify_gc(self, collector: "Collector", event: dict) -> None:
        self._since_last = 0


class OccupancyGCPolicy(GCPolicy):
    """
    Collect when the heap fills past ``high_water`` of its capacity.

    After a collection the policy stays quiet until occupancy has grown by
    ``hysteresis`` again, so a heap full of live data does not trigger a
    collection on every allocation.
    """

    def __init__(self, high_water: float = 0.75, hysteresis: float = 0.1) -> None:
        self.high_water = high_water
        self.hysteresis = hysteresis
        self._baseline: Optional[float] = None

    def should_trigger(self, collector: "Collector", reason: str) -> bool:
        if reason not in {"allocation", "tick"}:
            return False
        space = collector.space
        occupancy = space.allocated() / space.capacity
        if occupancy < self.high_water:
            return False
        if self._baseline is not None and occupancy < self._baseline + self.hysteresis:
            return False
        return True

    def notify_gc(self, collector: "Collector", event: dict) -> None:
        space = collector.space
        self._baseline = space.allocated() / space.capacity
