from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Dict, Optional


@dataclass
class Operation:
    kind: str
    size: int = 0


class WorkloadGenerator:
    """
    Generate operation streams that emulate a program calling functions.

    Each step is one of: enter a frame, leave a frame, allocate a block, link
    the newest block to an older one by storing its address, or collect.
    Frame depth is tracked so the stream never leaves the base frame and
    never nests deeper than ``max_depth``.
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        *,
        min_size: int = 4,
        max_size: int = 32,
        max_depth: int = 6,
        weights: Optional[Dict[str, float]] = None,
    ) -> None:
        self.random = random.Random(seed)
        self.min_size = min_size
        self.max_size = max_size
        self.max_depth = max_depth
        self.weights = weights or {
            "enter": 0.15,
            "leave": 0.15,
            "allocate": 0.5,
            "link": 0.15,
            "collect": 0.05,
        }
        self.depth = 0

    def next_operation(self) -> Operation:
        kind = self.random.choices(list(self.weights), weights=list(self.weights.values()))[0]
        if kind == "leave" and self.depth == 0:
            kind = "enter"
        if kind == "enter" and self.depth >= self.max_depth:
            kind = "allocate"

        if kind == "enter":
            self.depth += 1
        elif kind == "leave":
            self.depth -= 1
        elif kind == "allocate":
            return Operation(kind, self._sample_size())
        return Operation(kind)

    def _sample_size(self) -> int:
        # Skew towards small blocks, with the odd large one.
        if self.random.random() < 0.1:
            return self.random.randint(self.max_size, self.max_size * 4)
        return self.random.randint(self.min_size, self.max_size)
