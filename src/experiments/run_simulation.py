from __future__ import annotations

import argparse
import logging

from stack_gc import Collector, FrameCapacityExceeded
from experiments.environment import WorkloadGenerator


def run_simulation(iterations: int, heap_size: int, frame_capacity: int, collect_interval: int) -> None:
    workload = WorkloadGenerator(seed=42)
    collector = Collector(heap_size, frame_capacity)

    for step in range(1, iterations + 1):
        operation = workload.next_operation()
        if operation.kind == "enter":
            collector.enter_frame()
        elif operation.kind == "leave":
            collector.leave_frame()
        elif operation.kind == "allocate":
            try:
                pointer = collector.allocate(operation.size)
            except FrameCapacityExceeded as exc:
                print(f"[step {step}] {exc}")
                continue
            if pointer is None:
                print(f"[step {step}] out of memory for {operation.size} bytes")
            else:
                pointer.fill(step & 0xFF)

        if step % collect_interval == 0:
            event = collector.collect(trigger="interval")
            print(f"[step {step}] collected {event['freed']} pointers ({event['freed_bytes']} bytes)")

    print("Final stats:", collector.stats())
    snapshot = collector.debug_snapshot()
    print("Free map:", snapshot["space"]["free"])


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run a stack-rooted collector simulation.")
    parser.add_argument("--iterations", type=int, default=50, help="Number of workload operations.")
    parser.add_argument("--heap-size", type=int, default=512, help="Heap size in bytes.")
    parser.add_argument("--frame-capacity", type=int, default=8, help="Pointer slots per stack frame.")
    parser.add_argument("--collect-interval", type=int, default=10, help="Collect every N operations.")
    parser.add_argument("--verbose", action="store_true", help="Log collector activity at DEBUG level.")
    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    run_simulation(args.iterations, args.heap_size, args.frame_capacity, args.collect_interval)
