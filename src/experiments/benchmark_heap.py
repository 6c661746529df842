from __future__ import annotations

import argparse
import csv
import os
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from stack_gc import Collector, CollectorConfig, FrameCapacityExceeded, Pointer
from stack_gc.gc_policy import FragmentationGCPolicy, GCPolicy, OccupancyGCPolicy, PeriodicGCPolicy
from experiments.environment import WorkloadGenerator
from experiments.instrumentation import HeapProfiler


@dataclass
class BenchmarkConfig:
    label: str
    heap_size: int
    frame_capacity: int
    steps: int = 500
    max_depth: int = 6
    policy: Optional[str] = None
    check_handles: bool = True
    weights: Dict[str, float] = field(default_factory=dict)


def build_policies(name: Optional[str]) -> List[GCPolicy]:
    if name is None or name == "manual":
        return []
    if name == "periodic":
        return [PeriodicGCPolicy(interval=16)]
    if name == "fragmentation":
        return [FragmentationGCPolicy(threshold=0.5, min_allocations=4)]
    if name == "occupancy":
        return [OccupancyGCPolicy(high_water=0.75)]
    raise ValueError(f"Unknown collection policy: {name}")


def run_single(
    config: BenchmarkConfig,
    seed: int,
    *,
    profiler: Optional[HeapProfiler] = None,
) -> Dict[str, float]:
    workload = WorkloadGenerator(seed=seed, max_depth=config.max_depth, weights=config.weights or None)
    collector = Collector.from_config(
        CollectorConfig(
            heap_size=config.heap_size,
            frame_capacity=config.frame_capacity,
            check_handles=config.check_handles,
        ),
        profiler=profiler,
        policies=build_policies(config.policy),
    )

    # Pointers allocated per open frame, innermost last.
    frames: List[List[Pointer]] = [[]]
    allocations = 0
    failures = 0
    frame_overflows = 0
    links = 0
    fragmentation_sum = 0.0

    for _ in range(config.steps):
        operation = workload.next_operation()
        if operation.kind == "enter":
            collector.enter_frame()
            frames.append([])
        elif operation.kind == "leave":
            collector.leave_frame()
            frames.pop()
        elif operation.kind == "allocate":
            try:
                pointer = collector.allocate(operation.size)
            except FrameCapacityExceeded:
                frame_overflows += 1
                continue
            if pointer is None:
                failures += 1
                collector.collect(trigger="allocation_failure")
            else:
                allocations += 1
                pointer.fill(0)
                frames[-1].append(pointer)
        elif operation.kind == "link":
            if _link_newest(frames):
                links += 1
        elif operation.kind == "collect":
            collector.collect(trigger="workload")
        fragmentation_sum += collector.space.fragmentation()

    stats = collector.stats()
    freed_total = sum(event["freed"] for event in collector.gc_events)
    return {
        "config": config.label,
        "seed": seed,
        "steps": config.steps,
        "allocations": allocations,
        "allocation_failures": failures,
        "frame_overflows": frame_overflows,
        "links": links,
        "gc_cycles": stats["gc_cycles"],
        "freed": freed_total,
        "avg_fragmentation": fragmentation_sum / config.steps if config.steps else 0.0,
        "final_live_pointers": stats["live_pointers"],
        "final_heap_used": stats["heap_used"],
        "final_fragmentation": stats["fragmentation"],
    }


def _link_newest(frames: List[List[Pointer]]) -> bool:
    """Store the address of an older live pointer inside the newest one."""
    reachable = [pointer for frame in frames for pointer in frame if pointer.is_valid()]
    if len(reachable) < 2:
        return False
    source = reachable[-1]
    if source.size < 4:
        return False
    source.write_word(reachable[-2].address, 0)
    return True


def write_summary(path: str, records: Iterable[Dict[str, float]]) -> None:
    records = list(records)
    if not records:
        return
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=list(records[0].keys()))
        writer.writeheader()
        writer.writerows(records)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Benchmark collection policies under synthetic workloads.")
    parser.add_argument("--steps", type=int, default=500, help="Number of workload operations per run.")
    parser.add_argument("--seeds", type=int, default=5, help="Number of random seeds to evaluate.")
    parser.add_argument("--seed-offset", type=int, default=0, help="Offset applied to generated seeds.")
    parser.add_argument("--heap-size", type=int, default=1024, help="Heap size in bytes.")
    parser.add_argument("--frame-capacity", type=int, default=16, help="Pointer slots per stack frame.")
    parser.add_argument("--output", type=str, default="results/heap_summary.csv", help="Path to CSV summary output.")
    parser.add_argument(
        "--events-dir",
        type=str,
        default=None,
        help="Optional directory to write per-run event logs (JSONL and CSV).",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    seeds = [args.seed_offset + index for index in range(args.seeds)]
    configs = [
        BenchmarkConfig(label=policy, heap_size=args.heap_size, frame_capacity=args.frame_capacity,
                        steps=args.steps, policy=policy)
        for policy in ("manual", "periodic", "fragmentation", "occupancy")
    ]

    summaries: List[Dict[str, float]] = []
    for config in configs:
        for seed in seeds:
            profiler = None
            if args.events_dir:
                profiler = HeapProfiler(run_id=f"{config.label}_seed{seed}", output_dir=args.events_dir)
            summaries.append(run_single(config, seed, profiler=profiler))
            if profiler:
                profiler.flush()

    write_summary(args.output, summaries)

    for summary in summaries:
        print(
            f"[{summary['config']} seed={summary['seed']}] "
            f"allocations={summary['allocations']} failures={summary['allocation_failures']} "
            f"gc_cycles={summary['gc_cycles']} freed={summary['freed']} "
            f"avg_fragmentation={summary['avg_fragmentation']:.3f}"
        )


if __name__ == "__main__":
    main()
