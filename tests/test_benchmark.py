import io
import unittest
from contextlib import redirect_stdout

from experiments.benchmark_heap import BenchmarkConfig, build_policies, run_single
from experiments.environment import WorkloadGenerator
from experiments.run_simulation import run_simulation


class BenchmarkHarnessTests(unittest.TestCase):
    def test_summary_contains_core_metrics(self) -> None:
        config = BenchmarkConfig(
            label="test_config",
            heap_size=1024,
            frame_capacity=16,
            steps=200,
            policy="periodic",
        )
        summary = run_single(config, seed=123)
        self.assertIn("avg_fragmentation", summary)
        self.assertIn("final_heap_used", summary)
        self.assertGreaterEqual(summary["allocations"], 1)
        self.assertGreaterEqual(summary["gc_cycles"], 1)
        self.assertLessEqual(summary["final_heap_used"], 1024)

    def test_runs_are_reproducible(self) -> None:
        config = BenchmarkConfig(label="repeat", heap_size=512, frame_capacity=8, steps=150)
        first = run_single(config, seed=7)
        second = run_single(config, seed=7)
        for key in ("allocations", "allocation_failures", "frame_overflows", "freed", "final_heap_used"):
            self.assertEqual(first[key], second[key])

    def test_unknown_policy_rejected(self) -> None:
        with self.assertRaises(ValueError):
            build_policies("lottery")

    def test_workload_never_leaves_base_frame(self) -> None:
        workload = WorkloadGenerator(seed=3, max_depth=2, weights={"enter": 0.3, "leave": 0.7})
        for _ in range(500):
            workload.next_operation()
            self.assertGreaterEqual(workload.depth, 0)
            self.assertLessEqual(workload.depth, 2)

    def test_simulation_prints_final_stats(self) -> None:
        buffer = io.StringIO()
        with redirect_stdout(buffer):
            run_simulation(iterations=40, heap_size=256, frame_capacity=8, collect_interval=10)
        output = buffer.getvalue()
        self.assertIn("Final stats:", output)
        self.assertIn("Free map:", output)


if __name__ == "__main__":
    unittest.main()
