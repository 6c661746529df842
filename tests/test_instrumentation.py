import json
import tempfile
from pathlib import Path

from stack_gc import Collector
from experiments.instrumentation import HeapProfiler


def read_json_lines(path: Path):
    with path.open("r", encoding="utf-8") as handle:
        for line in handle:
            if line.strip():
                yield json.loads(line)


def test_profiler_records_collector_events():
    with tempfile.TemporaryDirectory() as tmpdir:
        profiler = HeapProfiler(run_id="run", output_dir=tmpdir)
        collector = Collector(128, 4, profiler=profiler)

        with collector.frame():
            collector.allocate(8)
        assert collector.allocate(200) is None
        collector.collect()
        profiler.flush()

        counts = profiler.counts()
        assert counts["allocation"] == 1
        assert counts["allocation_failure"] == 1
        assert counts["frame_enter"] == 1
        assert counts["frame_leave"] == 1
        assert counts["free"] == 1
        assert counts["gc_cycle"] == 1

        entries = list(read_json_lines(Path(tmpdir) / "run.jsonl"))
        assert [entry["event"] for entry in entries] == [
            "frame_enter",
            "allocation",
            "frame_leave",
            "allocation_failure",
            "free",
            "gc_cycle",
        ]
        assert entries[4]["size"] == 8
        assert (Path(tmpdir) / "run.csv").exists()


def test_write_immediately_appends_jsonl():
    with tempfile.TemporaryDirectory() as tmpdir:
        profiler = HeapProfiler(run_id="live", output_dir=tmpdir, write_immediately=True)
        collector = Collector(64, 4, profiler=profiler)
        collector.allocate(4)
        entries = list(read_json_lines(Path(tmpdir) / "live.jsonl"))
        assert len(entries) == 1
        assert entries[0]["event"] == "allocation"
        assert profiler.events_of("allocation")[0]["address"] == 4
