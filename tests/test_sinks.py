import json

from leakwatch.monitor.memory_snapshot import MemorySnapshot
from leakwatch.service.sink.json_lines_sink import JsonLinesSink
from leakwatch.service.sink.log_sink import LogSink, format_snapshot
from leakwatch.service.sink.snapshot_sink import MemorySink


def _snapshot(iteration: int, rss: int = 10 * 1024 * 1024) -> MemorySnapshot:
    return MemorySnapshot(iteration=iteration, timestamp=1000.0 + iteration, rss_bytes=rss,
                          vms_bytes=rss * 4, heap_current_bytes=2048, heap_peak_bytes=4096)


def test_json_lines_sink_writes_one_record_per_snapshot(tmp_path) -> None:
    path = tmp_path / "run" / "snapshots.jsonl"
    with JsonLinesSink(path) as sink:
        for i in (1, 2, 3):
            sink.emit(_snapshot(i))

    records = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
    assert [r["iteration"] for r in records] == [1, 2, 3]
    assert records[0]["rss_bytes"] == 10 * 1024 * 1024


def test_json_lines_sink_starts_a_fresh_file_per_run(tmp_path) -> None:
    path = tmp_path / "snapshots.jsonl"
    for _ in range(2):
        with JsonLinesSink(path) as sink:
            for i in (1, 2, 3):
                sink.emit(_snapshot(i))

    records = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
    assert [r["iteration"] for r in records] == [1, 2, 3]


def test_json_lines_sink_append_keeps_earlier_records(tmp_path) -> None:
    path = tmp_path / "snapshots.jsonl"
    with JsonLinesSink(path) as sink:
        sink.emit(_snapshot(1))
    with JsonLinesSink(path, append=True) as sink:
        sink.emit(_snapshot(2))

    records = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
    assert [r["iteration"] for r in records] == [1, 2]


def test_json_lines_sink_close_is_idempotent(tmp_path) -> None:
    sink = JsonLinesSink(tmp_path / "snapshots.jsonl")
    sink.close()
    sink.close()


def test_memory_sink_keeps_order() -> None:
    sink = MemorySink()
    for i in (1, 2):
        sink.emit(_snapshot(i))
    assert [s.iteration for s in sink.snapshots] == [1, 2]


def test_format_snapshot_mentions_rss_and_delta() -> None:
    line = format_snapshot(_snapshot(4), rss_delta=2048)
    assert "Iteration 4" in line
    assert "RSS=10.0MB" in line
    assert "+2KB" in line


class _ListLogger:
    def __init__(self):
        self.lines = []

    def info(self, message):
        self.lines.append(message)


def test_log_sink_writes_one_line_per_snapshot() -> None:
    logger = _ListLogger()
    sink = LogSink(logger=logger)
    sink.emit(_snapshot(1, rss=1024 * 1024))
    sink.emit(_snapshot(2, rss=2 * 1024 * 1024))

    assert len(logger.lines) == 2
    assert "+0KB" in logger.lines[0]
    assert "+1024KB" in logger.lines[1]
