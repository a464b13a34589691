from leakwatch.analyze_results import load_snapshots, main, summary_table
from leakwatch.monitor.memory_snapshot import MemorySnapshot
from leakwatch.service.sink.json_lines_sink import JsonLinesSink

MB = 1024 * 1024


def _write_snapshots(path, rss_values):
    with JsonLinesSink(path) as sink:
        for i, rss in enumerate(rss_values, 1):
            sink.emit(MemorySnapshot(iteration=i, timestamp=100.0 + i, rss_bytes=rss, vms_bytes=rss * 3,
                                     heap_current_bytes=1000 * i, heap_peak_bytes=2000 * i))


def test_load_snapshots_orders_by_iteration(tmp_path) -> None:
    path = tmp_path / "snapshots.jsonl"
    _write_snapshots(path, [3 * MB, 4 * MB, 5 * MB])

    df = load_snapshots(path)

    assert df["iteration"].tolist() == [1, 2, 3]
    assert df["rss_bytes"].tolist() == [3 * MB, 4 * MB, 5 * MB]


def test_summary_table_reports_leak(tmp_path) -> None:
    path = tmp_path / "snapshots.jsonl"
    _write_snapshots(path, [100 * MB + i * MB for i in range(6)])

    table = summary_table(load_snapshots(path))

    assert "Leak suspected" in table
    assert "yes" in table


def test_main_renders_chart(tmp_path) -> None:
    path = tmp_path / "snapshots.jsonl"
    _write_snapshots(path, [50 * MB, 50 * MB, 51 * MB])
    chart = tmp_path / "charts" / "trend.png"

    assert main([str(path), "--out", str(chart)]) == 0
    assert chart.exists()
    assert chart.stat().st_size > 0


def test_main_default_chart_location(tmp_path) -> None:
    path = tmp_path / "snapshots.jsonl"
    _write_snapshots(path, [50 * MB, 52 * MB])

    assert main([str(path)]) == 0
    assert (tmp_path / "memory_trend.png").exists()


def test_main_handles_missing_and_empty_files(tmp_path) -> None:
    assert main([str(tmp_path / "missing.jsonl")]) == 2

    empty = tmp_path / "empty.jsonl"
    empty.write_text("", encoding="utf-8")
    assert main([str(empty)]) == 0


def test_main_rejects_invalid_content(tmp_path) -> None:
    bad = tmp_path / "bad.jsonl"
    bad.write_text("{not json}\n", encoding="utf-8")
    assert main([str(bad)]) == 3
