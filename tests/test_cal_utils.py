import pytest

from leakwatch.monitor.memory_snapshot import MemorySnapshot
from leakwatch.util.cal_utils import TrendTracker, analyze_trend, calculate_stat_summary


def _snapshots(rss_values, heap_values=None):
    heap_values = heap_values or [0] * len(rss_values)
    return [
        MemorySnapshot(iteration=i + 1, timestamp=float(i), rss_bytes=rss, vms_bytes=rss * 2,
                       heap_current_bytes=heap, heap_peak_bytes=heap)
        for i, (rss, heap) in enumerate(zip(rss_values, heap_values))
    ]


def test_stat_summary_of_empty_list() -> None:
    summary = calculate_stat_summary([])
    assert summary.avg == 0
    assert summary.max == 0


def test_stat_summary_percentiles() -> None:
    summary = calculate_stat_summary([5, 1, 3, 2, 4])
    assert summary.min == 1
    assert summary.max == 5
    assert summary.p50 == 3
    assert summary.avg == 3
    assert summary.to_summary_dict() == {"min": 1, "max": 5, "p50": 3, "p95": 5, "p99": 5, "avg": 3}


def test_tracker_slope_of_linear_series() -> None:
    tracker = TrendTracker().extend(_snapshots([100, 200, 300, 400]))
    assert tracker.slope == pytest.approx(100)
    assert TrendTracker().extend(_snapshots([42])).slope == 0.0


def test_steady_growth_is_flagged_as_leak() -> None:
    mb = 1024 * 1024
    trend = analyze_trend(_snapshots([100 * mb + i * mb for i in range(10)], [i * 1000 for i in range(10)]),
                          threshold_bytes_per_iteration=512 * 1024)

    assert trend.leak_suspected
    assert trend.samples_count == 10
    assert trend.rss_growth_bytes == 9 * mb
    assert trend.rss_growth_per_iteration == pytest.approx(mb)
    assert trend.heap_growth_bytes == 9000
    assert trend.peak_rss_bytes == 109 * mb


def test_flat_memory_is_not_a_leak() -> None:
    trend = analyze_trend(_snapshots([50_000_000, 50_004_096, 49_999_000, 50_001_000]))
    assert not trend.leak_suspected


def test_single_snapshot_never_flags_leak() -> None:
    trend = analyze_trend(_snapshots([1_000]), threshold_bytes_per_iteration=-1)
    assert not trend.leak_suspected
    assert trend.rss_growth_bytes == 0


def test_empty_run_summary() -> None:
    trend = analyze_trend([])
    data = trend.to_dict()
    assert data["samples_count"] == 0
    assert data["leak_suspected"] is False
    assert data["rss"]["max"] == 0


def test_tracker_slope_matches_least_squares_fit() -> None:
    rss = [1_000_000, 1_003_000, 1_001_500, 1_007_000, 1_006_000, 1_010_500]
    n = len(rss)
    mean_x = (n - 1) / 2
    mean_y = sum(rss) / n
    expected = (sum((i - mean_x) * (y - mean_y) for i, y in enumerate(rss))
                / sum((i - mean_x) ** 2 for i in range(n)))

    assert TrendTracker().extend(_snapshots(rss)).slope == pytest.approx(expected)


def test_tracker_keeps_only_recent_window_but_counts_everything() -> None:
    mb = 1024 * 1024
    tracker = TrendTracker(window=3).extend(_snapshots([i * mb for i in range(1, 101)], list(range(100))))

    assert tracker.count == 100
    assert [s.iteration for s in tracker.recent] == [98, 99, 100]

    trend = tracker.result(threshold_bytes_per_iteration=512 * 1024)
    assert trend.samples_count == 100
    assert trend.window_count == 3
    assert trend.first_rss_bytes == mb
    assert trend.peak_rss_bytes == 100 * mb
    assert trend.rss_growth_per_iteration == pytest.approx(mb)
    assert trend.heap_growth_bytes == 99
    assert trend.rss.min == 98 * mb
    assert trend.leak_suspected


def test_tracker_rejects_empty_window() -> None:
    with pytest.raises(ValueError):
        TrendTracker(window=0)
