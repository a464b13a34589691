from collections import deque
from typing import Deque, Iterable, List

from leakwatch.models.stat_summary import StatSummary
from leakwatch.monitor.memory_snapshot import MemorySnapshot
from leakwatch.monitor.memory_trend_result import MemoryTrendResult

DEFAULT_LEAK_THRESHOLD = 512 * 1024  # bytes per iteration
DEFAULT_SNAPSHOT_WINDOW = 1000


def calculate_stat_summary(values: list[float]) -> StatSummary:
    """Calculate statistical summary from a list of numeric values"""
    if not values:
        return StatSummary(min=0, max=0, p50=0, p95=0, p99=0, avg=0)

    sorted_values = sorted(values)
    n = len(sorted_values)

    return StatSummary(
        min=sorted_values[0],
        max=sorted_values[-1],
        p50=sorted_values[int(n * 0.50)],
        p95=sorted_values[int(n * 0.95)] if n > 1 else sorted_values[0],
        p99=sorted_values[int(n * 0.99)] if n > 1 else sorted_values[0],
        avg=sum(sorted_values) / n
    )


class TrendTracker:
    """
    Running memory trend over an unbounded stream of snapshots.

    Keeps constant-size state: first/last/peak values, the least-squares slope
    of RSS against snapshot index (updated with Welford-style running
    co-moments), and a bounded window of the most recent snapshots.
    """

    def __init__(self, window: int = DEFAULT_SNAPSHOT_WINDOW):
        if window < 1:
            raise ValueError(f"snapshot window must be >= 1, got {window}")
        self.count = 0
        self.first_rss = 0
        self.last_rss = 0
        self.peak_rss = 0
        self.first_heap = 0
        self.last_heap = 0
        self.recent: Deque[MemorySnapshot] = deque(maxlen=window)
        self._mean_x = 0.0
        self._mean_y = 0.0
        self._co_moment = 0.0
        self._m2_x = 0.0

    def add(self, snapshot: MemorySnapshot) -> None:
        if self.count == 0:
            self.first_rss = snapshot.rss_bytes
            self.first_heap = snapshot.heap_current_bytes
        self.last_rss = snapshot.rss_bytes
        self.last_heap = snapshot.heap_current_bytes
        self.peak_rss = max(self.peak_rss, snapshot.rss_bytes)
        self.recent.append(snapshot)

        # Relative to the first value to keep the sums small
        x = float(self.count)
        y = float(snapshot.rss_bytes - self.first_rss)
        self.count += 1
        dx = x - self._mean_x
        self._mean_x += dx / self.count
        self._mean_y += (y - self._mean_y) / self.count
        self._co_moment += dx * (y - self._mean_y)
        self._m2_x += dx * (x - self._mean_x)

    def extend(self, snapshots: Iterable[MemorySnapshot]) -> "TrendTracker":
        for snapshot in snapshots:
            self.add(snapshot)
        return self

    @property
    def slope(self) -> float:
        """Least-squares RSS growth in bytes per snapshot"""
        if self.count < 2 or self._m2_x == 0:
            return 0.0
        return self._co_moment / self._m2_x

    def result(self, threshold_bytes_per_iteration: float = DEFAULT_LEAK_THRESHOLD) -> MemoryTrendResult:
        """
        Summarize memory growth so far and decide whether a leak is suspected.

        A leak is suspected when the RSS slope exceeds the threshold. Fewer than
        two snapshots never produce a verdict.
        """
        slope = self.slope
        return MemoryTrendResult(
            samples_count=self.count,
            first_rss_bytes=self.first_rss,
            last_rss_bytes=self.last_rss,
            peak_rss_bytes=self.peak_rss,
            rss_growth_bytes=self.last_rss - self.first_rss,
            rss_growth_per_iteration=slope,
            rss=calculate_stat_summary([s.rss_bytes for s in self.recent]),
            window_count=len(self.recent),
            heap_growth_bytes=self.last_heap - self.first_heap,
            threshold_bytes_per_iteration=threshold_bytes_per_iteration,
            leak_suspected=self.count >= 2 and slope > threshold_bytes_per_iteration,
        )


def analyze_trend(snapshots: List[MemorySnapshot], threshold_bytes_per_iteration: float = DEFAULT_LEAK_THRESHOLD) -> MemoryTrendResult:
    """Trend over a complete list of snapshots, e.g. one loaded from disk"""
    tracker = TrendTracker(window=max(len(snapshots), 1)).extend(snapshots)
    return tracker.result(threshold_bytes_per_iteration)
