from dataclasses import dataclass
from typing import Dict

from leakwatch.models.stat_summary import StatSummary


@dataclass
class MemoryTrendResult:
    """Memory growth across the snapshots of one soak run"""
    samples_count: int

    # RSS statistics
    first_rss_bytes: int
    last_rss_bytes: int
    peak_rss_bytes: int
    rss_growth_bytes: int
    rss_growth_per_iteration: float  # least-squares slope, bytes per iteration
    rss: StatSummary  # over the most recent window of snapshots only
    window_count: int

    # Python heap statistics
    heap_growth_bytes: int

    # Leak verdict
    threshold_bytes_per_iteration: float
    leak_suspected: bool

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization"""
        return {
            'samples_count': self.samples_count,

            # RSS stats
            'first_rss_bytes': self.first_rss_bytes,
            'last_rss_bytes': self.last_rss_bytes,
            'peak_rss_bytes': self.peak_rss_bytes,
            'rss_growth_bytes': self.rss_growth_bytes,
            'rss_growth_per_iteration': self.rss_growth_per_iteration,
            'rss': self.rss.to_summary_dict(),
            'window_count': self.window_count,

            # Heap stats
            'heap_growth_bytes': self.heap_growth_bytes,

            # Verdict
            'threshold_bytes_per_iteration': self.threshold_bytes_per_iteration,
            'leak_suspected': self.leak_suspected,
        }
