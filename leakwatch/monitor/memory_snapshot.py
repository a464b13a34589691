import dataclasses
from dataclasses import dataclass


@dataclass
class MemorySnapshot:
    """Single process memory usage snapshot, taken after one iteration completes"""
    iteration: int
    timestamp: float
    rss_bytes: int  # Resident Set Size (physical memory)
    vms_bytes: int
    heap_current_bytes: int  # tracemalloc, Python objects only
    heap_peak_bytes: int
    gc_objects: int = 0

    @property
    def rss_mb(self) -> float:
        return self.rss_bytes / (1024 * 1024)

    def to_dict(self):
        """Convert to dictionary for JSON serialization"""
        return dataclasses.asdict(self)
