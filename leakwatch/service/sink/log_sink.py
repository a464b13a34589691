import logging
from typing import Optional

from leakwatch.monitor.memory_snapshot import MemorySnapshot
from leakwatch.service.sink.snapshot_sink import SnapshotSink
from leakwatch.util.log_config import setup_logger


class LogSink(SnapshotSink):
    """One log line per snapshot"""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or setup_logger(__name__)
        self._previous_rss: Optional[int] = None

    def emit(self, snapshot: MemorySnapshot) -> None:
        delta = 0 if self._previous_rss is None else snapshot.rss_bytes - self._previous_rss
        self._previous_rss = snapshot.rss_bytes
        self.logger.info(format_snapshot(snapshot, delta))


def format_snapshot(snapshot: MemorySnapshot, rss_delta: int = 0) -> str:
    return (f"  Iteration {snapshot.iteration}: "
            f"RSS={snapshot.rss_bytes / 1024 / 1024:.1f}MB ({rss_delta / 1024:+.0f}KB), "
            f"VMS={snapshot.vms_bytes / 1024 / 1024:.1f}MB, "
            f"Heap={snapshot.heap_current_bytes / 1024 / 1024:.2f}MB "
            f"(peak {snapshot.heap_peak_bytes / 1024 / 1024:.2f}MB)"
            + (f", Objects={snapshot.gc_objects}" if snapshot.gc_objects else ""))
