"""
Memory Inspector Module

Measures the memory usage of the current process between soak iterations.
Resident and virtual sizes come from psutil, Python heap totals from tracemalloc.
"""
import gc
import os
import time
import tracemalloc
from typing import Optional

import psutil

from leakwatch.monitor.memory_snapshot import MemorySnapshot
from leakwatch.util.log_config import setup_logger

logger = setup_logger(__name__)


class MemoryInspector:
    """Take memory snapshots of a process"""

    def __init__(self, pid: Optional[int] = None, trace_heap: bool = True, count_objects: bool = False):
        """
        Initialize memory inspector.

        Args:
            pid: Process ID to inspect (default: the current process)
            trace_heap: Report Python heap totals via tracemalloc
            count_objects: Report the number of objects tracked by the garbage collector
        """
        self.pid = pid if pid is not None else os.getpid()
        self.trace_heap = trace_heap
        self.count_objects = count_objects
        self.process = psutil.Process(self.pid)
        self._started_tracing = False
        self._last_timestamp = 0.0

    def start(self):
        """Start heap tracing if requested and not already running"""
        if self.trace_heap and not tracemalloc.is_tracing():
            tracemalloc.start()
            self._started_tracing = True
            logger.debug("tracemalloc started by memory inspector")

    def stop(self):
        """Stop heap tracing if this inspector started it"""
        if self._started_tracing:
            tracemalloc.stop()
            self._started_tracing = False

    def current_usage(self, iteration: int = 0) -> MemorySnapshot:
        """
        Measure current memory usage.

        Args:
            iteration: Iteration number the snapshot belongs to

        Returns:
            MemorySnapshot with wall-clock timestamp
        """
        mem_info = self.process.memory_info()

        heap_current, heap_peak = 0, 0
        if self.trace_heap:
            if not tracemalloc.is_tracing():
                self.start()
            heap_current, heap_peak = tracemalloc.get_traced_memory()

        gc_objects = len(gc.get_objects()) if self.count_objects else 0

        # Wall clock may step backwards (NTP); keep snapshot order monotonic
        timestamp = max(time.time(), self._last_timestamp)
        self._last_timestamp = timestamp

        return MemorySnapshot(
            iteration=iteration,
            timestamp=timestamp,
            rss_bytes=mem_info.rss,
            vms_bytes=mem_info.vms,
            heap_current_bytes=heap_current,
            heap_peak_bytes=heap_peak,
            gc_objects=gc_objects
        )
