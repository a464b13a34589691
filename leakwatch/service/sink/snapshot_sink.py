from abc import ABC, abstractmethod
from typing import List

from leakwatch.monitor.memory_snapshot import MemorySnapshot


class SnapshotSink(ABC):
    """Receives one snapshot per completed iteration, in iteration order"""

    @abstractmethod
    def emit(self, snapshot: MemorySnapshot) -> None:
        pass

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class MemorySink(SnapshotSink):
    """Keeps every snapshot in a list"""

    def __init__(self):
        self.snapshots: List[MemorySnapshot] = []

    def emit(self, snapshot: MemorySnapshot) -> None:
        self.snapshots.append(snapshot)
