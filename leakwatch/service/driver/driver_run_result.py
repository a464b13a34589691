import dataclasses
from typing import List, Optional

from leakwatch.consts.DriverState import DriverState
from leakwatch.monitor.memory_snapshot import MemorySnapshot
from leakwatch.util.cal_utils import TrendTracker


@dataclasses.dataclass
class DriverRunResult:
    """Progress of one driver run; filled in while the loop is running"""
    path: str
    delay_seconds: float
    attempts: int = 0
    iterations_completed: int = 0
    failures: int = 0
    state: DriverState = DriverState.IDLE
    error: Optional[str] = None
    started_at: Optional[float] = None
    finished_at: Optional[float] = None
    trend: TrendTracker = dataclasses.field(default_factory=TrendTracker)

    @property
    def snapshots(self) -> List[MemorySnapshot]:
        """Most recent snapshots, bounded by the trend window"""
        return list(self.trend.recent)

    @property
    def aborted(self) -> bool:
        return self.error is not None

    @property
    def duration_seconds(self) -> float:
        if self.started_at is None or self.finished_at is None:
            return 0.0
        return self.finished_at - self.started_at

    def to_dict(self):
        """Convert to dictionary for JSON serialization (snapshots excluded)"""
        return {
            "path": self.path,
            "delay_seconds": self.delay_seconds,
            "attempts": self.attempts,
            "iterations_completed": self.iterations_completed,
            "failures": self.failures,
            "state": self.state.value,
            "aborted": self.aborted,
            "error": self.error,
            "duration_seconds": self.duration_seconds,
        }
