"""Soak run result data model."""

from dataclasses import dataclass
from typing import Any, Dict

from leakwatch.monitor.memory_trend_result import MemoryTrendResult
from leakwatch.service.driver.driver_run_result import DriverRunResult


@dataclass
class SoakResult:
    """
    Everything worth keeping from one soak run.

    Combines the driver's progress with the memory trend accumulated while
    it ran.
    """
    processor: str
    pipeline: list
    run: DriverRunResult
    trend: MemoryTrendResult

    def to_summary_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            "processor": self.processor,
            "pipeline": self.pipeline,
            "run": self.run.to_dict(),
            "memory": self.trend.to_dict(),
        }
