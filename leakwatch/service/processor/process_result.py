import dataclasses
from typing import Optional


@dataclasses.dataclass
class ProcessResult:
    """Outcome of one processor call: either success or the error it reported"""
    path: str
    duration_seconds: float
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self):
        """Convert to dictionary for JSON serialization"""
        return {
            "path": self.path,
            "duration_seconds": self.duration_seconds,
            "error": None if self.error is None else repr(self.error),
        }
