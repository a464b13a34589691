"""Continue conditions for the repeat-loop driver."""
import time
from typing import Callable

ContinueCondition = Callable[[], bool]


def forever() -> ContinueCondition:
    """Never ends on its own; stop the driver to finish."""
    return lambda: True


def times(n: int) -> ContinueCondition:
    """True exactly n times, then false for good."""
    if n < 0:
        raise ValueError(f"iteration count must be >= 0, got {n}")
    remaining = n

    def condition() -> bool:
        nonlocal remaining
        if remaining <= 0:
            return False
        remaining -= 1
        return True

    return condition


def until_deadline(seconds: float) -> ContinueCondition:
    deadline = time.monotonic() + seconds
    return lambda: time.monotonic() < deadline
