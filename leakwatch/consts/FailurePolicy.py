from enum import Enum


class FailurePolicy(Enum):
    ABORT = "abort"
    RETRY = "retry"
    SKIP = "skip"
