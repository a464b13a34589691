from enum import Enum


class ProcessorType(Enum):
    PILLOW = "pillow"
    NOOP = "noop"
