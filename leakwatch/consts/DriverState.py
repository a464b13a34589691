from enum import Enum


class DriverState(Enum):
    IDLE = "idle"
    INVOKING = "invoking"
    WAITING = "waiting"
    STOPPED = "stopped"
