from enum import Enum


class MutexState(Enum):
    IDLE = "IDLE"
    ACQUIRING = "ACQUIRING"
    HELD = "HELD"
    RELEASING = "RELEASING"
    TERMINATED = "TERMINATED"
