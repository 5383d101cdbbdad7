from .distributed_mutex import DistributedMutex as DistributedMutex
from .mutex_state import MutexState as MutexState
from .stop_signal import (
    StopReason as StopReason,
    StopSignal as StopSignal,
)
