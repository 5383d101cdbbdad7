from .errors import (
    BlobMutexError as BlobMutexError,
    ConfigurationError as ConfigurationError,
    LeaseAcquireError as LeaseAcquireError,
    TaskExitError as TaskExitError,
    TaskStartError as TaskStartError,
)
from .leases import (
    LeaseBackend as LeaseBackend,
    LeaseBackendConfig as LeaseBackendConfig,
    MemoryLeaseBackend as MemoryLeaseBackend,
)
from .mutex import (
    DistributedMutex as DistributedMutex,
    MutexState as MutexState,
    StopReason as StopReason,
    StopSignal as StopSignal,
)
from .taskex import (
    SupervisedTaskRunner as SupervisedTaskRunner,
    TaskExecution as TaskExecution,
)
