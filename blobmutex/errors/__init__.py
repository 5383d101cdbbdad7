from .mutex_errors import (
    BlobMutexError as BlobMutexError,
    ConfigurationError as ConfigurationError,
    LeaseAcquireError as LeaseAcquireError,
    LeaseAlreadyHeldError as LeaseAlreadyHeldError,
    LeaseBackendError as LeaseBackendError,
    LeaseError as LeaseError,
    TaskError as TaskError,
    TaskExitError as TaskExitError,
    TaskStartError as TaskStartError,
)
