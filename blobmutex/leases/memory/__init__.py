from .memory_backend import (
    MemoryLease as MemoryLease,
    MemoryLeaseBackend as MemoryLeaseBackend,
)
