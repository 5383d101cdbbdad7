"""
Lease backends used as the distributed mutual-exclusion point.

A backend grants time-bounded exclusive leases on named resources and
tells contention (LeaseAlreadyHeldError) apart from every other failure
(LeaseBackendError).
"""

from .lease_backend import LeaseBackend as LeaseBackend
from .memory import MemoryLeaseBackend as MemoryLeaseBackend
from .models import (
    LeaseBackendConfig as LeaseBackendConfig,
    LeaseState as LeaseState,
    MutexSession as MutexSession,
)
