"""
In-process lease backend.

Keeps the lease table in memory, so mutual exclusion only holds between
DistributedMutex instances sharing one MemoryLeaseBackend. Used by the
test suite and by the ``--backend memory`` dry-run mode of the CLI.

Expiry is based on monotonic time, and an expired lease can be acquired
by anyone without being released first.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from dataclasses import dataclass, field

from blobmutex.errors import LeaseAlreadyHeldError, LeaseBackendError
from blobmutex.leases.lease_backend import LeaseBackend
from blobmutex.leases.models import LeaseState


@dataclass(slots=True)
class MemoryLease:
    """
    A lease record held by the memory backend.

    Attributes:
        resource: The resource this lease is on
        lease_id: Identifier handed to the holder
        expires_at: When the lease expires (monotonic)
        lease_duration: Duration in seconds
        state: Current state of the lease
    """
    resource: str
    lease_id: str
    expires_at: float
    lease_duration: float
    state: LeaseState = field(default=LeaseState.ACTIVE)

    def is_expired(self) -> bool:
        if self.state == LeaseState.RELEASED:
            return True
        return time.monotonic() >= self.expires_at

    def is_active(self) -> bool:
        return not self.is_expired() and self.state == LeaseState.ACTIVE

    def extend(self) -> None:
        self.expires_at = time.monotonic() + self.lease_duration


class MemoryLeaseBackend(LeaseBackend):

    def __init__(self) -> None:
        self._namespaces: set[tuple[str, str]] = set()
        self._leases: dict[str, MemoryLease] = {}
        self._lock = asyncio.Lock()

    async def ensure_namespace(self, identity: str, resource: str) -> None:
        async with self._lock:
            self._namespaces.add((identity, resource))

    async def acquire(self, resource: str, lease_duration: float) -> str:
        async with self._lock:
            existing = self._leases.get(resource)

            if existing and existing.is_active():
                raise LeaseAlreadyHeldError(
                    f"Err. - lease already present on - {resource}"
                )

            lease = MemoryLease(
                resource=resource,
                lease_id=str(uuid.uuid4()),
                expires_at=time.monotonic() + lease_duration,
                lease_duration=lease_duration,
            )

            self._leases[resource] = lease

            return lease.lease_id

    async def renew(self, resource: str, lease_id: str) -> None:
        async with self._lock:
            lease = self._get_owned_lease(resource, lease_id)

            if lease.is_expired():
                lease.state = LeaseState.EXPIRED
                raise LeaseBackendError(
                    f"Err. - lease - {lease_id} - on - {resource} - has expired"
                )

            lease.extend()

    async def release(self, resource: str, lease_id: str) -> None:
        async with self._lock:
            lease = self._get_owned_lease(resource, lease_id)
            lease.state = LeaseState.RELEASED

    def get_lease(self, resource: str) -> MemoryLease | None:
        """Return the active lease on a resource, if any."""
        lease = self._leases.get(resource)
        if lease and lease.is_active():
            return lease

        return None

    def has_namespace(self, identity: str, resource: str) -> bool:
        return (identity, resource) in self._namespaces

    def _get_owned_lease(self, resource: str, lease_id: str) -> MemoryLease:
        lease = self._leases.get(resource)

        if lease is None or lease.lease_id != lease_id:
            raise LeaseBackendError(
                f"Err. - lease id mismatch on - {resource}"
            )

        if lease.state == LeaseState.RELEASED:
            raise LeaseBackendError(
                f"Err. - lease - {lease_id} - on - {resource} - was already released"
            )

        return lease
