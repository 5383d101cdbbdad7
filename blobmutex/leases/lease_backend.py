from abc import ABC, abstractmethod


class LeaseBackend(ABC):
    """
    Translates acquire/renew/release into calls against a store that
    grants time-bounded exclusive leases on named resources.

    Implementations must raise LeaseAlreadyHeldError when an acquire fails
    because someone else holds the lease, and LeaseBackendError for every
    other failure, so callers can tell contention from real faults.
    """

    @abstractmethod
    async def ensure_namespace(self, identity: str, resource: str) -> None:
        """
        Make sure the resource exists. Idempotent: a resource that already
        exists is success.

        Args:
            identity: Account or namespace that owns the resource
            resource: Name of the resource to lease on
        """
        pass

    @abstractmethod
    async def acquire(self, resource: str, lease_duration: float) -> str:
        """
        Acquire the lease on a resource.

        Args:
            resource: Name of the resource to lease on
            lease_duration: How long the grant is valid, in seconds

        Returns:
            The opaque lease identifier
        """
        pass

    @abstractmethod
    async def renew(self, resource: str, lease_id: str) -> None:
        """Refresh a held lease for another full lease duration."""
        pass

    @abstractmethod
    async def release(self, resource: str, lease_id: str) -> None:
        """Give up a held lease so another node can acquire it immediately."""
        pass

    async def close(self) -> None:
        pass
