from __future__ import annotations

from azure.core.credentials import AzureNamedKeyCredential
from azure.core.exceptions import AzureError, HttpResponseError
from azure.storage.blob import StorageErrorCode
from azure.storage.blob.aio import BlobLeaseClient, BlobServiceClient

from blobmutex.errors import (
    ConfigurationError,
    LeaseAlreadyHeldError,
    LeaseBackendError,
)
from blobmutex.leases.lease_backend import LeaseBackend
from blobmutex.leases.models import LeaseBackendConfig


MIN_LEASE_SECONDS = 15
MAX_LEASE_SECONDS = 60
INFINITE_LEASE = -1


class BlobLeaseBackend(LeaseBackend):
    """
    Lease backend on top of Azure Blob Storage container leases.

    The resource is a blob container inside the storage account. Holding
    the container lease is holding the mutex.
    """

    def __init__(
        self,
        account_name: str,
        account_key: str | None,
        endpoint: str | None = None,
        service_client: BlobServiceClient | None = None,
    ) -> None:
        if not account_name or not account_key:
            raise ConfigurationError(
                "config: both the storage account name and the storage account key are required"
            )

        self.account_name = account_name
        self.account_url = endpoint or f"https://{account_name}.blob.core.windows.net"

        if service_client is None:
            service_client = BlobServiceClient(
                account_url=self.account_url,
                credential=AzureNamedKeyCredential(account_name, account_key),
            )

        self._service = service_client

    @classmethod
    def from_config(
        cls,
        config: LeaseBackendConfig,
        service_client: BlobServiceClient | None = None,
    ) -> BlobLeaseBackend:
        if config.skip_validation is False:
            validate_lease_duration(config.lease_duration)

        return cls(
            config.account_name,
            config.account_key,
            endpoint=config.endpoint,
            service_client=service_client,
        )

    async def ensure_namespace(self, identity: str, resource: str) -> None:
        container = self._service.get_container_client(resource)

        try:
            await container.create_container()

        except HttpResponseError as err:
            if error_code_of(err) == StorageErrorCode.CONTAINER_ALREADY_EXISTS:
                return

            raise LeaseBackendError(
                f"Err. - could not create container - {resource} - in account - {identity} - {err}"
            ) from err

        except AzureError as err:
            raise LeaseBackendError(
                f"Err. - could not create container - {resource} - in account - {identity} - {err}"
            ) from err

    async def acquire(self, resource: str, lease_duration: float) -> str:
        lease = self._lease_client(resource)

        try:
            await lease.acquire(
                lease_duration=to_lease_seconds(lease_duration),
            )

        except HttpResponseError as err:
            if error_code_of(err) == StorageErrorCode.LEASE_ALREADY_PRESENT:
                raise LeaseAlreadyHeldError(
                    f"Err. - lease already present on - {resource}"
                ) from err

            raise LeaseBackendError(
                f"Err. - failed to acquire lease on - {resource} - {err}"
            ) from err

        except AzureError as err:
            raise LeaseBackendError(
                f"Err. - failed to acquire lease on - {resource} - {err}"
            ) from err

        return lease.id

    async def renew(self, resource: str, lease_id: str) -> None:
        lease = self._lease_client(resource, lease_id=lease_id)

        try:
            await lease.renew()

        except AzureError as err:
            raise LeaseBackendError(
                f"Err. - failed to renew lease - {lease_id} - on - {resource} - {err}"
            ) from err

    async def release(self, resource: str, lease_id: str) -> None:
        lease = self._lease_client(resource, lease_id=lease_id)

        try:
            await lease.release()

        except AzureError as err:
            raise LeaseBackendError(
                f"Err. - failed to release lease - {lease_id} - on - {resource} - {err}"
            ) from err

    async def close(self) -> None:
        await self._service.close()

    def _lease_client(
        self,
        resource: str,
        lease_id: str | None = None,
    ) -> BlobLeaseClient:
        return BlobLeaseClient(
            self._service.get_container_client(resource),
            lease_id=lease_id,
        )


def error_code_of(err: HttpResponseError) -> str | None:
    return getattr(err, "error_code", None)


def to_lease_seconds(lease_duration: float) -> int:
    if lease_duration < 0:
        return INFINITE_LEASE

    return int(round(lease_duration))


def validate_lease_duration(lease_duration: float) -> None:
    lease_seconds = to_lease_seconds(lease_duration)

    if lease_seconds == INFINITE_LEASE:
        return

    if lease_seconds < MIN_LEASE_SECONDS or lease_seconds > MAX_LEASE_SECONDS:
        raise ConfigurationError(
            f"config: blob container leases must last between {MIN_LEASE_SECONDS} and {MAX_LEASE_SECONDS} seconds, got {lease_duration}"
        )
