"""
Lease-based distributed mutex.

Runs a task only while this node holds the lease on a shared backend
resource:

1. Acquire-or-wait: keep trying to acquire the lease at a constant
   interval. Contention is logged at INFO, any other failure at WARN, and
   both are retried.
2. Once held, renew the lease in the background every renew interval
   while the task runs.
3. A failed renewal is fatal to the acquisition: the stop signal fires so
   the task can tear down its protected work (fail-stop). There is no
   re-acquisition within the same call.
4. When the task finishes, retire the renewal loop and release the lease
   (best-effort; backend expiry is the safety net).
"""

from __future__ import annotations

import asyncio
from typing import (
    TYPE_CHECKING,
    Awaitable,
    Callable,
    TypeVar,
)

from blobmutex.errors import LeaseAcquireError, LeaseAlreadyHeldError
from blobmutex.leases.lease_backend import LeaseBackend
from blobmutex.leases.models import LeaseBackendConfig, MutexSession
from blobmutex.logging.blobmutex_logging_models import (
    MutexDebug,
    MutexInfo,
    MutexWarning,
    MutexError,
)

from .mutex_state import MutexState
from .stop_signal import StopReason, StopSignal

if TYPE_CHECKING:
    from blobmutex.logging import Logger


T = TypeVar("T")


class DistributedMutex:

    def __init__(
        self,
        backend: LeaseBackend,
        config: LeaseBackendConfig,
        logger: "Logger | None" = None,
    ) -> None:
        """
        Args:
            backend: Lease backend holding the shared resource
            config: Resource identity and lease timings
            logger: Logger instance, or None to disable logging
        """
        self._backend = backend
        self._config = config
        self._logger = logger

        self.state = MutexState.IDLE
        self.session: MutexSession | None = None
        self.stop_signal: StopSignal | None = None
        self._renew_task: asyncio.Task | None = None

    @property
    def is_held(self) -> bool:
        return (
            self.state == MutexState.HELD
            and self.session is not None
            and self.session.is_active()
        )

    async def run_exclusive(
        self,
        task: Callable[[], Awaitable[T]],
        stop_signal: StopSignal | None = None,
    ) -> T:
        """
        Block until the lease is acquired, then run the task while keeping
        the lease renewed. Returns the task's result or re-raises its error
        once the lease has been released.

        Args:
            task: Zero-argument callable returning an awaitable
            stop_signal: Shared stop signal. Fired with RENEWAL_FAILED if
                the lease is lost while the task runs. Created if omitted.
        """
        self._config.validate_timings()

        if stop_signal is None:
            stop_signal = StopSignal()

        self.stop_signal = stop_signal
        self.state = MutexState.ACQUIRING

        try:
            session = await self._acquire_or_wait()

        except BaseException:
            self.state = MutexState.TERMINATED
            raise

        self.session = session
        self.state = MutexState.HELD

        try:
            self._renew_task = asyncio.create_task(
                self._keep_renewing(session, stop_signal)
            )

            if self._logger:
                await self._logger.log(
                    MutexInfo(
                        message=f"Acquired lease - {session.lease_id} - on {self._config.account_name}, {self._config.container_name} at {session.acquired_at_wall}",
                        account=self._config.account_name,
                        container=self._config.container_name,
                    )
                )

            return await task()

        finally:
            stop_signal.fire(StopReason.TASK_COMPLETED)
            self.state = MutexState.RELEASING

            try:
                await self._retire_renewal()
                await self._release(session)

            finally:
                self.state = MutexState.TERMINATED

    async def _acquire_or_wait(self) -> MutexSession:
        account = self._config.account_name
        container = self._config.container_name
        retry_interval = self._config.acquire_retry_interval
        max_failures = self._config.max_acquire_failures

        namespace_ready = False
        consecutive_failures = 0

        while True:
            if self._logger:
                await self._logger.log(
                    MutexDebug(
                        message=f"Trying to acquire the lease on {account}, {container}",
                        account=account,
                        container=container,
                    )
                )

            try:
                if namespace_ready is False:
                    await self._backend.ensure_namespace(account, container)
                    namespace_ready = True

                lease_id = await self._backend.acquire(
                    container,
                    self._config.lease_duration,
                )

                return MutexSession(
                    resource=container,
                    lease_id=lease_id,
                    lease_duration=self._config.lease_duration,
                )

            except LeaseAlreadyHeldError:
                consecutive_failures = 0

                if self._logger:
                    await self._logger.log(
                        MutexInfo(
                            message=f"LeaseAlreadyPresent on {account}, {container} will try again in {retry_interval}s",
                            account=account,
                            container=container,
                        )
                    )

            except Exception as err:
                consecutive_failures += 1

                if self._logger:
                    await self._logger.log(
                        MutexWarning(
                            message=f"Failed to acquire the lease on {account}, {container} will try again in {retry_interval}s - {err}",
                            account=account,
                            container=container,
                        )
                    )

                if max_failures > 0 and consecutive_failures >= max_failures:
                    if self._logger:
                        await self._logger.log(
                            MutexError(
                                message=f"Giving up on the lease on {account}, {container} after {consecutive_failures} consecutive failures",
                                account=account,
                                container=container,
                            )
                        )

                    raise LeaseAcquireError(
                        f"Err. - failed to acquire lease on - {container} - after - {consecutive_failures} - consecutive failures",
                        consecutive_failures,
                    ) from err

            await asyncio.sleep(retry_interval)

    async def _keep_renewing(
        self,
        session: MutexSession,
        stop_signal: StopSignal,
    ) -> None:
        account = self._config.account_name
        renew_interval = self._config.renew_interval

        # A renewal slower than the lease itself means the lease may be gone.
        renew_timeout: float | None = self._config.lease_duration
        if renew_timeout <= 0:
            renew_timeout = None

        while True:
            if await stop_signal.wait(timeout=renew_interval):
                return

            try:
                await asyncio.wait_for(
                    self._backend.renew(session.resource, session.lease_id),
                    timeout=renew_timeout,
                )

            except Exception as err:
                session.mark_abandoned()

                if self._logger:
                    await self._logger.log(
                        MutexWarning(
                            message=f"Failed to renew the lease on {account}, {session.resource} - {err!r}",
                            account=account,
                            container=session.resource,
                        )
                    )

                stop_signal.fire(StopReason.RENEWAL_FAILED)
                return

            session.mark_renewed()

            if self._logger:
                await self._logger.log(
                    MutexDebug(
                        message=f"Renewed the lease on {account}, {session.resource} - next renewal in {renew_interval}s",
                        account=account,
                        container=session.resource,
                    )
                )

    async def _retire_renewal(self) -> None:
        if self._renew_task is None:
            return

        await asyncio.gather(
            self._renew_task,
            return_exceptions=True,
        )

        self._renew_task = None

    async def _release(self, session: MutexSession) -> None:
        account = self._config.account_name

        try:
            await self._backend.release(session.resource, session.lease_id)

        except Exception as err:
            if self._logger:
                await self._logger.log(
                    MutexWarning(
                        message=f"Failed to release the lease on {account}, {session.resource} - {err!r}",
                        account=account,
                        container=session.resource,
                    )
                )

            return

        if session.is_active():
            session.mark_released()

        if self._logger:
            await self._logger.log(
                MutexInfo(
                    message=f"Released the lease on {account}, {session.resource} after {session.held_for():.1f}s and {session.renewals} renewals",
                    account=account,
                    container=session.resource,
                )
            )

    async def close(self) -> None:
        await self._backend.close()
