"""
Exceptions raised by the distributed mutex, its lease backends, and the
supervised task runner.

Only configuration errors, command start failures, and (when explicitly
capped) repeated acquisition failures are meant to reach the process
boundary. Everything else is absorbed by the retry loops or logged.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from blobmutex.taskex.models import TaskExecution


class BlobMutexError(Exception):
    pass


class ConfigurationError(BlobMutexError):
    """Invalid durations, violated invariants, or missing settings."""
    pass


class LeaseError(BlobMutexError):
    pass


class LeaseBackendError(LeaseError):
    """
    Any failure reported by the lease backend: network, auth, service
    errors, or an unknown or expired lease id on renew/release.
    """
    pass


class LeaseAlreadyHeldError(LeaseBackendError):
    """The lease on the resource is currently held by someone else."""
    pass


class LeaseAcquireError(LeaseError):
    """
    Raised only when ``max_acquire_failures`` is set and that many
    consecutive non-contention acquisition attempts failed.
    """

    def __init__(self, message: str, failures: int) -> None:
        super().__init__(message)
        self.failures = failures


class TaskError(BlobMutexError):
    pass


class TaskStartError(TaskError):
    """The protected command could not be started at all."""

    def __init__(self, message: str, command: str) -> None:
        super().__init__(message)
        self.command = command


class TaskExitError(TaskError):
    """The protected command exited on its own with a non-zero code."""

    def __init__(self, execution: TaskExecution) -> None:
        super().__init__(
            f"Err. - command - {execution.command} - exited with code - {execution.return_code}"
        )
        self.execution = execution

    @property
    def return_code(self) -> int | None:
        return self.execution.return_code
