"""
Shared fixtures for the blobmutex test suite.
"""

import pytest

from blobmutex.env import Env
from blobmutex.leases import LeaseBackendConfig, MemoryLeaseBackend
from blobmutex.logging import Logger, LoggingConfig


@pytest.fixture(autouse=True)
def clear_singleton_environment(monkeypatch):
    """Keep SINGLETON_* variables of the host out of every test."""
    for envar_name in Env.types_map():
        monkeypatch.delenv(envar_name, raising=False)


@pytest.fixture
def lease_config() -> LeaseBackendConfig:
    return LeaseBackendConfig(
        account_name="acct",
        container_name="locks",
        lease_duration=1.0,
        renew_interval=0.05,
        acquire_retry_interval=0.05,
    )


@pytest.fixture
def memory_backend() -> MemoryLeaseBackend:
    return MemoryLeaseBackend()


@pytest.fixture
def logger() -> Logger:
    return Logger(
        LoggingConfig(
            log_level="debug",
            log_output="stderr",
        )
    )
