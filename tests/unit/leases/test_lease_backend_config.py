import pytest
from pydantic import ValidationError

from blobmutex.errors import ConfigurationError
from blobmutex.leases import LeaseBackendConfig


def create_config(**overrides) -> LeaseBackendConfig:
    values = {
        "account_name": "acct",
        "container_name": "locks",
    }
    values.update(overrides)

    return LeaseBackendConfig(**values)


def test_defaults():
    config = create_config()

    assert config.lease_duration == 30.0
    assert config.renew_interval == 5.0
    assert config.acquire_retry_interval == 15.0
    assert config.max_acquire_failures == 0
    assert config.skip_validation is False

    config.validate_timings()


def test_duration_strings_are_parsed():
    config = create_config(
        lease_duration="1m",
        renew_interval="10s",
        acquire_retry_interval="500ms",
    )

    assert config.lease_duration == 60.0
    assert config.renew_interval == 10.0
    assert config.acquire_retry_interval == 0.5


def test_renew_must_be_shorter_than_lease():
    config = create_config(lease_duration="15s", renew_interval="15s")

    with pytest.raises(ConfigurationError) as err:
        config.validate_timings()

    assert "renew duration should be less than lease duration" in str(err.value)


def test_durations_must_be_positive():
    config = create_config(acquire_retry_interval=0)

    with pytest.raises(ConfigurationError):
        config.validate_timings()


def test_negative_failure_cap_rejected():
    config = create_config(max_acquire_failures=-1)

    with pytest.raises(ConfigurationError):
        config.validate_timings()


def test_skip_validation_bypasses_checks():
    config = create_config(
        lease_duration="5s",
        renew_interval="10s",
        skip_validation=True,
    )

    config.validate_timings()


def test_unparseable_duration_raises():
    with pytest.raises(ConfigurationError):
        create_config(lease_duration="soon")


def test_missing_container_is_a_validation_error():
    with pytest.raises(ValidationError):
        LeaseBackendConfig(account_name="acct")
