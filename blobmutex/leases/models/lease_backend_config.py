from pydantic import (
    BaseModel,
    StrictBool,
    StrictInt,
    StrictStr,
    field_validator,
)

from blobmutex.env.time_parser import TimeParser
from blobmutex.errors import ConfigurationError


class LeaseBackendConfig(BaseModel):
    """
    Identifies the shared resource used as the mutual-exclusion point and
    the timings of the lease held on it. All durations are in seconds;
    duration strings such as ``"30s"`` or ``"1m30s"`` are accepted.
    """

    account_name: StrictStr
    container_name: StrictStr
    account_key: StrictStr | None = None
    endpoint: StrictStr | None = None
    lease_duration: float = 30.0
    renew_interval: float = 5.0
    acquire_retry_interval: float = 15.0
    max_acquire_failures: StrictInt = 0
    skip_validation: StrictBool = False

    @field_validator(
        "lease_duration",
        "renew_interval",
        "acquire_retry_interval",
        mode="before",
    )
    @classmethod
    def parse_duration(cls, value: str | int | float):
        if isinstance(value, bool):
            raise ConfigurationError(
                f"Err. - invalid duration - {value!r}"
            )

        return TimeParser().parse(value)

    def validate_timings(self) -> None:
        """
        Raise ConfigurationError unless the lease can be renewed well inside
        its own validity window. Skipped entirely in test mode.
        """
        if self.skip_validation:
            return

        durations = {
            "lease_duration": self.lease_duration,
            "renew_interval": self.renew_interval,
            "acquire_retry_interval": self.acquire_retry_interval,
        }

        for name, duration in durations.items():
            if duration <= 0:
                raise ConfigurationError(
                    f"config: invalid value {name} - must be greater than zero, got {duration}"
                )

        if self.renew_interval >= self.lease_duration:
            raise ConfigurationError(
                "config: renew duration should be less than lease duration"
            )

        if self.max_acquire_failures < 0:
            raise ConfigurationError(
                "config: max acquire failures cannot be negative"
            )
