from __future__ import annotations
from typing import Callable, Dict, Literal, Union

from pydantic import BaseModel, StrictInt, StrictStr

PrimaryType = Union[str, int, float, bytes, bool]


class Env(BaseModel):
    # Lease backend
    SINGLETON_BACKEND: Literal["azure", "memory"] = "azure"
    SINGLETON_ACCOUNT_NAME: StrictStr | None = None
    SINGLETON_CONTAINER_NAME: StrictStr | None = None
    SINGLETON_STORAGE_KEY: StrictStr | None = None
    SINGLETON_ENDPOINT: StrictStr | None = None

    # Lease timings
    SINGLETON_LEASE_DURATION: StrictStr = "30s"
    SINGLETON_RENEW_DURATION: StrictStr = "5s"
    SINGLETON_ACQUIRE_DURATION: StrictStr = "15s"
    SINGLETON_MAX_ACQUIRE_FAILURES: StrictInt = 0

    # Protected command
    SINGLETON_CMD: StrictStr | None = None
    SINGLETON_CMD_ARGS: StrictStr = ""
    SINGLETON_CMD_ARG_SEPARATOR: StrictStr = " "

    # Logging
    SINGLETON_LOG_LEVEL: StrictStr = "info"
    SINGLETON_LOG_FORMAT: Literal["text", "json"] = "json"
    SINGLETON_LOG_FILE: StrictStr | None = None

    @classmethod
    def types_map(cls) -> Dict[str, Callable[[str], PrimaryType]]:
        return {
            "SINGLETON_BACKEND": str,
            "SINGLETON_ACCOUNT_NAME": str,
            "SINGLETON_CONTAINER_NAME": str,
            "SINGLETON_STORAGE_KEY": str,
            "SINGLETON_ENDPOINT": str,
            "SINGLETON_LEASE_DURATION": str,
            "SINGLETON_RENEW_DURATION": str,
            "SINGLETON_ACQUIRE_DURATION": str,
            "SINGLETON_MAX_ACQUIRE_FAILURES": int,
            "SINGLETON_CMD": str,
            "SINGLETON_CMD_ARGS": str,
            "SINGLETON_CMD_ARG_SEPARATOR": str,
            "SINGLETON_LOG_LEVEL": str,
            "SINGLETON_LOG_FORMAT": str,
            "SINGLETON_LOG_FILE": str,
        }
