import os
from typing import Dict, TypeVar, Union

from dotenv import dotenv_values
from pydantic import BaseModel, ValidationError

from blobmutex.errors import ConfigurationError

from .env import Env

T = TypeVar("T", bound=BaseModel)

PrimaryType = Union[str, int, bool, float, bytes]


def load_env(
    default: type[Env] = Env,
    env_file: str | None = None,
    override: Dict[str, PrimaryType | None] | None = None,
) -> Env:
    """
    Build an Env from (lowest to highest precedence) field defaults, the
    ``.env`` file, the process environment, and explicit overrides.
    """
    envars = default.types_map()

    if env_file is None:
        env_file = ".env"

    values: Dict[str, PrimaryType] = {}

    try:
        if env_file and os.path.exists(env_file):
            env_file_values = dotenv_values(dotenv_path=env_file)

            for envar_name, envar_value in env_file_values.items():
                envar_type = envars.get(envar_name)
                if envar_type and envar_value is not None:
                    values[envar_name] = envar_type(envar_value)

        for envar_name, envar_type in envars.items():
            envar_value = os.getenv(envar_name)
            if envar_value:
                values[envar_name] = envar_type(envar_value)

    except ValueError as err:
        raise ConfigurationError(
            f"Err. - invalid environment value - {err}"
        ) from err

    if override:
        values.update(
            {name: value for name, value in override.items() if value is not None}
        )

    try:
        return default(**values)

    except ValidationError as err:
        raise ConfigurationError(
            f"Err. - invalid configuration - {err}"
        ) from err
