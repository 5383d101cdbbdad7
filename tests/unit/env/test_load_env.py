"""
Test: load_env precedence

Field defaults < .env file < process environment < explicit overrides.
"""

import pytest

from blobmutex.env import Env, load_env
from blobmutex.errors import ConfigurationError


def test_defaults_without_env_file(tmp_path):
    env = load_env(env_file=str(tmp_path / "missing.env"))

    assert env.SINGLETON_BACKEND == "azure"
    assert env.SINGLETON_ACCOUNT_NAME is None
    assert env.SINGLETON_LEASE_DURATION == "30s"
    assert env.SINGLETON_RENEW_DURATION == "5s"
    assert env.SINGLETON_ACQUIRE_DURATION == "15s"
    assert env.SINGLETON_MAX_ACQUIRE_FAILURES == 0
    assert env.SINGLETON_CMD_ARGS == ""
    assert env.SINGLETON_CMD_ARG_SEPARATOR == " "
    assert env.SINGLETON_LOG_FORMAT == "json"


def test_env_file_values(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text(
        "SINGLETON_ACCOUNT_NAME=fromfile\n"
        "SINGLETON_LEASE_DURATION=45s\n"
        "SINGLETON_MAX_ACQUIRE_FAILURES=3\n"
        "UNRELATED=ignored\n"
    )

    env = load_env(env_file=str(env_file))

    assert env.SINGLETON_ACCOUNT_NAME == "fromfile"
    assert env.SINGLETON_LEASE_DURATION == "45s"
    assert env.SINGLETON_MAX_ACQUIRE_FAILURES == 3


def test_process_environment_beats_env_file(tmp_path, monkeypatch):
    env_file = tmp_path / ".env"
    env_file.write_text("SINGLETON_ACCOUNT_NAME=fromfile\n")
    monkeypatch.setenv("SINGLETON_ACCOUNT_NAME", "fromenv")

    env = load_env(env_file=str(env_file))

    assert env.SINGLETON_ACCOUNT_NAME == "fromenv"


def test_overrides_beat_everything(tmp_path, monkeypatch):
    env_file = tmp_path / ".env"
    env_file.write_text("SINGLETON_CONTAINER_NAME=fromfile\n")
    monkeypatch.setenv("SINGLETON_ACCOUNT_NAME", "fromenv")

    env = load_env(
        env_file=str(env_file),
        override={
            "SINGLETON_ACCOUNT_NAME": "fromflag",
            "SINGLETON_CONTAINER_NAME": None,
        },
    )

    assert env.SINGLETON_ACCOUNT_NAME == "fromflag"
    assert env.SINGLETON_CONTAINER_NAME == "fromfile", "None overrides are skipped"


def test_invalid_integer_raises_configuration_error(tmp_path, monkeypatch):
    monkeypatch.setenv("SINGLETON_MAX_ACQUIRE_FAILURES", "many")

    with pytest.raises(ConfigurationError):
        load_env(env_file=str(tmp_path / "missing.env"))


def test_invalid_choice_raises_configuration_error(tmp_path):
    with pytest.raises(ConfigurationError):
        load_env(
            env_file=str(tmp_path / "missing.env"),
            override={"SINGLETON_BACKEND": "redis"},
        )


def test_types_map_covers_every_field():
    assert set(Env.types_map()) == set(Env.model_fields)
