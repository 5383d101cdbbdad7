"""
Test: blobmutex entry point

Runs the click command in-process against the memory backend.
"""

import sys

import pytest
from click.testing import CliRunner

from blobmutex.cli import blobmutex
from blobmutex.cli.command import (
    EX_ERROR,
    EX_TEMPFAIL,
    split_args,
    to_exit_code,
)


@pytest.fixture
def runner(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return CliRunner()


def memory_args(*extra: str) -> list[str]:
    return [
        "--backend",
        "memory",
        "--log-level",
        "error",
        "-l",
        "2s",
        "-r",
        "100ms",
        "-q",
        "100ms",
        *extra,
    ]


def test_split_args():
    assert split_args("", " ") == []
    assert split_args(None, " ") == []
    assert split_args("-c pass", " ") == ["-c", "pass"]
    assert split_args("-c|import sys; print(1)", "|") == ["-c", "import sys; print(1)"]


def test_exit_code_mapping():
    assert to_exit_code(0) == 0
    assert to_exit_code(3) == 3
    assert to_exit_code(-9) == 137
    assert to_exit_code(None) == EX_ERROR


def test_missing_command_is_a_configuration_error(runner):
    result = runner.invoke(blobmutex, memory_args())

    assert result.exit_code == EX_ERROR


def test_successful_command(runner):
    result = runner.invoke(
        blobmutex,
        memory_args("--cmd", sys.executable, "--args", "-c|pass", "--sep", "|"),
    )

    assert result.exit_code == 0, result.output


def test_child_exit_code_is_propagated(runner):
    result = runner.invoke(
        blobmutex,
        memory_args(
            "--cmd",
            sys.executable,
            "--args",
            "-c|import sys; sys.exit(3)",
            "--sep",
            "|",
        ),
    )

    assert result.exit_code == 3


def test_unstartable_command_exits_with_error(runner):
    result = runner.invoke(
        blobmutex,
        memory_args("--cmd", "/nonexistent/blobmutex-command"),
    )

    assert result.exit_code == EX_ERROR


def test_renew_interval_must_be_below_lease_duration(runner, tmp_path):
    marker = tmp_path / "ran"
    result = runner.invoke(
        blobmutex,
        [
            "--backend",
            "memory",
            "-l",
            "5s",
            "-r",
            "10s",
            "--cmd",
            sys.executable,
            "--args",
            f"-c|open({str(marker)!r}, 'w').write('1')",
            "--sep",
            "|",
        ],
    )

    assert result.exit_code == EX_ERROR
    assert "renew duration should be less than lease duration" in result.output
    assert not marker.exists()


def test_test_mode_skips_timing_validation(runner):
    result = runner.invoke(
        blobmutex,
        [
            "--backend",
            "memory",
            "--log-level",
            "error",
            "-t",
            "-l",
            "5s",
            "-r",
            "10s",
            "--cmd",
            sys.executable,
            "--args",
            "-c pass",
        ],
    )

    assert result.exit_code == 0, result.output


def test_azure_backend_requires_storage_key(runner):
    result = runner.invoke(
        blobmutex,
        [
            "-a",
            "acct",
            "-c",
            "locks",
            "--log-level",
            "error",
            "--cmd",
            sys.executable,
            "--args",
            "-c pass",
        ],
    )

    assert result.exit_code == EX_ERROR


def test_azure_backend_rejects_short_leases(runner):
    result = runner.invoke(
        blobmutex,
        [
            "-a",
            "acct",
            "-c",
            "locks",
            "-k",
            "a2V5",
            "-l",
            "10s",
            "-r",
            "2s",
            "--log-level",
            "error",
            "--cmd",
            sys.executable,
        ],
    )

    assert result.exit_code == EX_ERROR


def test_invalid_log_level(runner):
    result = runner.invoke(
        blobmutex,
        memory_args("--cmd", sys.executable, "--log-level", "verbose"),
    )

    assert result.exit_code == EX_ERROR


def test_settings_from_environment(runner, monkeypatch):
    monkeypatch.setenv("SINGLETON_BACKEND", "memory")
    monkeypatch.setenv("SINGLETON_LOG_LEVEL", "error")
    monkeypatch.setenv("SINGLETON_CMD", sys.executable)
    monkeypatch.setenv("SINGLETON_CMD_ARGS", "-c pass")

    result = runner.invoke(blobmutex, [])

    assert result.exit_code == 0, result.output


def test_settings_from_env_file(runner, tmp_path):
    env_file = tmp_path / "singleton.env"
    env_file.write_text(
        "SINGLETON_BACKEND=memory\n"
        "SINGLETON_LOG_LEVEL=error\n"
        f"SINGLETON_CMD={sys.executable}\n"
        "SINGLETON_CMD_ARGS=-c|import sys; sys.exit(4)\n"
        "SINGLETON_CMD_ARG_SEPARATOR=|\n"
    )

    result = runner.invoke(blobmutex, ["--env-file", str(env_file)])

    assert result.exit_code == 4


def test_tempfail_code_is_ex_tempfail():
    assert EX_TEMPFAIL == 75


def test_unwritable_log_file_is_a_configuration_error(runner, tmp_path):
    marker = tmp_path / "ran"
    result = runner.invoke(
        blobmutex,
        memory_args(
            "--log-file",
            str(tmp_path),
            "--cmd",
            sys.executable,
            "--args",
            f"-c|open({str(marker)!r}, 'w').write('1')",
            "--sep",
            "|",
        ),
    )

    assert result.exit_code == EX_ERROR
    assert not marker.exists(), "The command must not run without its log file"
