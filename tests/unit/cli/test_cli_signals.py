"""
Test: blobmutex signal handling and parent death

1. SIGINT or SIGTERM while the command runs kills it and exits with 75
2. SIGTERM while still waiting for a contended lease exits with 75
3. The command dies with blobmutex, even when blobmutex is SIGKILLed
"""

import asyncio
import os
import pathlib
import signal
import subprocess
import sys
import time

import psutil
import pytest

import blobmutex as blobmutex_package
from blobmutex.cli import command
from blobmutex.cli.command import EX_TEMPFAIL, run_singleton
from blobmutex.leases import LeaseBackendConfig, MemoryLeaseBackend


linux_only = pytest.mark.skipif(
    not sys.platform.startswith("linux"),
    reason="parent death signals are Linux only",
)

posix_only = pytest.mark.skipif(
    sys.platform == "win32",
    reason="signal handlers are POSIX only",
)


def is_gone(pid: int) -> bool:
    try:
        return psutil.Process(pid).status() == psutil.STATUS_ZOMBIE

    except psutil.NoSuchProcess:
        return True


def wait_until_gone(pid: int, timeout: float = 5) -> bool:
    deadline = time.monotonic() + timeout
    while not is_gone(pid) and time.monotonic() < deadline:
        time.sleep(0.05)

    return is_gone(pid)


def wait_for_pid(path: pathlib.Path, timeout: float = 15) -> int:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if path.exists() and path.read_text().strip():
            return int(path.read_text().strip())

        time.sleep(0.05)

    raise AssertionError(f"{path} was never written")


def start_blobmutex(tmp_path: pathlib.Path, pid_file: pathlib.Path) -> subprocess.Popen:
    script = (
        "import os, time\n"
        f"open({str(pid_file)!r}, 'w').write(str(os.getpid()))\n"
        "time.sleep(30)\n"
    )

    env = dict(os.environ)
    package_root = str(pathlib.Path(blobmutex_package.__file__).parents[1])
    env["PYTHONPATH"] = os.pathsep.join(
        path for path in (package_root, env.get("PYTHONPATH")) if path
    )

    return subprocess.Popen(
        [
            sys.executable,
            "-m",
            "blobmutex",
            "--backend",
            "memory",
            "--log-level",
            "error",
            "--cmd",
            sys.executable,
            "--args",
            f"-c|{script}",
            "--sep",
            "|",
        ],
        cwd=tmp_path,
        env=env,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
    )


@posix_only
@pytest.mark.parametrize("signum", [signal.SIGINT, signal.SIGTERM])
def test_signal_while_held_kills_command(tmp_path, signum):
    pid_file = tmp_path / "command.pid"
    parent = start_blobmutex(tmp_path, pid_file)

    try:
        child_pid = wait_for_pid(pid_file)
        parent.send_signal(signum)

        assert parent.wait(timeout=15) == EX_TEMPFAIL

    finally:
        if parent.poll() is None:
            parent.kill()
            parent.wait()

    assert wait_until_gone(child_pid), "The command should be killed on a stop request"


@linux_only
def test_command_dies_with_sigkilled_parent(tmp_path):
    pid_file = tmp_path / "command.pid"
    parent = start_blobmutex(tmp_path, pid_file)

    try:
        child_pid = wait_for_pid(pid_file)

    except AssertionError:
        parent.kill()
        parent.wait()
        raise

    parent.send_signal(signal.SIGKILL)
    parent.wait(timeout=15)

    assert wait_until_gone(child_pid), "The command should not outlive blobmutex"


@posix_only
@pytest.mark.asyncio
async def test_sigterm_while_acquiring_exits_tempfail(logger, monkeypatch, tmp_path):
    backend = MemoryLeaseBackend()
    await backend.acquire("locks", 30)

    monkeypatch.setattr(command, "create_backend", lambda backend_name, config: backend)

    config = LeaseBackendConfig(
        account_name="acct",
        container_name="locks",
        lease_duration=1.0,
        renew_interval=0.05,
        acquire_retry_interval=0.05,
    )
    marker = tmp_path / "ran"

    asyncio.get_running_loop().call_later(0.3, os.kill, os.getpid(), signal.SIGTERM)

    exit_code = await asyncio.wait_for(
        run_singleton(
            config,
            "memory",
            sys.executable,
            ["-c", f"open({str(marker)!r}, 'w').write('1')"],
            logger,
        ),
        timeout=10,
    )

    assert exit_code == EX_TEMPFAIL
    assert not marker.exists(), "The command must not run without the lease"
    assert backend.get_lease("locks") is not None, "The other holder keeps its lease"
