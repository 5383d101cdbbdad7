from __future__ import annotations

import asyncio
import ctypes
import os
import signal
import sys
from typing import TYPE_CHECKING, Callable, Sequence

import psutil

from blobmutex.errors import TaskExitError, TaskStartError
from blobmutex.logging.blobmutex_logging_models import (
    RunnerDebug,
    RunnerError,
    RunnerInfo,
    RunnerWarning,
)
from blobmutex.mutex.stop_signal import StopSignal

from .models import RunStatus, TaskExecution

if TYPE_CHECKING:
    from blobmutex.logging import Logger


PR_SET_PDEATHSIG = 1


def parent_death_hook(parent_pid: int) -> Callable[[], None] | None:
    """
    Build a pre-exec hook asking the kernel to SIGTERM the child when
    this process dies, however it dies. Linux only; returns None
    elsewhere.
    """
    if not sys.platform.startswith("linux"):
        return None

    libc = ctypes.CDLL(None, use_errno=True)

    def set_parent_death_signal() -> None:
        libc.prctl(PR_SET_PDEATHSIG, int(signal.SIGTERM))

        # The parent may have died between fork and prctl.
        if os.getppid() != parent_pid:
            os.kill(os.getpid(), signal.SIGTERM)

    return set_parent_death_signal


class SupervisedTaskRunner:
    """
    Runs the protected command as a child process and races its exit
    against a stop signal. If the signal wins, the whole process tree of
    the child is killed.

    The child inherits stdout and stderr and runs in its own session, so
    its process group id is its pid.
    """

    def __init__(
        self,
        logger: Logger | None = None,
    ) -> None:
        self._logger = logger

    async def run(
        self,
        command_path: str,
        args: Sequence[str] | None,
        stop_signal: StopSignal,
    ) -> TaskExecution:
        execution = TaskExecution(command_path, list(args or []))

        try:
            process = await asyncio.create_subprocess_exec(
                command_path,
                *execution.args,
                stdout=None,
                stderr=None,
                start_new_session=True,
                preexec_fn=parent_death_hook(os.getpid()),
            )

        except (OSError, ValueError) as err:
            execution.status = RunStatus.FAILED

            if self._logger:
                await self._logger.log(
                    RunnerError(
                        message=f"Failed to start command - {err}",
                        command=execution.command,
                    )
                )

            raise TaskStartError(
                f"Err. - could not start command - {execution.command} - {err}",
                execution.command,
            ) from err

        execution.mark_running(process.pid)

        if self._logger:
            await self._logger.log(
                RunnerInfo(
                    message="Started command",
                    command=execution.command,
                    pid=process.pid,
                )
            )

        exit_wait = asyncio.ensure_future(process.wait())
        stop_wait = asyncio.ensure_future(stop_signal.wait())

        try:
            await asyncio.wait(
                {exit_wait, stop_wait},
                return_when=asyncio.FIRST_COMPLETED,
            )

        except asyncio.CancelledError:
            self._kill_tree(process, execution)
            await asyncio.shield(exit_wait)
            raise

        finally:
            if not stop_wait.done():
                stop_wait.cancel()

        if exit_wait.done():
            return_code = exit_wait.result()
            execution.mark_exited(return_code)

            if return_code != 0:
                if self._logger:
                    await self._logger.log(
                        RunnerError(
                            message=f"Command exited with code {return_code}",
                            command=execution.command,
                            pid=execution.pid,
                        )
                    )

                raise TaskExitError(execution)

            if self._logger:
                await self._logger.log(
                    RunnerInfo(
                        message=f"Command completed in {execution.elapsed:.1f}s",
                        command=execution.command,
                        pid=execution.pid,
                    )
                )

            return execution

        reason = stop_signal.reason

        if self._logger:
            await self._logger.log(
                RunnerWarning(
                    message=f"Stop requested ({reason.value if reason else 'unknown'}) - killing command",
                    command=execution.command,
                    pid=execution.pid,
                )
            )

        self._kill_tree(process, execution)
        return_code = await exit_wait

        execution.mark_killed(reason, return_code)

        if self._logger:
            await self._logger.log(
                RunnerInfo(
                    message=f"Command killed with code {return_code}",
                    command=execution.command,
                    pid=execution.pid,
                )
            )

        return execution

    def _kill_tree(
        self,
        process: asyncio.subprocess.Process,
        execution: TaskExecution,
    ) -> None:
        pid = process.pid

        # Collected first, since descendants get reparented once the
        # child dies.
        try:
            descendants = psutil.Process(pid).children(recursive=True)

        except (psutil.NoSuchProcess, psutil.AccessDenied):
            descendants = []

        if hasattr(os, "killpg"):
            try:
                os.killpg(pid, signal.SIGKILL)

            except (ProcessLookupError, PermissionError) as err:
                self._log_kill_error(execution, f"process group {pid}", err)

        for descendant in descendants:
            try:
                descendant.kill()

            except psutil.NoSuchProcess:
                pass

            except psutil.AccessDenied as err:
                self._log_kill_error(execution, f"process {descendant.pid}", err)

        try:
            process.kill()

        except ProcessLookupError:
            pass

    def _log_kill_error(
        self,
        execution: TaskExecution,
        target: str,
        err: Exception,
    ):
        if self._logger:
            self._logger.schedule(
                RunnerDebug(
                    message=f"Could not kill {target} - {err!r}",
                    command=execution.command,
                    pid=execution.pid,
                )
            )
