from __future__ import annotations

import shlex
import time
from typing import TYPE_CHECKING

from .run_status import RunStatus

if TYPE_CHECKING:
    from blobmutex.mutex.stop_signal import StopReason


class TaskExecution:
    """
    Record of one supervised run of the protected command.
    """

    __slots__ = (
        "command_path",
        "args",
        "status",
        "pid",
        "return_code",
        "stop_reason",
        "start",
        "end",
        "elapsed",
    )

    def __init__(
        self,
        command_path: str,
        args: list[str] | None = None,
    ) -> None:
        self.command_path = command_path
        self.args: list[str] = list(args or [])
        self.status = RunStatus.CREATED

        self.pid: int | None = None
        self.return_code: int | None = None
        self.stop_reason: StopReason | None = None

        self.start = time.monotonic()
        self.end: float | None = None
        self.elapsed: float = 0

    @property
    def command(self) -> str:
        return shlex.join([self.command_path, *self.args])

    @property
    def running(self):
        return self.status == RunStatus.RUNNING

    @property
    def completed(self):
        return self.status == RunStatus.COMPLETE

    @property
    def failed(self):
        return self.status == RunStatus.FAILED

    @property
    def killed(self):
        return self.status == RunStatus.KILLED

    def mark_running(self, pid: int):
        self.pid = pid
        self.status = RunStatus.RUNNING
        self.start = time.monotonic()

    def mark_exited(self, return_code: int):
        self.return_code = return_code
        self.status = (
            RunStatus.COMPLETE if return_code == 0 else RunStatus.FAILED
        )
        self._finish()

    def mark_killed(
        self,
        reason: StopReason | None,
        return_code: int | None,
    ):
        self.stop_reason = reason
        self.return_code = return_code
        self.status = RunStatus.KILLED
        self._finish()

    def _finish(self):
        self.end = time.monotonic()
        self.elapsed = self.end - self.start

    def __repr__(self) -> str:
        return (
            f"TaskExecution(command={self.command!r}, status={self.status.value}, "
            f"pid={self.pid}, return_code={self.return_code})"
        )
