from __future__ import annotations

import asyncio
import threading
from enum import Enum


class StopReason(Enum):
    RENEWAL_FAILED = "RENEWAL_FAILED"
    TASK_COMPLETED = "TASK_COMPLETED"
    EXTERNAL_REQUEST = "EXTERNAL_REQUEST"


class StopSignal:
    """
    One-shot, multi-observer cancellation notification.

    Any number of coroutines may wait on it. Any number of sites may fire
    it, from the event loop thread or from other threads; only the first
    fire takes effect and records its reason, every later fire is a no-op
    that returns False.
    """

    __slots__ = (
        "_event",
        "_lock",
        "_loop",
        "_reason",
    )

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._lock = threading.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._reason: StopReason | None = None

    @property
    def fired(self) -> bool:
        return self._reason is not None

    @property
    def reason(self) -> StopReason | None:
        return self._reason

    def fire(self, reason: StopReason) -> bool:
        with self._lock:
            if self._reason is not None:
                return False

            self._reason = reason
            loop = self._loop

        try:
            running_loop = asyncio.get_running_loop()

        except RuntimeError:
            running_loop = None

        # No waiter has registered a loop yet, so nobody can be parked on
        # the event and setting it from any thread is safe.
        if loop is None or loop is running_loop or loop.is_closed():
            self._event.set()

        else:
            loop.call_soon_threadsafe(self._event.set)

        return True

    async def wait(self, timeout: float | None = None) -> bool:
        """
        Suspend until the signal fires or the timeout elapses.

        Returns:
            True if the signal has fired, False on timeout
        """
        with self._lock:
            if self._loop is None:
                self._loop = asyncio.get_running_loop()

            if self._reason is not None:
                return True

        try:
            await asyncio.wait_for(
                self._event.wait(),
                timeout=timeout,
            )

        except asyncio.TimeoutError:
            return self.fired

        return True

    def __repr__(self) -> str:
        return f"StopSignal(reason={self._reason})"
