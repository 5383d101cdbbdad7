from __future__ import annotations

import asyncio
import datetime
import io
import os
import pathlib
import sys
import threading
from typing import TypeVar

import msgspec

from blobmutex.logging.config import LoggingConfig, StreamType
from blobmutex.logging.models import Entry, Log


T = TypeVar('T', bound=Entry)


DEFAULT_TEMPLATE = "{timestamp} - {level} - {thread_id} - {filename}:{function_name}.{line_number} - {message}"


class LoggerStream:
    def __init__(
        self,
        name: str | None = None,
        config: LoggingConfig | None = None,
        template: str | None = None,
    ) -> None:
        if name is None:
            name = "default"

        if config is None:
            config = LoggingConfig()

        if template is None:
            template = DEFAULT_TEMPLATE

        self._name = name
        self._config = config
        self._template = template

        self._loop: asyncio.AbstractEventLoop | None = None
        self._write_lock = threading.Lock()
        self._file_lock = asyncio.Lock()
        self._logfile: io.BufferedWriter | None = None
        self._encoder = msgspec.json.Encoder()
        self._pending: set[asyncio.Task] = set()
        self._closed = False

    @property
    def name(self):
        return self._name

    @property
    def closed(self):
        return self._closed

    async def initialize(self):
        if self._loop is None:
            self._loop = asyncio.get_running_loop()

        if self._config.file and self._logfile is None:
            self._logfile = await self._loop.run_in_executor(
                None,
                self._open_file,
                self._config.file,
            )

    def _open_file(self, logfile_path: str):
        path = pathlib.Path(logfile_path).absolute()
        if path.parent.exists() is False:
            os.makedirs(path.parent, exist_ok=True)

        return open(path, 'ab')

    async def log(self, entry_or_log: T | Log[T]):
        if self._closed:
            return

        log = self._to_log(entry_or_log)

        if self._config.enabled(self._name, log.entry.level) is False:
            return

        if self._loop is None or (self._config.file and self._logfile is None):
            await self.initialize()

        self._write_to_stream(log)

        if self._logfile:
            async with self._file_lock:
                await self._loop.run_in_executor(
                    None,
                    self._write_to_file,
                    log,
                )

    def schedule(self, entry_or_log: T | Log[T]):
        """
        Log from synchronous code (signal handlers, done callbacks)
        running on the event loop.
        """
        task = asyncio.ensure_future(
            self.log(
                self._to_log(entry_or_log),
            )
        )

        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _to_log(self, entry_or_log: T | Log[T]) -> Log[T]:
        if isinstance(entry_or_log, Log):
            return entry_or_log

        filename, line_number, function_name = self._find_caller()

        return Log(
            entry=entry_or_log,
            filename=filename,
            function_name=function_name,
            line_number=line_number,
        )

    def _format(self, log: Log[T]) -> bytes:
        if self._config.format == 'json':
            return self._encoder.encode(log)

        return log.entry.to_template(
            self._template,
            context={
                "filename": log.filename,
                "function_name": log.function_name,
                "line_number": log.line_number,
                "thread_id": log.thread_id,
                "timestamp": log.timestamp,
            },
        ).encode()

    def _write_to_stream(self, log: Log[T]):
        stream = sys.stdout if self._config.output == StreamType.STDOUT else sys.stderr

        try:
            line = self._format(log).decode() + "\n"

            with self._write_lock:
                stream.write(line)
                stream.flush()

        except Exception as err:
            self._write_error(log, err)

    def _write_to_file(self, log: Log[T]):
        if self._logfile is None or self._logfile.closed:
            return

        try:
            self._logfile.write(self._encoder.encode(log) + b"\n")
            self._logfile.flush()

        except Exception as err:
            self._write_error(log, err)

    def _write_error(self, log: Log[T], err: Exception):
        error_template = "{timestamp} - {level} - {thread_id}.{filename}:{function_name}.{line_number} - {error}"

        if sys.stderr.closed is False:
            sys.stderr.write(
                log.entry.to_template(
                    error_template,
                    context={
                        "filename": log.filename,
                        "function_name": log.function_name,
                        "line_number": log.line_number,
                        "error": str(err),
                        "thread_id": threading.get_native_id(),
                        "timestamp": datetime.datetime.now(datetime.UTC).isoformat(),
                    },
                ) + "\n"
            )

    def _find_caller(self):
        """
        Find the stack frame of the caller so that we can note the source
        file name, line number and function name.
        """
        frame = sys._getframe(3)
        code = frame.f_code

        return (
            code.co_filename,
            frame.f_lineno,
            code.co_name,
        )

    async def close(self):
        if self._closed:
            return

        if self._pending:
            await asyncio.gather(
                *list(self._pending),
                return_exceptions=True,
            )

        self._closed = True

        if self._logfile and self._logfile.closed is False:
            async with self._file_lock:
                await asyncio.get_running_loop().run_in_executor(
                    None,
                    self._logfile.close,
                )
