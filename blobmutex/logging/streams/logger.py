from __future__ import annotations

import asyncio
import sys
from typing import (
    Dict,
    TypeVar,
)

from blobmutex.logging.config import LoggingConfig
from blobmutex.logging.models import Entry, Log

from .logger_stream import LoggerStream

T = TypeVar('T', bound=Entry)


class Logger:
    def __init__(
        self,
        config: LoggingConfig | None = None,
    ) -> None:
        if config is None:
            config = LoggingConfig()

        self.config = config
        self._streams: Dict[str, LoggerStream] = {}

    def __getitem__(self, name: str) -> LoggerStream:

        if self._streams.get(name) is None:
            self._streams[name] = LoggerStream(
                name=name,
                config=self.config,
            )

        return self._streams[name]

    def configure(
        self,
        name: str | None = None,
        template: str | None = None,
    ):
        if name is None:
            name = 'default'

        self._streams[name] = LoggerStream(
            name=name,
            config=self.config,
            template=template,
        )

        return self._streams[name]

    async def log(
        self,
        entry: T,
        name: str | None = None,
    ):
        if name is None:
            name = 'default'

        frame = sys._getframe(1)
        code = frame.f_code

        await self[name].log(
            Log(
                entry=entry,
                filename=code.co_filename,
                function_name=code.co_name,
                line_number=frame.f_lineno,
            )
        )

    def schedule(
        self,
        entry: T,
        name: str | None = None,
    ):
        if name is None:
            name = 'default'

        frame = sys._getframe(1)
        code = frame.f_code

        self[name].schedule(
            Log(
                entry=entry,
                filename=code.co_filename,
                function_name=code.co_name,
                line_number=frame.f_lineno,
            )
        )

    async def close(self):
        if len(self._streams) > 0:
            await asyncio.gather(*[
                stream.close() for stream in self._streams.values()
            ])
