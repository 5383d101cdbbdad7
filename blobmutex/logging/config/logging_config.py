from typing import List, Literal

from blobmutex.logging.models import LogLevel, LogLevelName
from .log_level_map import LogLevelMap
from .stream_type import StreamType


LogOutput = Literal['stdout', 'stderr']
LogFormat = Literal['text', 'json']


class LoggingConfig:
    """
    Per-logger settings. Each Logger owns its own LoggingConfig so two
    loggers in one process (for example a test and the code it drives)
    never see each other's level or output changes.
    """

    def __init__(
        self,
        log_level: LogLevelName = 'info',
        log_output: LogOutput = 'stdout',
        log_format: LogFormat = 'text',
        log_file: str | None = None,
    ) -> None:
        self._log_level = LogLevel.to_level(log_level)
        self._log_output_type = self._to_stream_type(log_output)
        self._log_format: LogFormat = log_format
        self._log_file = log_file
        self._disabled_loggers: List[str] = []
        self._level_map = LogLevelMap()

    def disable(self, *logger_names: str):
        self._disabled_loggers.extend(logger_names)

    def enabled(self, logger_name: str, log_level: LogLevel) -> bool:
        return logger_name not in self._disabled_loggers and (
            self._level_map[log_level] >= self._level_map[self._log_level]
        )

    def _to_stream_type(self, log_output: LogOutput):
        return StreamType.STDOUT if log_output == 'stdout' else StreamType.STDERR

    @property
    def level(self):
        return self._log_level

    @property
    def output(self):
        return self._log_output_type

    @property
    def format(self) -> LogFormat:
        return self._log_format

    @property
    def file(self):
        return self._log_file
