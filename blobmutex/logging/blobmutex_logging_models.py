from .models import Entry, LogLevel


class MutexDebug(Entry, kw_only=True):
    account: str
    container: str
    level: LogLevel = LogLevel.DEBUG

class MutexInfo(Entry, kw_only=True):
    account: str
    container: str
    level: LogLevel = LogLevel.INFO

class MutexWarning(Entry, kw_only=True):
    account: str
    container: str
    level: LogLevel = LogLevel.WARN

class MutexError(Entry, kw_only=True):
    account: str
    container: str
    level: LogLevel = LogLevel.ERROR

class RunnerDebug(Entry, kw_only=True):
    command: str
    pid: int | None = None
    level: LogLevel = LogLevel.DEBUG

class RunnerInfo(Entry, kw_only=True):
    command: str
    pid: int | None = None
    level: LogLevel = LogLevel.INFO

class RunnerWarning(Entry, kw_only=True):
    command: str
    pid: int | None = None
    level: LogLevel = LogLevel.WARN

class RunnerError(Entry, kw_only=True):
    command: str
    pid: int | None = None
    level: LogLevel = LogLevel.ERROR

class CommandInfo(Entry, kw_only=True):
    level: LogLevel = LogLevel.INFO

class CommandError(Entry, kw_only=True):
    level: LogLevel = LogLevel.ERROR
