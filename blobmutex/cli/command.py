import asyncio
import signal
import sys

import click
from pydantic import ValidationError

from blobmutex.env import Env, load_env
from blobmutex.errors import (
    ConfigurationError,
    LeaseAcquireError,
    TaskExitError,
    TaskStartError,
)
from blobmutex.leases import LeaseBackend, LeaseBackendConfig, MemoryLeaseBackend
from blobmutex.logging import Logger, LoggingConfig
from blobmutex.logging.blobmutex_logging_models import CommandError, CommandInfo
from blobmutex.mutex import DistributedMutex, MutexState, StopReason, StopSignal
from blobmutex.taskex import SupervisedTaskRunner


EX_OK = 0
EX_ERROR = 1
EX_TEMPFAIL = 75

MEMORY_ACCOUNT_NAME = "local"
MEMORY_CONTAINER_NAME = "blobmutex"


def split_args(args: str | None, sep: str) -> list[str]:
    if not args:
        return []

    return args.split(sep or " ")


def to_exit_code(return_code: int | None) -> int:
    if return_code is None:
        return EX_ERROR

    # Killed by a signal, reported the way a shell would.
    if return_code < 0:
        return 128 - return_code

    return return_code


def build_config(env: Env, test_mode: bool = False) -> LeaseBackendConfig:
    account_name = env.SINGLETON_ACCOUNT_NAME
    container_name = env.SINGLETON_CONTAINER_NAME

    if env.SINGLETON_BACKEND == "memory":
        account_name = account_name or MEMORY_ACCOUNT_NAME
        container_name = container_name or MEMORY_CONTAINER_NAME

    try:
        return LeaseBackendConfig(
            account_name=account_name,
            container_name=container_name,
            account_key=env.SINGLETON_STORAGE_KEY,
            endpoint=env.SINGLETON_ENDPOINT,
            lease_duration=env.SINGLETON_LEASE_DURATION,
            renew_interval=env.SINGLETON_RENEW_DURATION,
            acquire_retry_interval=env.SINGLETON_ACQUIRE_DURATION,
            max_acquire_failures=env.SINGLETON_MAX_ACQUIRE_FAILURES,
            skip_validation=test_mode,
        )

    except ValidationError as err:
        raise ConfigurationError(
            f"config: invalid lease configuration - {err}"
        ) from err


def build_logging_config(env: Env) -> LoggingConfig:
    try:
        return LoggingConfig(
            log_level=env.SINGLETON_LOG_LEVEL,
            log_format=env.SINGLETON_LOG_FORMAT,
            log_file=env.SINGLETON_LOG_FILE,
        )

    except ValueError as err:
        raise ConfigurationError(f"config: {err}") from err


def create_backend(backend_name: str, config: LeaseBackendConfig) -> LeaseBackend:
    if backend_name == "memory":
        return MemoryLeaseBackend()

    from blobmutex.leases.azure_blob import BlobLeaseBackend

    return BlobLeaseBackend.from_config(config)


async def run_singleton(
    config: LeaseBackendConfig,
    backend_name: str,
    command_path: str,
    args: list[str],
    logger: Logger,
) -> int:
    """
    Acquire the mutex, run the command while holding it, and return the
    process exit code.
    """
    try:
        backend = create_backend(backend_name, config)

    except ConfigurationError as err:
        await logger.log(CommandError(message=str(err)))
        return EX_ERROR

    mutex = DistributedMutex(backend, config, logger=logger)
    runner = SupervisedTaskRunner(logger=logger)
    stop_signal = StopSignal()

    run = asyncio.ensure_future(
        mutex.run_exclusive(
            lambda: runner.run(command_path, args, stop_signal),
            stop_signal=stop_signal,
        )
    )

    def request_stop(signame: str):
        logger.schedule(
            CommandInfo(message=f"Received {signame} - stopping")
        )

        stop_signal.fire(StopReason.EXTERNAL_REQUEST)

        if mutex.state in (MutexState.IDLE, MutexState.ACQUIRING):
            run.cancel()

    loop = asyncio.get_running_loop()
    handled_signals: list[signal.Signals] = []

    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, request_stop, signum.name)
            handled_signals.append(signum)

        except NotImplementedError:
            pass

    try:
        execution = await run

        if execution.completed:
            exit_code = EX_OK

        else:
            exit_code = EX_TEMPFAIL

    except asyncio.CancelledError:
        if not run.cancelled():
            raise

        await logger.log(
            CommandInfo(message="Stopped before the lease was acquired")
        )
        exit_code = EX_TEMPFAIL

    except TaskExitError as err:
        exit_code = to_exit_code(err.return_code)

    except (ConfigurationError, TaskStartError, LeaseAcquireError) as err:
        await logger.log(CommandError(message=str(err)))
        exit_code = EX_ERROR

    finally:
        for signum in handled_signals:
            loop.remove_signal_handler(signum)

        await mutex.close()

    return exit_code


async def run_with_logger(
    config: LeaseBackendConfig,
    backend_name: str,
    command_path: str,
    args: list[str],
    logging_config: LoggingConfig,
) -> int:
    logger = Logger(logging_config)

    try:
        try:
            await logger["default"].initialize()

        except OSError as err:
            raise ConfigurationError(
                f"config: could not open log file - {logging_config.file} - {err}"
            ) from err

        return await run_singleton(
            config,
            backend_name,
            command_path,
            args,
            logger,
        )

    finally:
        await logger.close()


@click.command(help="Run a command on at most one node at a time, guarded by a blob lease.")
@click.option("-a", "--account-name", default=None, help="Storage account name.")
@click.option("-c", "--container-name", default=None, help="Container used as the lock.")
@click.option("-k", "--account-key", default=None, help="Storage account key.")
@click.option("--endpoint", default=None, help="Blob service URL override.")
@click.option("-l", "--lease-duration", default=None, help="Lease duration, e.g. 30s.")
@click.option("-r", "--renew-interval", default=None, help="Interval between lease renewals.")
@click.option("-q", "--acquire-interval", default=None, help="Interval between acquisition attempts.")
@click.option(
    "--max-acquire-failures",
    default=None,
    type=int,
    help="Give up after this many consecutive backend failures (0 retries forever).",
)
@click.option("--cmd", "command_path", default=None, help="Command to run while holding the lease.")
@click.option("--args", "command_args", default=None, help="Arguments for the command.")
@click.option("--sep", default=None, help="Separator used to split --args.")
@click.option(
    "-t",
    "--test-mode",
    is_flag=True,
    show_default=True,
    default=False,
    help="Skip lease timing validation.",
)
@click.option(
    "--backend",
    default=None,
    type=click.Choice(["azure", "memory"]),
    help="Lease backend to use.",
)
@click.option("--log-level", default=None, help="Minimum log level.")
@click.option(
    "--log-format",
    default=None,
    type=click.Choice(["text", "json"]),
    help="Log line format.",
)
@click.option("--log-file", default=None, help="Also append JSON log lines to this file.")
@click.option("--env-file", default=".env", show_default=True, help="Path to a .env file.")
def blobmutex(
    account_name: str | None,
    container_name: str | None,
    account_key: str | None,
    endpoint: str | None,
    lease_duration: str | None,
    renew_interval: str | None,
    acquire_interval: str | None,
    max_acquire_failures: int | None,
    command_path: str | None,
    command_args: str | None,
    sep: str | None,
    test_mode: bool,
    backend: str | None,
    log_level: str | None,
    log_format: str | None,
    log_file: str | None,
    env_file: str,
):
    try:
        env = load_env(
            env_file=env_file,
            override={
                "SINGLETON_BACKEND": backend,
                "SINGLETON_ACCOUNT_NAME": account_name,
                "SINGLETON_CONTAINER_NAME": container_name,
                "SINGLETON_STORAGE_KEY": account_key,
                "SINGLETON_ENDPOINT": endpoint,
                "SINGLETON_LEASE_DURATION": lease_duration,
                "SINGLETON_RENEW_DURATION": renew_interval,
                "SINGLETON_ACQUIRE_DURATION": acquire_interval,
                "SINGLETON_MAX_ACQUIRE_FAILURES": max_acquire_failures,
                "SINGLETON_CMD": command_path,
                "SINGLETON_CMD_ARGS": command_args,
                "SINGLETON_CMD_ARG_SEPARATOR": sep,
                "SINGLETON_LOG_LEVEL": log_level,
                "SINGLETON_LOG_FORMAT": log_format,
                "SINGLETON_LOG_FILE": log_file,
            },
        )

        if not env.SINGLETON_CMD:
            raise ConfigurationError("config: a command to run is required (--cmd)")

        config = build_config(env, test_mode=test_mode)
        config.validate_timings()

        logging_config = build_logging_config(env)

    except ConfigurationError as err:
        click.echo(str(err), err=True)
        sys.exit(EX_ERROR)

    try:
        exit_code = asyncio.run(
            run_with_logger(
                config,
                env.SINGLETON_BACKEND,
                env.SINGLETON_CMD,
                split_args(env.SINGLETON_CMD_ARGS, env.SINGLETON_CMD_ARG_SEPARATOR),
                logging_config,
            )
        )

    except ConfigurationError as err:
        click.echo(str(err), err=True)
        sys.exit(EX_ERROR)

    sys.exit(exit_code)


def run():
    blobmutex(prog_name="blobmutex")
