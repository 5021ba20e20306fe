import asyncio
import dataclasses
import functools
from collections.abc import Callable, Collection
from typing import Any

import click

from kassoc._cogs.configs import configuration
from kassoc._cogs.helpers import versions
from kassoc._cogs.structs import credentials
from kassoc._core.actions import loggers
from kassoc._core.reactor import running
from kassoc._kits import loops


@dataclasses.dataclass()
class CLIControls:
    """ Embedding controls, which are impossible to pass via CLI. """
    stop_flag: asyncio.Event | None = None
    settings: configuration.OperatorSettings | None = None
    connection: credentials.ConnectionInfo | None = None


class LogFormatParamType(click.Choice):

    def __init__(self) -> None:
        super().__init__(choices=[v.name.lower() for v in loggers.LogFormat])

    def convert(self, value: Any, param: Any, ctx: Any) -> loggers.LogFormat:
        if isinstance(value, loggers.LogFormat):
            return value
        else:
            name: str = super().convert(value, param, ctx)
            return loggers.LogFormat[name.upper()]


def logging_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    """ A decorator to configure logging in all commands the same way."""
    @click.option('-v', '--verbose', is_flag=True)
    @click.option('-d', '--debug', is_flag=True)
    @click.option('-q', '--quiet', is_flag=True)
    @click.option('--log-format', type=LogFormatParamType(), default='full')
    @click.option('--log-refkey', type=str)
    @click.option('--log-prefix/--no-log-prefix', default=None)
    @functools.wraps(fn)  # to preserve other opts/args
    def wrapper(verbose: bool, quiet: bool, debug: bool,
                log_format: loggers.LogFormat = loggers.LogFormat.FULL,
                log_prefix: bool | None = False,
                log_refkey: str | None = None,
                *args: Any, **kwargs: Any) -> Any:
        loggers.configure(debug=debug, verbose=verbose, quiet=quiet,
                          log_format=log_format, log_refkey=log_refkey, log_prefix=log_prefix)
        return fn(*args, **kwargs)

    return wrapper


@click.version_option(version=versions.version or 'unknown', prog_name='kassoc')
@click.group(name='kassoc', context_settings=dict(
    auto_envvar_prefix='KASSOC',
))
def main() -> None:
    pass


@main.command()
@logging_options
@click.option('-A', '--all-namespaces', 'clusterwide', is_flag=True)
@click.option('-n', '--namespace', 'namespaces', multiple=True)
@click.option('-w', '--workers', 'worker_limit', type=click.IntRange(min=1))
@click.option('-t', '--reconcile-timeout', type=click.FloatRange(min=0, min_open=True))
@click.make_pass_decorator(CLIControls, ensure=True)
def run(
        __controls: CLIControls,
        namespaces: Collection[str],
        clusterwide: bool,
        worker_limit: int | None,
        reconcile_timeout: float | None,
) -> None:
    """ Start an operator process and reconcile the associations. """
    if namespaces and clusterwide:
        raise click.UsageError("Either --namespace or --all-namespaces can be used, not both.")

    settings = __controls.settings if __controls.settings is not None else configuration.OperatorSettings()
    if worker_limit is not None:
        settings.queueing.worker_limit = worker_limit
    if reconcile_timeout is not None:
        settings.queueing.reconcile_timeout = reconcile_timeout

    return running.run(
        loop_factory=loops.proper_loop_factory(),
        settings=settings,
        namespaces=namespaces,
        clusterwide=clusterwide,
        connection=__controls.connection,
        stop_flag=__controls.stop_flag,
    )
