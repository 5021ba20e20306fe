import functools
import logging

import click.testing
import pytest

from kassoc.cli import main


@pytest.fixture(autouse=True)
def clean_root_logger():
    logger = logging.getLogger()
    handlers = list(logger.handlers)
    level = logger.level
    try:
        yield
    finally:
        logger.handlers[:] = handlers
        logger.setLevel(level)


@pytest.fixture()
def runner():
    runner = click.testing.CliRunner()
    return runner


@pytest.fixture()
def invoke(runner):
    return functools.partial(runner.invoke, main)


@pytest.fixture()
def real_run(mocker):
    return mocker.patch('kassoc._core.reactor.running.run')


@pytest.fixture()
def configure(mocker):
    return mocker.patch('kassoc._core.actions.loggers.configure')
