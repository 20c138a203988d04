import functools
import logging

import click.testing
import pytest

from kubelink.cli import main


@pytest.fixture(autouse=True)
def server(monkeypatch):
    monkeypatch.setenv('KUBELINK_SERVER', 'https://fake-host')
    return 'https://fake-host'


@pytest.fixture(autouse=True)
def _restore_loggers():
    # The CLI configures the root logger to stream into Click's runner, closed after the test.
    root = logging.getLogger()
    root_state = (root.handlers[:], root.level)
    lowlevel = [logging.getLogger(name) for name in ['asyncio', 'aiohttp']]
    lowlevel_states = [(logger.propagate, logger.handlers[:]) for logger in lowlevel]
    yield
    root.handlers[:], level = root_state
    root.setLevel(level)
    for logger, (propagate, handlers) in zip(lowlevel, lowlevel_states):
        logger.propagate = propagate
        logger.handlers[:] = handlers


@pytest.fixture()
def runner():
    runner = click.testing.CliRunner()
    return runner


@pytest.fixture()
def invoke(runner):
    return functools.partial(runner.invoke, main)
