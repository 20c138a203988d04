import logging

import pytest

from kubelink._core.engines.loggers import ClientFormatter


@pytest.fixture(autouse=True)
def _clear_own_handlers():
    logger = logging.getLogger()
    logger.handlers[:] = [
        handler for handler in logger.handlers
        if not isinstance(handler, logging.StreamHandler) or
           not isinstance(handler.formatter, ClientFormatter)
    ]
    original_handlers = logger.handlers[:]
    original_level = logger.level
    yield
    logger.handlers[:] = original_handlers
    logger.setLevel(original_level)


@pytest.fixture(autouse=True)
def _restore_lowlevel_loggers():
    loggers = [logging.getLogger(name) for name in ['asyncio', 'aiohttp']]
    states = [(logger.propagate, logger.handlers[:]) for logger in loggers]
    yield
    for logger, (propagate, handlers) in zip(loggers, states):
        logger.propagate = propagate
        logger.handlers[:] = handlers


@pytest.fixture()
def record():
    return logging.LogRecord(
        name='kubelink.tests', level=logging.INFO, pathname=__file__, lineno=1,
        msg="hello %s", args=('world',), exc_info=None,
    )
