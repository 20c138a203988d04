import asyncio
import json
import logging
import re
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from kubelink._cogs.clients.auth import APIContext
from kubelink._cogs.clients.codecs import JSONCodec, ProtobufCodec
from kubelink._cogs.configs.configuration import ClientSettings
from kubelink._cogs.structs.credentials import ConnectionInfo


def pytest_configure(config):
    # Warnings from the testing tools out of our control should not fail the tests.
    config.addinivalue_line('filterwarnings', 'ignore::DeprecationWarning:aresponses')


@pytest.fixture()
def hostname():
    """ A fake hostname to be used in all aiohttp/aresponses tests. """
    return 'fake-host'


@pytest.fixture()
def settings():
    return ClientSettings()


@pytest.fixture()
def logger():
    return logging.getLogger('kubelink.tests')


@pytest.fixture()
def json_codec():
    return JSONCodec()


@pytest.fixture()
def protobuf_codec():
    return ProtobufCodec()


@pytest.fixture(params=['json', 'protobuf'])
def codec(request, json_codec, protobuf_codec):
    return json_codec if request.param == 'json' else protobuf_codec


@pytest.fixture()
def info(hostname):
    return ConnectionInfo(server=f'https://{hostname}')


@pytest.fixture()
async def context(info):
    """
    A real HTTP context with a real aiohttp session, closed after every test.

    All external calls are intercepted by `aresponses`: no real network calls.
    """
    context = APIContext(info)
    try:
        yield context
    finally:
        await context.close()


@pytest.fixture()
def resp_mocker(context, aresponses):
    """
    A factory of spying server-side handlers for `aresponses`.

    The handler remembers the request (with its body decoded into ``.data``)
    and returns the mock's return value or raises its side effect::

        mock = resp_mocker(return_value=aiohttp.web.json_response({'a': 'b'}))
        aresponses.add(hostname, '/path', 'get', mock)
        await do_something()
        assert mock.call_count == 1
        assert mock.call_args[0][0].data is None
    """
    def resp_maker(*args, **kwargs):
        actual_response = MagicMock(*args, **kwargs)
        async def resp_mock_effect(request):
            nonlocal actual_response

            # The body is readable only inside the handler, so it is kept for the assertions.
            body = await request.read()
            try:
                request.data = json.loads(body) if body else None
            except ValueError:
                request.data = body

            response = actual_response()
            return response

        return AsyncMock(side_effect=resp_mock_effect)
    return resp_maker


class FakeContent:
    """
    A stream-like content of a fake response: only what the watchers use.

    The chunks are returned as they were fed, but not more than requested.
    The exceptions fed among the chunks are raised when their turn comes.
    When the chunks are over, it either ends (EOF) or blocks until the response
    is closed -- as the real watch-streams do while the server sends nothing.
    """

    def __init__(self, chunks, *, blocking):
        super().__init__()
        self.chunks = list(chunks)
        self.blocking = blocking
        self.reads = 0
        self.interrupted = asyncio.Event()

    async def read(self, n=-1):
        self.reads += 1
        if self.interrupted.is_set():
            raise aiohttp.ClientConnectionError("Connection closed")
        if self.chunks:
            chunk = self.chunks.pop(0)
            if isinstance(chunk, BaseException):
                raise chunk
            if 0 < n < len(chunk):
                chunk, rest = chunk[:n], chunk[n:]
                self.chunks.insert(0, rest)
            return chunk
        if self.blocking:
            await self.interrupted.wait()
            return b''
        return b''


class FakeResponse:

    def __init__(self, chunks, *, blocking=False):
        super().__init__()
        self.url = 'https://fake-host/fake-stream'
        self.content = FakeContent(chunks, blocking=blocking)
        self.closed = False
        self.close_count = 0

    def close(self):
        self.closed = True
        self.close_count += 1
        self.content.interrupted.set()


@pytest.fixture()
def fake_response():
    """ A factory of fake streaming responses for the watchers' unit tests. """
    return FakeResponse


@pytest.fixture()
def assert_logs(caplog):
    """
    A function to assert the logs are present (by pattern).

    The listed message patterns MUST be present, in the order specified.
    Some other log messages can also be present, but they are ignored.
    """
    def assert_logs_fn(patterns, prohibited=[]):
        __traceback_hide__ = True
        remaining_patterns = list(patterns)
        for message in caplog.messages:
            for pattern in prohibited:
                if re.search(pattern, message):
                    raise AssertionError(f"Prohibited log pattern found: {message!r} ~ {pattern!r}")
            if remaining_patterns and re.search(remaining_patterns[0], message):
                remaining_patterns[:1] = []
        if remaining_patterns:
            raise AssertionError(f"Few patterns were not found: {remaining_patterns!r}")
    return assert_logs_fn
