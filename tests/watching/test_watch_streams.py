import asyncio

import aiohttp.web
import pytest

from kubelink._cogs.clients.errors import APINotFoundError, StreamCancelledError, \
                                         StreamClosedError, TransportError
from kubelink._cogs.clients.watching import Watcher, watch
from kubelink._cogs.structs.bodies import EventType

POD_A = {'apiVersion': 'v1', 'kind': 'Pod', 'metadata': {'name': 'pod-a'}}


async def test_binary_stream_is_requested_and_decoded(
        resp_mocker, aresponses, hostname, frame, obj, protobuf_codec,
        settings, context, logger):

    body = frame('ADDED', obj('Pod', 'pod-a')) + frame('DELETED', obj('Pod', 'pod-a'))
    mock = resp_mocker(return_value=aresponses.Response(body=body))
    aresponses.add(hostname, '/api/v1/pods?watch=true', 'get', mock, match_querystring=True)

    watcher = await watch('/api/v1/pods?watch=true', codec=protobuf_codec,
                          settings=settings, context=context, logger=logger)
    async with watcher:
        types = [event.type async for event, _ in watcher]

    assert isinstance(watcher, Watcher)
    assert types == [EventType.ADDED, EventType.DELETED]
    assert mock.call_count == 1
    assert mock.call_args[0][0].headers['Accept'] == (
        'application/vnd.kubernetes.protobuf;stream=watch')


async def test_text_stream_is_requested_and_decoded(
        resp_mocker, aresponses, hostname, line, json_codec, settings, context, logger):

    body = line('ADDED', POD_A) + line('MODIFIED', POD_A) + line('DELETED', POD_A)
    mock = resp_mocker(return_value=aresponses.Response(body=body))
    aresponses.add(hostname, '/api/v1/pods', 'get', mock)

    watcher = await watch('/api/v1/pods?watch=true', codec=json_codec,
                          settings=settings, context=context, logger=logger)
    async with watcher:
        types = [event.type async for event, _ in watcher]

    assert types == [EventType.ADDED, EventType.MODIFIED, EventType.DELETED]
    assert mock.call_args[0][0].headers['Accept'] == 'application/json'


async def test_open_streams_are_tracked_and_closed(
        resp_mocker, aresponses, hostname, line, json_codec, settings, context, logger):

    mock = resp_mocker(return_value=aresponses.Response(body=line('ADDED', POD_A)))
    aresponses.add(hostname, '/api/v1/pods', 'get', mock)

    watcher = await watch('/api/v1/pods?watch=true', codec=json_codec,
                          settings=settings, context=context, logger=logger)
    assert len(context.responses) == 1

    await context.close()
    assert context.responses == []
    watcher.close()


async def test_api_errors_are_raised_on_opening(
        resp_mocker, aresponses, hostname, json_codec, settings, context, logger):

    status = {'kind': 'Status', 'code': 404, 'message': 'no such resource'}
    mock = resp_mocker(return_value=aiohttp.web.json_response(status, status=404))
    aresponses.add(hostname, '/apis/x/v1/ys', 'get', mock)

    with pytest.raises(APINotFoundError) as err:
        await watch('/apis/x/v1/ys?watch=true', codec=json_codec,
                    settings=settings, context=context, logger=logger)
    assert err.value.message == 'no such resource'


async def test_stopped_streams_are_not_opened(mocker, json_codec, settings, context, logger):
    request_mock = mocker.patch.object(aiohttp.ClientSession, 'request')
    stopper = asyncio.Future()
    stopper.set_result(None)

    with pytest.raises(StreamCancelledError):
        await watch('/api/v1/pods?watch=true', codec=json_codec, stopper=stopper,
                    settings=settings, context=context, logger=logger)
    assert not request_mock.called


async def test_watching_timeouts(mocker, json_codec, settings, context, logger):
    request_mock = mocker.patch.object(aiohttp.ClientSession, 'request',
                                       side_effect=asyncio.TimeoutError())
    settings.watching.client_timeout = 123
    settings.watching.connect_timeout = 4.5

    with pytest.raises(TransportError):
        await watch('/api/v1/pods?watch=true', codec=json_codec,
                    settings=settings, context=context, logger=logger)

    timeout = request_mock.call_args[1]['timeout']
    assert timeout.total == 123
    assert timeout.sock_connect == 4.5


@pytest.mark.parametrize('networking_connect, networking_request, expected', [
    (None, 300, 300),
    (7.8, 300, 7.8),
])
async def test_watching_connect_timeout_fallbacks(
        mocker, json_codec, settings, context, logger,
        networking_connect, networking_request, expected):

    request_mock = mocker.patch.object(aiohttp.ClientSession, 'request',
                                       side_effect=asyncio.TimeoutError())
    settings.networking.connect_timeout = networking_connect
    settings.networking.request_timeout = networking_request

    with pytest.raises(TransportError):
        await watch('/api/v1/pods?watch=true', codec=json_codec,
                    settings=settings, context=context, logger=logger)

    timeout = request_mock.call_args[1]['timeout']
    assert timeout.total is None
    assert timeout.sock_connect == expected


@pytest.fixture()
def held_stream(aresponses, hostname, line):
    """ A server which sends one event and then keeps the connection open and silent. """
    released = asyncio.Event()

    async def handler(request):
        response = aiohttp.web.StreamResponse(headers={'Content-Type': 'application/json'})
        await response.prepare(request)
        await response.write(line('ADDED', POD_A))
        await released.wait()
        return response

    aresponses.add(hostname, '/api/v1/pods?watch=true', 'get', handler, match_querystring=True)
    yield
    released.set()


async def test_real_stream_closed_while_blocked(
        held_stream, json_codec, settings, context, logger):

    watcher = await watch('/api/v1/pods?watch=true', codec=json_codec,
                          settings=settings, context=context, logger=logger)
    event, _ = await watcher.next()
    assert event.type is EventType.ADDED

    task = asyncio.create_task(watcher.next())
    await asyncio.sleep(0.1)
    assert not task.done()

    watcher.close()
    with pytest.raises(StreamClosedError) as err:
        await asyncio.wait_for(task, timeout=1)
    assert type(err.value) is StreamClosedError
    assert watcher.closed


async def test_real_stream_stopped_while_blocked(
        held_stream, json_codec, settings, context, logger):

    stopper = asyncio.get_running_loop().create_future()
    watcher = await watch('/api/v1/pods?watch=true', codec=json_codec, stopper=stopper,
                          settings=settings, context=context, logger=logger)
    event, _ = await watcher.next()
    assert event.type is EventType.ADDED

    task = asyncio.create_task(watcher.next())
    await asyncio.sleep(0.1)
    assert not task.done()

    stopper.set_result(None)
    with pytest.raises(StreamCancelledError):
        await asyncio.wait_for(task, timeout=1)
    assert watcher.closed
