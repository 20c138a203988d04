import pytest

from kubelink._cogs.clients.codecs import MAGIC
from kubelink._cogs.clients.errors import APIGoneError, APIServerError, PayloadDecodeError, \
                                         StreamEndedError
from kubelink._cogs.clients.watching import TypedWatcher
from kubelink._cogs.structs import schemas
from kubelink._cogs.structs.bodies import EventType

POD_A = {'apiVersion': 'v1', 'kind': 'Pod', 'metadata': {'name': 'pod-a'}}


async def test_binary_objects_are_decoded(make_watcher, frame, protobuf_codec):
    resource = schemas.APIResource(name='pods', namespaced=True, kind='Pod')
    watcher = make_watcher(frame('ADDED', protobuf_codec.encode(resource)))
    typed = TypedWatcher(watcher, shape=schemas.APIResource)

    event, obj = await typed.next()
    assert event.type is EventType.ADDED
    assert obj == resource
    with pytest.raises(StreamEndedError):
        await typed.next()


async def test_text_objects_are_decoded(make_watcher, line):
    watcher = make_watcher(line('ADDED', POD_A), line('DELETED', POD_A), binary=False)
    typed = TypedWatcher(watcher, shape=dict)

    items = [(event.type, obj) async for event, obj in typed]
    assert items == [(EventType.ADDED, POD_A), (EventType.DELETED, POD_A)]
    assert typed.closed


async def test_undecodable_objects_keep_the_stream_usable(make_watcher, line):
    watcher = make_watcher(line('ADDED', 'not-a-dict'), line('MODIFIED', POD_A), binary=False)
    typed = TypedWatcher(watcher, shape=dict)

    with pytest.raises(PayloadDecodeError) as err:
        await typed.next()
    assert err.value.event_type is EventType.ADDED

    event, obj = await typed.next()
    assert event.type is EventType.MODIFIED
    assert obj == POD_A


async def test_undecodable_binary_objects(make_watcher, frame):
    watcher = make_watcher(frame('ADDED', MAGIC + schemas.Unknown(raw=b'\x0a\x10short').SerializeToString()))
    typed = TypedWatcher(watcher, shape=schemas.APIResource)
    with pytest.raises(PayloadDecodeError):
        await typed.next()


async def test_text_error_events_are_raised(make_watcher, line):
    status = {'kind': 'Status', 'code': 410, 'message': 'too old resource version'}
    watcher = make_watcher(line('ADDED', POD_A), line('ERROR', status), binary=False)
    typed = TypedWatcher(watcher, shape=dict)

    event, _ = await typed.next()
    assert event.type is EventType.ADDED
    with pytest.raises(APIGoneError) as err:
        await typed.next()
    assert err.value.status == 410
    assert err.value.message == 'too old resource version'


async def test_binary_error_events_are_raised(make_watcher, frame, protobuf_codec):
    status = schemas.Status(status='Failure', message='boom', code=500)
    watcher = make_watcher(frame('ERROR', protobuf_codec.encode(status)))
    typed = TypedWatcher(watcher, shape=schemas.APIResource)

    with pytest.raises(APIServerError) as err:
        await typed.next()
    assert err.value.message == 'boom'


async def test_error_events_without_status(make_watcher, line):
    watcher = make_watcher(line('ERROR', {'kind': 'Pod'}), binary=False)
    typed = TypedWatcher(watcher, shape=dict)
    with pytest.raises(PayloadDecodeError) as err:
        await typed.next()
    assert err.value.event_type is EventType.ERROR


@pytest.mark.parametrize('code', ['410', 410.0, True, None, -1])
async def test_error_events_with_malformed_codes(make_watcher, line, code):
    status = {'kind': 'Status', 'code': code, 'message': 'gone'}
    watcher = make_watcher(line('ERROR', status), binary=False)
    typed = TypedWatcher(watcher, shape=dict)
    with pytest.raises(APIServerError) as err:
        await typed.next()
    assert err.value.status == 500
    assert err.value.message == 'gone'


async def test_closing_is_delegated(make_watcher):
    watcher = make_watcher()
    async with TypedWatcher(watcher, shape=dict) as typed:
        assert not typed.closed
    assert typed.closed
    assert watcher.closed
    typed.close()  # idempotent
