import json
import struct

import pytest

from kubelink._cogs.clients.codecs import MAGIC
from kubelink._cogs.clients.watching import Watcher
from kubelink._cogs.structs import schemas


def make_object(kind, name):
    """ A magic-prefixed `runtime.Unknown` with an opaque (fake) payload. """
    unknown = schemas.Unknown(
        typeMeta=schemas.TypeMeta(apiVersion='v1', kind=kind),
        raw=b'\x0a' + bytes([len(name)]) + name.encode(),
        contentType='application/vnd.kubernetes.protobuf',
    )
    return MAGIC + unknown.SerializeToString()


def make_frame(event_type, nested, *, magic=MAGIC):
    event = schemas.WatchEvent(type=event_type, object=schemas.RawExtension(raw=nested))
    payload = event.SerializeToString()
    return magic + struct.pack('>I', len(payload)) + payload


def make_line(event_type, obj):
    return json.dumps({'type': event_type, 'object': obj}).encode() + b'\n'


@pytest.fixture()
def make_watcher(settings, logger, json_codec, protobuf_codec, fake_response):
    """ A factory of watchers over the fake responses with the pre-fed chunks. """
    def factory(*chunks, binary=True, blocking=False, stopper=None):
        response = fake_response(chunks, blocking=blocking)
        codec = protobuf_codec if binary else json_codec
        return Watcher(response, codec=codec, settings=settings, stopper=stopper, logger=logger)
    return factory


@pytest.fixture()
def obj():
    return make_object


@pytest.fixture()
def frame():
    return make_frame


@pytest.fixture()
def line():
    return make_line
