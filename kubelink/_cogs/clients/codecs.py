"""
Serialization of the request & response bodies and of the watch-events.

Two codecs are supported, as used by K8s API:

* JSON -- human-readable & self-describing; tolerates unknown fields.
  It is used for the user-defined (third-party) resources only, since they
  have no pre-generated binary schemas.

* Protobuf -- compact & schema-driven; it is used for all the well-known
  resources (discovery, built-in kinds). On the wire, every object is wrapped
  into a ``runtime.Unknown`` envelope with a magic prefix (``k8s\\x00``),
  and the actual object is in the envelope's raw bytes.

The codecs are stateless: one instance of each is created per client
and is passed explicitly to every API call. They can be shared between tasks.

The decoding never trusts the input: malformed bytes or mismatching schemas
are reported as :class:`errors.DecodeError`, never as other exceptions.
"""
import abc
import collections.abc
import json
from typing import Any, Callable, ClassVar, Optional, Tuple, Type, TypeVar

from google.protobuf import json_format, message as protobuf_message

from kubelink._cogs.clients import errors
from kubelink._cogs.structs import bodies, schemas

_T = TypeVar('_T')

# A shape of the decoded objects: a message class for protobuf, any callable for JSON.
Shape = Callable[..., Any]

MAGIC = b'k8s\x00'
""" The prefix of every protobuf-encoded object and of every binary watch frame. """


class Codec(metaclass=abc.ABCMeta):
    """
    A serialization strategy for the API calls and the watch-streams.
    """
    content_type: ClassVar[str]
    stream_content_type: ClassVar[str]
    binary_framing: ClassVar[bool]

    @abc.abstractmethod
    def encode(self, value: Any) -> bytes:
        raise NotImplementedError

    @abc.abstractmethod
    def decode(self, data: bytes, shape: Optional[Shape] = None) -> Any:
        raise NotImplementedError

    @abc.abstractmethod
    def decode_event(self, data: bytes) -> Tuple[bodies.WatchEvent, bodies.Envelope]:
        """
        Decode one message of a watch-stream into an event & its envelope.

        The payload of the event is not decoded, only extracted as bytes.
        """
        raise NotImplementedError

    @abc.abstractmethod
    def decode_payload(self, envelope: bodies.Envelope, shape: Optional[Shape] = None) -> Any:
        """
        Decode the payload of a previously extracted envelope into a specific shape.
        """
        raise NotImplementedError

    @abc.abstractmethod
    def decode_status(self, data: bytes) -> Optional[bodies.RawStatus]:
        """
        Decode an error response's body, if it is a status; ``None`` otherwise.

        It never fails: the errors' bodies are the best-effort information only.
        """
        raise NotImplementedError

    @abc.abstractmethod
    def decode_payload_status(self, envelope: bodies.Envelope) -> Optional[bodies.RawStatus]:
        """
        Decode the payload of an ``ERROR`` event; ``None`` if it is not a status.
        """
        raise NotImplementedError


def _parse_event_type(raw_type: object) -> bodies.EventType:
    try:
        return bodies.EventType(raw_type)
    except ValueError:
        raise errors.DecodeError(f"Unsupported event type: {raw_type!r}") from None


def _decode_json_status(data: bytes) -> Optional[bodies.RawStatus]:
    try:
        payload = json.loads(data)
    except (ValueError, RecursionError):  # too deeply nested for the parser
        return None

    # Better be safe: who knows which sensitive information can be dumped unless kind==Status.
    if not isinstance(payload, collections.abc.Mapping) or payload.get('kind') != 'Status':
        return None
    return payload  # type: ignore[return-value]


class JSONCodec(Codec):
    content_type = 'application/json'
    stream_content_type = 'application/json'
    binary_framing = False

    def encode(self, value: Any) -> bytes:
        return json.dumps(value, separators=(',', ':')).encode('utf-8')

    def decode(self, data: bytes, shape: Optional[Shape] = None) -> Any:
        try:
            value = json.loads(data)
        except (ValueError, RecursionError) as e:  # incl. JSONDecodeError & UnicodeDecodeError
            raise errors.DecodeError(f"Malformed JSON: {e}") from e
        return value if shape is None else self._shape(value, shape)

    def decode_event(self, data: bytes) -> Tuple[bodies.WatchEvent, bodies.Envelope]:
        raw_input = self.decode(data)
        if not isinstance(raw_input, collections.abc.Mapping) or 'object' not in raw_input:
            raise errors.DecodeError(f"Malformed watch-event: {data[:100]!r}")
        raw_type = _parse_event_type(raw_input.get('type'))
        raw_object = raw_input['object']

        # Keep the object opaque; the typed decoding is done one layer up (if at all).
        try:
            object_bytes = self.encode(raw_object)
        except (ValueError, RecursionError) as e:
            raise errors.DecodeError(f"Unserializable watch-event object: {e}") from e
        is_mapping = isinstance(raw_object, collections.abc.Mapping)
        envelope = bodies.Envelope(
            raw=object_bytes,
            api_version=raw_object.get('apiVersion') if is_mapping else None,
            kind=raw_object.get('kind') if is_mapping else None,
            content_type=self.content_type,
        )
        return bodies.WatchEvent(type=raw_type, object=object_bytes), envelope

    def decode_payload(self, envelope: bodies.Envelope, shape: Optional[Shape] = None) -> Any:
        return self.decode(envelope.raw, shape)

    def decode_status(self, data: bytes) -> Optional[bodies.RawStatus]:
        return _decode_json_status(data)

    def decode_payload_status(self, envelope: bodies.Envelope) -> Optional[bodies.RawStatus]:
        return _decode_json_status(envelope.raw)

    @staticmethod
    def _shape(value: Any, shape: Shape) -> Any:
        try:
            return shape(value)
        except (TypeError, ValueError, KeyError, AttributeError) as e:
            raise errors.DecodeError(f"The value does not fit into {shape!r}: {e}") from e


class ProtobufCodec(Codec):
    content_type = 'application/vnd.kubernetes.protobuf'
    stream_content_type = 'application/vnd.kubernetes.protobuf;stream=watch'
    binary_framing = True

    def encode(self, value: Any) -> bytes:
        if not isinstance(value, protobuf_message.Message):
            raise TypeError(f"Only protobuf messages can be encoded, got {type(value)!r}.")
        descriptor = value.DESCRIPTOR
        meta_kind = descriptor.full_name.startswith(f'{schemas.META_PACKAGE}.')
        unknown = schemas.Unknown(
            typeMeta=schemas.TypeMeta(
                apiVersion='v1' if meta_kind else '',
                kind=descriptor.name,
            ),
            raw=value.SerializeToString(),
        )
        return MAGIC + unknown.SerializeToString()

    def decode(self, data: bytes, shape: Optional[Shape] = None) -> Any:
        envelope = self.decode_envelope(data)
        return envelope if shape is None else self.decode_payload(envelope, shape)

    def decode_envelope(self, data: bytes) -> bodies.Envelope:
        """
        Unwrap the magic-prefixed ``runtime.Unknown`` into an envelope.
        """
        if not data.startswith(MAGIC):
            raise errors.DecodeError(f"The payload is not a K8s protobuf object: {data[:4]!r}")
        return self._unwrap(data[len(MAGIC):])

    def decode_event(self, data: bytes) -> Tuple[bodies.WatchEvent, bodies.Envelope]:
        event = self._parse(data, schemas.WatchEvent)
        raw_type = _parse_event_type(event.type)
        if not event.HasField('object'):
            raise errors.DecodeError(f"The {raw_type.value} watch-event has no object.")

        # The nested object is usually magic-prefixed, but tolerate the bare envelopes too.
        nested: bytes = event.object.raw
        envelope = self._unwrap(nested[len(MAGIC):] if nested.startswith(MAGIC) else nested)
        return bodies.WatchEvent(type=raw_type, object=nested), envelope

    def decode_payload(self, envelope: bodies.Envelope, shape: Optional[Shape] = None) -> Any:
        if shape is None:
            return envelope.raw
        if not isinstance(shape, type) or not issubclass(shape, protobuf_message.Message):
            raise TypeError(f"Only protobuf message classes can be decoded into, got {shape!r}.")
        return self._parse(envelope.raw, shape)

    def decode_status(self, data: bytes) -> Optional[bodies.RawStatus]:
        if not data.startswith(MAGIC):
            return _decode_json_status(data)  # the servers respond with JSON on some errors.
        try:
            envelope = self.decode_envelope(data)
        except errors.DecodeError:
            return None
        return self.decode_payload_status(envelope)

    def decode_payload_status(self, envelope: bodies.Envelope) -> Optional[bodies.RawStatus]:
        if envelope.kind is not None and envelope.kind != 'Status':
            return None
        try:
            status = self._parse(envelope.raw, schemas.Status)
        except errors.DecodeError:
            return None
        payload = json_format.MessageToDict(status)
        payload.update(apiVersion=envelope.api_version or 'v1', kind='Status')
        return payload  # type: ignore[return-value]

    def _unwrap(self, data: bytes) -> bodies.Envelope:
        unknown = self._parse(data, schemas.Unknown)
        return bodies.Envelope(
            raw=unknown.raw,
            api_version=unknown.typeMeta.apiVersion or None,
            kind=unknown.typeMeta.kind or None,
            content_type=unknown.contentType or None,
        )

    @staticmethod
    def _parse(data: bytes, cls: Type[_T]) -> _T:
        msg = cls()
        try:
            msg.ParseFromString(data)  # type: ignore[attr-defined]
        except protobuf_message.DecodeError as e:
            raise errors.DecodeError(f"Malformed {cls.__name__} protobuf: {e}") from e
        return msg
