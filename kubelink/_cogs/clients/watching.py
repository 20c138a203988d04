"""
Watching and decoding the watch-streams, event by event.

A watch-stream is one long-living HTTP response, which carries the events
one after another. The events are framed differently depending on the codec:

* Text (JSON) streams are newline-delimited: one JSON object per line.
* Binary (protobuf) streams are length-prefixed: every frame is a 4-byte magic
  (``k8s\\x00``), a 4-byte big-endian unsigned length, and then the payload
  of exactly that length (a serialized ``WatchEvent`` message).

A stream can end in several ways, and they are all distinguishable:

* The server closes the connection between the events -- a clean end,
  :class:`errors.StreamEndedError` (and the end of the ``async for`` loop).
* The server closes the connection in the middle of a frame, or sends garbage
  instead of a frame -- :class:`errors.FramingError`. There is no attempt
  to resynchronise: the stream is closed and must be re-opened.
* The stream is closed locally while being read or before it is read again --
  :class:`errors.StreamClosedError`.
* The stream is stopped by its stopper (an externally controlled future) --
  :class:`errors.StreamCancelledError`.
* The connection breaks or times out -- :class:`errors.TransportError`.

All of these (except the decoding errors of individual events) leave
the watcher closed: every next read fails fast with `StreamClosedError`,
and there is nothing to release anymore.

The watchers are not safe for concurrent reads from several tasks.
Closing, however, is allowed from any task (or from a done-callback) at any time,
including while another task is blocked on reading.
"""
import struct
from typing import Any, Callable, Generic, Mapping, Optional, Tuple, TypeVar

import aiohttp

from kubelink._cogs.aiokits import aiotasks
from kubelink._cogs.clients import api, auth, codecs, errors
from kubelink._cogs.configs import configuration
from kubelink._cogs.helpers import typedefs
from kubelink._cogs.structs import bodies

_T = TypeVar('_T')

HEADER = struct.Struct('>4sI')  # magic + big-endian unsigned 32-bit length.


class Watcher:
    """
    A decoder of one watch-stream into a sequence of events with raw payloads.

    The payloads are not decoded into the objects: only the events' types
    and the envelopes are extracted. Use :class:`TypedWatcher` for the objects.

    Usage::

        async with watcher:
            async for event, envelope in watcher:
                ...
    """

    def __init__(
            self,
            response: aiohttp.ClientResponse,
            *,
            codec: codecs.Codec,
            settings: configuration.ClientSettings,
            stopper: Optional[aiotasks.Future] = None,
            logger: typedefs.Logger,
    ) -> None:
        super().__init__()
        self._response = response
        self._codec = codec
        self._stopper = stopper
        self._logger = logger
        self._max_frame_size = settings.watching.max_frame_size
        self._chunk_size = settings.watching.chunk_size
        self._buffer = bytearray()
        self._closed = False

        # Interrupt the blocked reads as soon as the stopper is done (not only between events).
        if stopper is not None:
            stopper.add_done_callback(self._stop)

    def __repr__(self) -> str:
        state = 'closed' if self._closed else 'open'
        return f'<{self.__class__.__name__} {state} {self._response.url}>'

    @property
    def codec(self) -> codecs.Codec:
        return self._codec

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def stopped(self) -> bool:
        return self._stopper is not None and self._stopper.done()

    async def __aenter__(self) -> "Watcher":
        return self

    async def __aexit__(self, *args: Any) -> None:
        self.close()

    def __aiter__(self) -> "Watcher":
        return self

    async def __anext__(self) -> Tuple[bodies.WatchEvent, bodies.Envelope]:
        try:
            return await self.next()
        except errors.StreamClosedError:
            raise StopAsyncIteration

    async def next(self) -> Tuple[bodies.WatchEvent, bodies.Envelope]:
        """
        Read & decode the next event of the stream; block until it arrives.

        A malformed event raises :class:`errors.DecodeError`, but the stream
        remains usable: the boundaries of the following events are intact.
        All other errors are terminal and close the stream.
        """
        if self._closed:
            raise errors.StreamClosedError("The watch-stream is closed.")
        try:
            if self.stopped:
                raise errors.StreamCancelledError("The watch-stream is stopped.")
            data = await (self._read_frame() if self._codec.binary_framing else self._read_line())
        except errors.FramingError as e:
            self._logger.debug(f"The watch-stream is corrupted: {e}")
            self.close()
            raise
        except (errors.StreamClosedError, errors.TransportError):
            self.close()
            raise
        return self._codec.decode_event(data)

    def close(self) -> None:
        """
        Close the stream and release the connection. Repeated calls do nothing.
        """
        if self._closed:
            return
        self._closed = True
        if self._stopper is not None:
            self._stopper.remove_done_callback(self._stop)
        self._response.close()
        self._buffer.clear()
        self._logger.debug(f"Closed the watch-stream: {self._response.url}")

    def _stop(self, _: aiotasks.Future) -> None:
        # Not a full close: the reader must still see the cancellation, not a local closing.
        self._response.close()

    async def _read_frame(self) -> bytes:
        if not await self._fill(HEADER.size):
            if not self._buffer:
                raise errors.StreamEndedError("The watch-stream has ended.")
            raise errors.FramingError(
                f"The frame header is truncated: {len(self._buffer)} of {HEADER.size} bytes.",
                expected=HEADER.size, received=len(self._buffer))

        magic, length = HEADER.unpack_from(self._buffer)
        if magic != codecs.MAGIC:
            raise errors.FramingError(f"The frame magic is wrong: {magic!r}", magic=magic)
        if length > self._max_frame_size:
            raise errors.FramingError(
                f"The frame is too big: {length} > {self._max_frame_size} bytes.",
                magic=magic, expected=length)

        if not await self._fill(HEADER.size + length):
            received = len(self._buffer) - HEADER.size
            raise errors.FramingError(
                f"The frame is truncated: {received} of {length} bytes.",
                magic=magic, expected=length, received=received)

        frame = bytes(self._buffer[HEADER.size:HEADER.size + length])
        del self._buffer[:HEADER.size + length]
        return frame

    async def _read_line(self) -> bytes:
        while True:
            index = self._buffer.find(b'\n')
            size = index if index >= 0 else len(self._buffer)  # so far, if not terminated yet.
            if size > self._max_frame_size:
                raise errors.FramingError(
                    f"The line is too long: {size} > {self._max_frame_size} bytes.",
                    received=size)
            if index >= 0:
                line = bytes(self._buffer[:index])
                del self._buffer[:index + 1]
                if line.strip():
                    return line
                continue

            chunk = await self._read_chunk()
            if chunk:
                self._buffer += chunk
            elif self._buffer.strip():
                line = bytes(self._buffer)  # the last line, not newline-terminated.
                self._buffer.clear()
                return line
            else:
                raise errors.StreamEndedError("The watch-stream has ended.")

    async def _fill(self, size: int) -> bool:
        """ Buffer at least ``size`` bytes; ``False`` if the stream ends earlier. """
        while len(self._buffer) < size:
            chunk = await self._read_chunk()
            if not chunk:
                return False
            self._buffer += chunk
        return True

    async def _read_chunk(self) -> bytes:
        try:
            chunk = await self._response.content.read(self._chunk_size)
        except api.TRANSPORT_ERRORS as e:
            self._raise_for_interruption()
            if isinstance(e, aiohttp.ClientPayloadError) and self._buffer and self._codec.binary_framing:
                raise errors.FramingError(
                    f"The frame is truncated by the server: {e!r}",
                    received=len(self._buffer)) from e
            raise errors.TransportError(f"The watch-stream has failed: {e!r}") from e
        if not chunk:
            self._raise_for_interruption()
        return chunk

    def _raise_for_interruption(self) -> None:
        # A locally closed response either fails or looks like EOF; both are not the server's.
        if self.stopped:
            raise errors.StreamCancelledError("The watch-stream is stopped.")
        if self._closed:
            raise errors.StreamClosedError("The watch-stream is closed.")


class TypedWatcher(Generic[_T]):
    """
    A watcher that decodes the events' objects into a specific shape.

    The ``ERROR`` events are not returned, but raised as :class:`errors.APIError`
    with the status from the event (e.g. "410 Gone" for the outdated versions).
    """

    def __init__(self, watcher: Watcher, *, shape: Callable[..., _T]) -> None:
        super().__init__()
        self._watcher = watcher
        self._shape = shape

    def __repr__(self) -> str:
        return f'<{self.__class__.__name__} of {self._shape!r} over {self._watcher!r}>'

    @property
    def closed(self) -> bool:
        return self._watcher.closed

    async def __aenter__(self) -> "TypedWatcher[_T]":
        return self

    async def __aexit__(self, *args: Any) -> None:
        self.close()

    def __aiter__(self) -> "TypedWatcher[_T]":
        return self

    async def __anext__(self) -> Tuple[bodies.WatchEvent, _T]:
        try:
            return await self.next()
        except errors.StreamClosedError:
            raise StopAsyncIteration

    async def next(self) -> Tuple[bodies.WatchEvent, _T]:
        event, envelope = await self._watcher.next()
        codec = self._watcher.codec

        if event.type is bodies.EventType.ERROR:
            status = codec.decode_payload_status(envelope)
            if status is None:
                raise errors.PayloadDecodeError(
                    f"The error event has no status: {envelope.raw[:100]!r}",
                    event_type=event.type)
            errors.raise_for_status_payload(status)

        try:
            obj = codec.decode_payload(envelope, self._shape)
        except errors.DecodeError as e:
            raise errors.PayloadDecodeError(
                f"The {event.type.value} object cannot be decoded: {e}",
                event_type=event.type) from e
        return event, obj

    def close(self) -> None:
        self._watcher.close()


async def watch(
        url: str,  # relative to the server/api root.
        *,
        codec: codecs.Codec,
        settings: configuration.ClientSettings,
        stopper: Optional[aiotasks.Future] = None,
        headers: Optional[Mapping[str, str]] = None,
        context: auth.APIContext,
        logger: typedefs.Logger,
) -> Watcher:
    """
    Open a watch-stream and return a watcher for it, once the server accepts it.

    The API errors (e.g. "404 Not Found") are raised here, not on the first read.
    The URL must already contain the ``watch=true`` parameter.
    """
    if stopper is not None and stopper.done():
        raise errors.StreamCancelledError("The watch-stream is stopped before it is opened.")

    connect_timeout = (
        settings.watching.connect_timeout if settings.watching.connect_timeout is not None else
        settings.networking.connect_timeout if settings.networking.connect_timeout is not None else
        settings.networking.request_timeout
    )
    response = await api.request(
        method='get',
        url=url,
        codec=codec,
        headers={'Accept': codec.stream_content_type, **(headers or {})},
        timeout=aiohttp.ClientTimeout(
            total=settings.watching.client_timeout,
            sock_connect=connect_timeout,
        ),
        settings=settings,
        context=context,
        logger=logger,
    )
    context.add_response(response)
    logger.debug(f"Opened the watch-stream: {response.url}")
    return Watcher(response, codec=codec, settings=settings, stopper=stopper, logger=logger)
