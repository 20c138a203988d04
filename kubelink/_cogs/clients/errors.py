"""
K8s API errors.

The underlying client library (now, ``aiohttp``) can be replaced in the future.
We cannot rely on embedding its exceptions all over the code in the library.
Hence, we have our own hierarchy of exceptions for K8s API errors.

The errors are split by their origin, so that the callers could tell
what went wrong without inspecting the messages:

* `TransportError` -- the connection failed, timed out, or was cancelled.
* `APIError` -- the server responded with a non-success status.
* `DecodeError` -- the bytes did not match the expected codec or schema.
* `FramingError` -- the binary watch-stream is corrupted or truncated.
* `StreamClosedError` -- the watch-stream is over: closed locally or by the server.

The original errors of the client library are chained as the causes of our own
specialised errors -- for better explainability of errors in the stack traces.

Some selected reasons of K8s API errors are made into their own classes,
so that they could be intercepted and handled in other places of the library.
All other reasons are raised as the base error class and are indistinguishable
from each other (except via the exception's fields).

Unlike the underlying client library's errors, the K8s API errors contain more
information about the reasons -- as provided by K8s API in its response bodies,
not guessed only by HTTP statuses alone.

None of these errors is retried internally. The retrying policy (if any)
belongs to the callers.
"""
from typing import TYPE_CHECKING, Optional, Type

import aiohttp

from kubelink._cogs.structs import bodies

if TYPE_CHECKING:
    from kubelink._cogs.clients import codecs


class APIError(Exception):

    def __init__(
            self,
            payload: Optional[bodies.RawStatus],
            *,
            status: int,
    ) -> None:
        message = payload.get('message') if payload else None
        super().__init__(message, payload)
        self._status = status
        self._payload = payload

    @property
    def status(self) -> int:
        return self._status

    @property
    def code(self) -> Optional[int]:
        return self._payload.get('code') if self._payload else None

    @property
    def message(self) -> Optional[str]:
        return self._payload.get('message') if self._payload else None

    @property
    def details(self) -> Optional[bodies.RawStatusDetails]:
        return self._payload.get('details') if self._payload else None


class APIClientError(APIError):
    pass


class APIServerError(APIError):
    pass


class APIUnauthorizedError(APIClientError):
    pass


class APIForbiddenError(APIClientError):
    pass


class APINotFoundError(APIClientError):
    pass


class APIConflictError(APIClientError):
    pass


class APIGoneError(APIClientError):
    """ Usually, "the resource version is too old" in the watch-streams. """


class TransportError(Exception):
    """
    A connection-level failure: refused, broken, timed out, or cancelled.

    The original error of the client library is chained as the cause.
    """


class StreamCancelledError(TransportError):
    """
    Raised when the watch-stream is stopped by its stopper while being read.
    """


class DecodeError(Exception):
    """
    Raised when the bytes do not match the codec's format or the expected schema.
    """


class PayloadDecodeError(DecodeError):
    """
    Raised when a watch-event is received fine, but its object cannot be decoded.

    The stream itself is intact and can be read further.
    """

    def __init__(self, message: str, *, event_type: bodies.EventType) -> None:
        super().__init__(message)
        self.event_type = event_type


class FramingError(Exception):
    """
    Raised when the binary watch-stream is corrupted or truncated.

    There is no resynchronisation of the stream after this error:
    the stream is closed and must be re-opened by the caller.
    """

    def __init__(
            self,
            message: str,
            *,
            magic: Optional[bytes] = None,
            expected: Optional[int] = None,
            received: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.magic = magic
        self.expected = expected
        self.received = received


class StreamClosedError(Exception):
    """
    Raised when the watch-stream is closed locally, and is read afterwards.
    """


class StreamEndedError(StreamClosedError):
    """
    Raised when the watch-stream is closed cleanly by the server (between events).
    """


def _error_class(status: int) -> Type[APIError]:
    return (
        APIUnauthorizedError if status == 401 else
        APIForbiddenError if status == 403 else
        APINotFoundError if status == 404 else
        APIConflictError if status == 409 else
        APIGoneError if status == 410 else
        APIClientError if 400 <= status < 500 else
        APIServerError if 500 <= status < 600 else
        APIError
    )


async def check_response(
        response: aiohttp.ClientResponse,
        *,
        codec: "codecs.Codec",
) -> None:
    """
    Check for specialised K8s errors, and raise with extended information.

    Everything except the success range (2xx) is an error.
    """
    if not 200 <= response.status < 300:

        # Read the response's body before it is closed by raise_for_status().
        payload: Optional[bodies.RawStatus]
        try:
            data = await response.read()
        except (aiohttp.ClientConnectionError, aiohttp.ClientPayloadError):
            payload = None
        else:
            payload = codec.decode_status(data)

        cls = _error_class(response.status)

        # Raise the library-specific error while keeping the original error in scope.
        # This call also closes the response's body, so it cannot be read afterwards.
        try:
            response.raise_for_status()
        except aiohttp.ClientResponseError as e:
            raise cls(payload, status=response.status) from e

        # Informational & redirection statuses are not errors for aiohttp, but are for us.
        response.release()
        raise cls(payload, status=response.status)


def raise_for_status_payload(payload: bodies.RawStatus) -> None:
    """
    Raise an API error for a status received in-band, e.g. in the watch-streams.

    The status code of the payload is used as if it were the HTTP status.
    A missing or non-numeric code (e.g. ``"410"`` as a string) is a server error.
    """
    code = payload.get('code')
    valid = isinstance(code, int) and not isinstance(code, bool) and code > 0
    status = code if valid else 500
    raise _error_class(status)(payload, status=status)
