"""
All configuration flags, options, settings to fine-tune the API clients.

All settings are grouped semantically just for convenience
(instead of a flat mega-object with all the values in it).

Some of the settings are flags, some are scalars, some are optional,
some are not (but all of them have reasonable defaults).

The settings are created once per :class:`kubelink.Client` and are passed
explicitly to every low-level API call. There are no global settings.
"""
import dataclasses
from typing import Optional


@dataclasses.dataclass
class NetworkingSettings:

    request_timeout: Optional[float] = 5 * 60  # == aiohttp.client.DEFAULT_TIMEOUT
    """
    A timeout for the API requests (in seconds): the whole request & response.

    Watch-streams do not use it, see :attr:`WatchingSettings.client_timeout`.
    """

    connect_timeout: Optional[float] = None
    """
    A timeout for the connection establishing to the API server (in seconds).
    """


@dataclasses.dataclass
class WatchingSettings:

    server_timeout: Optional[float] = None
    """
    The maximum duration of one streaming request, as requested from the server.
    If ``None``, then obey the server-side timeouts (they seem to be random).
    """

    client_timeout: Optional[float] = None
    """
    An HTTP/HTTPS session timeout to use in watch requests.
    """

    connect_timeout: Optional[float] = None
    """
    An HTTP/HTTPS connection timeout to use in watch requests.
    If ``None``, the networking's connection (or request) timeout is used.
    """

    max_frame_size: int = 16 * 1024 * 1024
    """
    The maximum size of one watch-event in the stream (in bytes).

    For the binary framing, the declared length of a frame is checked against it
    before the payload is read. For the text framing, it limits the buffered
    length of one line. Oversized events are treated as the stream corruption.
    """

    chunk_size: int = 1024 * 1024
    """
    How many bytes to read at once from the watch-stream's connection.

    The chunk size of 1MB is an empirical guess for keeping the memory footprint
    reasonably low on huge amount of small events, while ensuring the near-instant
    reads of the huge events (can be a problem with a small chunk size due to
    too many iterations).
    """


@dataclasses.dataclass
class ClientSettings:
    networking: NetworkingSettings = dataclasses.field(default_factory=NetworkingSettings)
    watching: WatchingSettings = dataclasses.field(default_factory=WatchingSettings)
