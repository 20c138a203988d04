"""
The main Kubelink module for all the exported functions & classes.
"""
# isort: skip_file

# Unlike all other places, where we import other modules and refer
# the functions via the modules, this is the library's top-level interface,
# as it is seen by the users. So, we export the individual functions.

from kubelink._cogs.clients.codecs import (
    MAGIC,
    Codec,
    JSONCodec,
    ProtobufCodec,
)
from kubelink._cogs.clients.discovery import (
    Discovery,
)
from kubelink._cogs.clients.errors import (
    APIError,
    APIClientError,
    APIServerError,
    APIUnauthorizedError,
    APIForbiddenError,
    APINotFoundError,
    APIConflictError,
    APIGoneError,
    TransportError,
    StreamCancelledError,
    DecodeError,
    PayloadDecodeError,
    FramingError,
    StreamClosedError,
    StreamEndedError,
)
from kubelink._cogs.clients.thirdparty import (
    ThirdPartyResources,
)
from kubelink._cogs.clients.watching import (
    Watcher,
    TypedWatcher,
)
from kubelink._cogs.configs.configuration import (
    ClientSettings,
    NetworkingSettings,
    WatchingSettings,
)
from kubelink._cogs.helpers.typedefs import (
    Logger,
)
from kubelink._cogs.helpers.versions import (
    version as __version__,
)
from kubelink._cogs.structs.bodies import (
    RawBody,
    RawMeta,
    RawList,
    RawStatus,
    EventType,
    Envelope,
    WatchEvent,
    Version,
)
from kubelink._cogs.structs.credentials import (
    ConnectionInfo,
    AiohttpSession,
)
from kubelink._cogs.structs.references import (
    ValidationError,
    Resource,
    check_resource,
)
from kubelink._cogs.structs import (
    schemas,  # as a separate name on the public namespace
)
from kubelink._core.clients import (
    Client,
)
from kubelink._core.engines.loggers import (
    LogFormat,
    configure,
)

__all__ = [
    'MAGIC',
    'Codec',
    'JSONCodec',
    'ProtobufCodec',
    'Discovery',
    'APIError',
    'APIClientError',
    'APIServerError',
    'APIUnauthorizedError',
    'APIForbiddenError',
    'APINotFoundError',
    'APIConflictError',
    'APIGoneError',
    'TransportError',
    'StreamCancelledError',
    'DecodeError',
    'PayloadDecodeError',
    'FramingError',
    'StreamClosedError',
    'StreamEndedError',
    'ThirdPartyResources',
    'Watcher',
    'TypedWatcher',
    'ClientSettings',
    'NetworkingSettings',
    'WatchingSettings',
    'Logger',
    '__version__',
    'RawBody',
    'RawMeta',
    'RawList',
    'RawStatus',
    'EventType',
    'Envelope',
    'WatchEvent',
    'Version',
    'ConnectionInfo',
    'AiohttpSession',
    'ValidationError',
    'Resource',
    'check_resource',
    'schemas',
    'Client',
    'LogFormat',
    'configure',
]
