"""
Type aliases for asyncio primitives used across the clients.

Only futures are used at the moment: as the "stoppers" of the watch-streams,
i.e. externally controlled signals to close the streaming connections.
"""
import asyncio
from typing import TYPE_CHECKING, Any

# A workaround for a difference in futures at runtime and type-checking time.
# Otherwise, at runtime: TypeError: 'type' object is not subscriptable.
if TYPE_CHECKING:
    Future = asyncio.Future[Any]
else:
    Future = asyncio.Future
