"""
Type aliases shared by the clients.

The loggers are accepted as either plain loggers or adapters, e.g. with
the application's own contextual ``extra`` fields on every record.
"""
import logging
from typing import TYPE_CHECKING, Any, Union

# The stubs declare the adapter as a generic; the runtime class is not subscriptable.
if TYPE_CHECKING:
    LoggerAdapter = logging.LoggerAdapter[Any]
else:
    LoggerAdapter = logging.LoggerAdapter

Logger = Union[logging.Logger, LoggerAdapter]
