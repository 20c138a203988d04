"""
Logging configuration for the command-line tool and for the applications.

The library itself never configures logging: it only logs to its own loggers
(``kubelink.*``). The applications can configure the logging their own way,
or use :func:`configure` for the same output as the command-line tool.

The requests' details (URLs, statuses, stream openings, closings, and failures)
are logged at the debug level only.
"""
import enum
import logging
from typing import TYPE_CHECKING, Any, Dict, Optional, TextIO, Union

from pythonjsonlogger.core import RESERVED_ATTRS
from pythonjsonlogger.json import JsonFormatter


class LogFormat(enum.Enum):
    """ Log formats, as specified on CLI. """
    PLAIN = '%(message)s'
    FULL = '[%(asctime)s] %(name)-20.20s [%(levelname)-8.8s] %(message)s'
    JSON = '-json-'  # not used for formatting, only for detection


class ClientFormatter(logging.Formatter):
    pass


class ClientTextFormatter(ClientFormatter, logging.Formatter):
    pass


# Severity names as understood by the log collectors (e.g. Stackdriver), by the max level.
_SEVERITIES = [
    (logging.DEBUG, 'debug'),
    (logging.INFO, 'info'),
    (logging.WARNING, 'warn'),
    (logging.ERROR, 'error'),
]


class ClientJsonFormatter(ClientFormatter, JsonFormatter):
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault('reserved_attrs', set(RESERVED_ATTRS))
        kwargs.setdefault('timestamp', True)
        super().__init__(*args, **kwargs)

    def add_fields(
            self,
            log_record: Dict[str, Any],
            record: logging.LogRecord,
            message_dict: Dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        if 'severity' not in log_record:
            log_record['severity'] = next(
                (name for level, name in _SEVERITIES if record.levelno <= level), 'fatal')


# Used to identify and remove our own handlers on re-configuration, e.g. in CLI tests:
# the previous handlers can stream into the closed stderr interceptors of Click's runner.
if TYPE_CHECKING:
    class _ClientStreamHandler(logging.StreamHandler[TextIO]):
        pass
else:
    class _ClientStreamHandler(logging.StreamHandler):
        pass


def configure(
        debug: Optional[bool] = None,
        verbose: Optional[bool] = None,
        quiet: Optional[bool] = None,
        log_format: Union[LogFormat, str] = LogFormat.FULL,
) -> None:
    log_level = 'DEBUG' if debug or verbose else 'WARNING' if quiet else 'INFO'
    formatter = make_formatter(log_format=log_format)
    handler = _ClientStreamHandler()
    handler.setFormatter(formatter)
    logger = logging.getLogger()
    logger.handlers[:] = [h for h in logger.handlers if not isinstance(h, _ClientStreamHandler)]
    logger.addHandler(handler)
    logger.setLevel(log_level)

    # The low-level loggers are silent unless in the debug mode: no propagation, no last-resort.
    for name in ['asyncio', 'aiohttp']:
        logger = logging.getLogger(name)
        logger.propagate = bool(debug)
        if not debug:
            logger.handlers[:] = [logging.NullHandler()]


def make_formatter(
        log_format: Union[LogFormat, str] = LogFormat.FULL,
) -> ClientFormatter:
    match log_format:
        case LogFormat.JSON:
            return ClientJsonFormatter()
        case LogFormat():
            return ClientTextFormatter(log_format.value)
        case str():
            return ClientTextFormatter(log_format)
        case _:
            raise ValueError(f"Unsupported log format: {log_format!r}")
