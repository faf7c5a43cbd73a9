"""
Structured logging for the gateway, built on structlog over stdlib logging.

Every record carries the service name and version; records emitted while
handling an HTTP request also carry that request's correlation id, method
and path, bound through ``request_context``.
"""
from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Dict, Iterator, List

import structlog
from structlog.contextvars import bound_contextvars

from corsgate import __version__

if TYPE_CHECKING:
    from corsgate.config.config import MonitoringConfig

SERVICE_NAME = "corsgate"

# uvicorn's own access lines duplicate the "Request handled" line.
_QUIETED_LOGGERS = ("uvicorn.access",)


def add_service_info(logger: logging.Logger, method_name: str, event_dict: Dict[Any, Any]) -> Dict[Any, Any]:
    event_dict.setdefault("service", SERVICE_NAME)
    event_dict.setdefault("version", __version__)
    return event_dict


@contextmanager
def request_context(correlation_id: str, **values: Any) -> Iterator[None]:
    """Bind ``correlation_id`` and any extra values to logs within the block."""
    with bound_contextvars(correlation_id=correlation_id, **values):
        yield


def _build_handler(config: MonitoringConfig, shared_processors: List[Any]) -> logging.Handler:
    renderer: Any
    if config.log_file:
        renderer = structlog.processors.JSONRenderer()
        handler: logging.Handler = logging.FileHandler(config.log_file)
    else:
        # stdout is reserved for the scrape command's JSON output.
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
        handler = logging.StreamHandler(sys.stderr)

    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=shared_processors,
        )
    )
    return handler


def configure_logging(config: MonitoringConfig) -> None:
    """
    Route structlog and stdlib logging through one handler.

    Uses JSON lines when ``config.log_file`` is set, a console renderer on
    stderr otherwise.
    """
    shared_processors: List[Any] = [
        structlog.contextvars.merge_contextvars,
        add_service_info,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    root = logging.getLogger()
    root.handlers = [_build_handler(config, shared_processors)]
    root.setLevel(config.log_level.upper())
    for name in _QUIETED_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=shared_processors
        + [
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    structlog.get_logger("corsgate.logging").info(
        "Logging configured", level=config.log_level, output=config.log_file or "stderr"
    )
