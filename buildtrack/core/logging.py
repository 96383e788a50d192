"""Structured logging for the CLI and the web app.

Engine modules log through ``logging.getLogger(__name__)``; entry points use
``structlog.get_logger()``. Both end up in one stderr handler rendered by
structlog, as JSON lines or coloured console output.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from buildtrack.config import LoggingConfig


class _StderrHandler(logging.StreamHandler):
    """Writes to whatever ``sys.stderr`` is at emit time."""

    @property
    def stream(self):
        return sys.stderr

    @stream.setter
    def stream(self, value) -> None:
        pass


_handler: logging.Handler | None = None


def configure_logging(config: LoggingConfig | None = None) -> None:
    """Configure structlog and the stdlib root logger.

    Safe to call more than once; the previous handler is replaced.

    Args:
        config: Level and format; read from LOG_LEVEL/LOG_FORMAT when omitted
    """
    global _handler
    config = config or LoggingConfig.from_env()

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    renderer: Any = (
        structlog.processors.JSONRenderer()
        if config.format == "json"
        else structlog.dev.ConsoleRenderer()
    )

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

    handler = _StderrHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    if _handler is not None:
        root.removeHandler(_handler)
    root.addHandler(handler)
    root.setLevel(config.level)
    _handler = handler
