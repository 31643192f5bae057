"""Structured logging for tag-schema.

Library modules obtain loggers through :func:`get_logger`.  Those loggers are
structlog front-ends over the standard ``logging`` module, so the package
stays silent until the host application configures logging.  The CLI calls
:func:`configure_logging` to get colourless console output or JSON lines.
"""

from __future__ import annotations

import logging
import sys

import structlog
from structlog.types import Processor

__all__ = ["configure_logging", "get_logger"]


def _library_processors() -> list[Processor]:
    """Processors applied before a record is handed to stdlib logging."""
    return [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.stdlib.render_to_log_kwargs,
    ]


def get_shared_processors() -> list[Processor]:
    """Processors used by the formatter for every record it renders."""
    return [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.ExtraAdder(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.UnicodeDecoder(),
    ]


def configure_logging(level: str = "WARNING", json_logs: bool = False) -> None:
    """Install a stderr handler rendering tag-schema events.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_logs: Emit one JSON object per line instead of console text.
    """
    log_level = getattr(logging, level.upper(), logging.WARNING)

    if json_logs:
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=get_shared_processors(),
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    pkg_logger = logging.getLogger("tag_schema")
    pkg_logger.handlers = [handler]
    pkg_logger.setLevel(log_level)
    pkg_logger.propagate = False


def get_logger(name: str = "tag_schema") -> structlog.stdlib.BoundLogger:
    """Return a structlog logger bound to the stdlib logger *name*."""
    return structlog.wrap_logger(
        logging.getLogger(name),
        processors=_library_processors(),
        wrapper_class=structlog.stdlib.BoundLogger,
    )
