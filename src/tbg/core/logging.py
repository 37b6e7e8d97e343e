"""Structured logging for tbg.

Every tbg logger is a structlog ``BoundLogger`` carried on a stdlib logger under
``tbg``. Until ``configure_logging`` runs, stdlib levels apply, so engine debug
events stay silent inside a host application.
"""

from __future__ import annotations

import logging
import sys
from typing import IO

import structlog

ROOT_LOGGER = "tbg"
HANDLER_NAME = "tbg-cli"

_EVENT_PROCESSORS: list[structlog.types.Processor] = [
    structlog.stdlib.filter_by_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
]


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.wrap_logger(
        logging.getLogger(name),
        processors=_EVENT_PROCESSORS,
        wrapper_class=structlog.stdlib.BoundLogger,
    )


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
    stream: IO[str] | None = None,
) -> logging.Handler:
    """Attach one rendering handler to the ``tbg`` logger.

    Calling it again replaces the previous handler. Output goes to ``stream``
    (stderr by default) as JSON lines or as plain console text without colour codes.
    """
    renderer: structlog.types.Processor
    if log_json:
        renderer = structlog.processors.JSONRenderer(sort_keys=True)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    tbg_logger = _detach_handler()
    tbg_logger.addHandler(handler)
    tbg_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    tbg_logger.propagate = False
    return handler


def reset_logging() -> None:
    """Detach the handler installed by ``configure_logging`` and restore defaults."""
    tbg_logger = _detach_handler()
    tbg_logger.setLevel(logging.NOTSET)
    tbg_logger.propagate = True


def _detach_handler() -> logging.Logger:
    tbg_logger = logging.getLogger(ROOT_LOGGER)
    for existing in list(tbg_logger.handlers):
        if existing.get_name() == HANDLER_NAME:
            tbg_logger.removeHandler(existing)
    return tbg_logger
