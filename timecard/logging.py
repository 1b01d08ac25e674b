import logging
import sys
from pathlib import Path
from typing import Optional

import structlog

from .config import Settings


def _stderr_logger(*args) -> structlog.PrintLogger:
    # Resolved per logger so a swapped sys.stderr is honoured.
    return structlog.PrintLogger(sys.stderr)


def _renderer(log_format: str):
    if log_format == "console":
        return structlog.dev.ConsoleRenderer(colors=False)
    return structlog.processors.JSONRenderer()


def configure_logging(settings: Settings, data_dir: Optional[Path] = None) -> None:
    """Route structlog events to stderr and tag them with the store in use.

    ``data_dir`` overrides ``settings.data_dir`` when the CLI was pointed at a
    different store.
    """

    level = logging.getLevelName(settings.log_level)
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(data_dir=str(data_dir or settings.data_dir))
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            _renderer(settings.log_format),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )


def bind_command(command: str) -> None:
    structlog.contextvars.bind_contextvars(command=command)


def get_logger(name: str) -> structlog.BoundLogger:
    return structlog.get_logger(name)
