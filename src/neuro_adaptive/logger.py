"""Structured logging configuration using *structlog*."""

from __future__ import annotations

import logging
import sys

import structlog

from neuro_adaptive.config import get_settings


def setup_logging(level: str | None = None, *, json_output: bool | None = None) -> None:
    """Configure *structlog* for a host application embedding the engine.

    The engine never calls this itself; its modules only emit dotted events
    (``mapper.theme_adapted``, ``affect.engine_reset``) through
    ``structlog.get_logger``.  Output goes to stderr so the host's stdout
    stays untouched.

    Parameters
    ----------
    level
        Minimum level name; defaults to ``Settings.log_level``.
    json_output
        Force the JSON renderer on or off.  By default JSON is used unless
        stderr is a terminal.
    """
    level_name = (level or get_settings().log_level).upper()
    if json_output is None:
        json_output = not sys.stderr.isatty()
    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level_name, logging.INFO)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
