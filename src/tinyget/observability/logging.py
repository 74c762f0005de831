"""Structured logging for tinyget's events.

Library modules log through module-level ``structlog.get_logger()``
loggers and never configure structlog on import. Applications, and the
``tinyget`` command, opt in with ``configure_logging``.
"""

import logging
import sys
from typing import TextIO

import structlog


REQUEST_CONTEXT_KEY = "request_url"


def configure_logging(
    verbose: bool = False,
    output: TextIO | None = None,
    json_format: bool = True,
) -> None:
    """Route tinyget's events to a stream.

    Only warnings (failed sends, ignored settings) are emitted unless
    ``verbose`` is set, which adds per-hop debug events. Loggers are not
    cached, so loggers created at import time pick up a later call.

    Args:
        verbose: Emit debug and info events as well.
        output: Stream to write to; the current ``sys.stderr`` when omitted.
        json_format: Render JSON lines instead of key=value console lines.
    """
    level = logging.DEBUG if verbose else logging.WARNING
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer(sort_keys=True)
        if json_format
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=output or sys.stderr),
        cache_logger_on_first_use=False,
    )


def bind_request_context(url: str) -> None:
    """Attach the requested URL to every event until cleared.

    Args:
        url: URL the caller asked for, before any redirect.
    """
    structlog.contextvars.bind_contextvars(**{REQUEST_CONTEXT_KEY: url})


def clear_request_context() -> None:
    """Remove the requested URL from subsequent events."""
    structlog.contextvars.unbind_contextvars(REQUEST_CONTEXT_KEY)
