"""structlog configuration for podkit."""

from __future__ import annotations

import logging
import sys

import structlog


def verbosity_to_level(verbose: int) -> int:
    """No flag: WARNING. `-v`: INFO. `-vv` and above: DEBUG."""
    if verbose <= 0:
        return logging.WARNING
    if verbose == 1:
        return logging.INFO
    return logging.DEBUG


def _configure_structlog(colors: bool) -> None:
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=colors),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def configure_default_logging() -> None:
    """
    Route library events through stdlib logging without adding handlers, so
    applications that import podkit decide what gets shown. Leaves an existing
    structlog configuration alone.
    """
    if structlog.is_configured():
        return
    _configure_structlog(colors=False)


def configure_logging(verbose: int = 0) -> None:
    """Route structlog events through stdlib logging to stderr (used by the CLI)."""
    level = verbosity_to_level(verbose)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    structlog.reset_defaults()
    _configure_structlog(colors=sys.stderr.isatty())
