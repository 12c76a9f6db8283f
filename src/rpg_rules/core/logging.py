"""Structured logging for the rpg-rules harness.

Rules functions emit structlog key/value events and never read them back,
so outcomes are identical whether or not logging is configured. Events are
written to stderr: stdout belongs to the balance report, which must stay
parseable when ``--json`` is requested.

Example:
    >>> from rpg_rules.core.logging import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.debug("fight simulated", seed=7, turns=6, winner="a")
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog

from rpg_rules.core.constants import RULE_VERSION


if TYPE_CHECKING:
    from structlog.types import EventDict, Processor, WrappedLogger


def add_rule_version(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Tag an event with the rules version that produced it."""
    event_dict.setdefault("rule_version", RULE_VERSION)
    return event_dict


def _renderers(json_format: bool) -> list[Processor]:
    if json_format:
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer(sort_keys=True)]
    return [structlog.dev.ConsoleRenderer(colors=False, exception_formatter=structlog.dev.plain_traceback)]


def configure_logging(*, level: str = "INFO", json_format: bool = False) -> None:
    """Route structlog events to stderr at the given level.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL); unknown
            names mean INFO.
        json_format: Render one JSON object per line, for batch runs.
    """
    threshold = getattr(logging, level.upper(), logging.INFO)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            add_rule_version,
            *_renderers(json_format),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(threshold),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Return a structlog logger, usually named after the calling module."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Attach key/value pairs to every later event of this context.

    The balance harness binds the seed of the running trial this way.
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Drop every bound context value."""
    structlog.contextvars.clear_contextvars()


__all__ = [
    "add_rule_version",
    "configure_logging",
    "get_logger",
    "bind_context",
    "clear_context",
]
