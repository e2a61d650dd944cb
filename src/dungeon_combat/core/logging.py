"""Structured logging for the dungeon combat engine.

All engine modules log through structlog. Encounter-level context (the
encounter name, the current wave and round) is carried in contextvars so
resolver and AI log lines can be correlated with the fight they belong
to without threading the values through every call.

Example:
    >>> from dungeon_combat.core.logging import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("Attack resolved", attacker="aldric", damage=7)
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import Processor


if TYPE_CHECKING:
    from structlog.types import EventDict, WrappedLogger


APP_NAME = "dungeon_combat"

# Context keys rendered first in console output, in this order.
_ENCOUNTER_KEYS = ("encounter", "wave", "round")


def add_app_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Tag every entry with the engine name."""
    event_dict.setdefault("app", APP_NAME)
    return event_dict


def order_encounter_keys(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Move encounter context keys to the front of the entry.

    Console output then reads ``encounter=... wave=2 round=3`` before the
    per-call fields, which keeps long fights scannable.

    Args:
        logger: The wrapped logger instance.
        method_name: Name of the logging method called.
        event_dict: The event dictionary to reorder.

    Returns:
        A new event dictionary with the encounter keys first.
    """
    ordered: EventDict = {key: event_dict.pop(key) for key in _ENCOUNTER_KEYS if key in event_dict}
    ordered.update(event_dict)
    return ordered


def _renderer(json_format: bool) -> list[Processor]:
    if json_format:
        return [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(sort_keys=False),
        ]
    return [
        structlog.dev.ConsoleRenderer(
            colors=sys.stdout.isatty(),
            exception_formatter=structlog.dev.plain_traceback,
            sort_keys=False,
        ),
    ]


def configure_logging(*, level: str = "INFO", json_format: bool = False) -> None:
    """Configure structlog and the standard library root logger.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Unknown names fall back to INFO.
        json_format: Render one JSON object per line instead of the
            console format.

    Example:
        >>> configure_logging(level="DEBUG")
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            add_app_context,
            order_encounter_keys,
            structlog.processors.StackInfoRenderer(),
            *_renderer(json_format),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        level=numeric_level,
        stream=sys.stdout,
        force=True,
    )


def configure_from_settings() -> None:
    """Configure logging from the cached engine settings."""
    from dungeon_combat.core.config import get_settings

    settings = get_settings()
    configure_logging(level=settings.log_level, json_format=settings.json_logs)


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind encounter context included in all subsequent log entries.

    Example:
        >>> bind_context(encounter="Goblin Warren", wave=1)
        >>> logger.info("Wave started")  # includes encounter and wave
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


@contextmanager
def encounter_context(**kwargs: Any) -> Iterator[None]:
    """Bind context for the duration of a ``with`` block, then unbind it."""
    with structlog.contextvars.bound_contextvars(**kwargs):
        yield


__all__ = [
    "APP_NAME",
    "add_app_context",
    "order_encounter_keys",
    "configure_logging",
    "configure_from_settings",
    "get_logger",
    "bind_context",
    "clear_context",
    "encounter_context",
]
