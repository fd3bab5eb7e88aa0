"""
Structured logging for autocrud.

Manifesto:
    A repository that reports insert failures as ``False`` has to say why
    somewhere. Every repository event is a snake_case structlog event
    carrying the table name, so failures can be found and counted
    without parsing free text.

    - **Structured:** JSON lines for log shippers, console for humans
    - **Correlated:** ``table`` / ``operation`` bound through contextvars
    - **One stream:** driver loggers (``psycopg``) share the same output

Architecture:
    ::

        configure_logging(level, json_format, service)
            │
            ├── build_processors(json_format, service)
            │     TimeStamper(iso) → merge_contextvars → add_log_level
            │     → add_logger_name → ServiceTag → [ECS renames] → renderer
            │
            └── stdlib root handler at *level* (structlog LoggerFactory)

Event names used across the package:
    table_bound, upsert_statement_built, insert_failed,
    bulk_load_submitted, bulk_load_completed, bulk_load_failed,
    repository_registered, request_failed

Tags:
    logging, structlog, observability, json-logging, autocrud

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

# structlog key -> ECS field name (JSON output only)
_ECS_RENAMES = {
    "timestamp": "@timestamp",
    "level": "log.level",
    "logger": "log.logger",
}

DRIVER_LOGGERS = ("psycopg", "psycopg.pool")


class ServiceTag:
    """Processor stamping ``service.name`` on every event."""

    def __init__(self, service: str) -> None:
        self.service = service

    def __call__(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service.name", self.service)
        return event_dict


def _rename_for_ecs(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    for old, new in _ECS_RENAMES.items():
        if old in event_dict:
            event_dict[new] = event_dict.pop(old)
    return event_dict


def build_processors(
    json_format: bool,
    service: str = "autocrud",
    add_timestamp: bool = True,
) -> list[Processor]:
    """The structlog processor chain ``configure_logging`` installs."""
    processors: list[Processor] = []
    if add_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))
    processors += [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        ServiceTag(service),
    ]
    if json_format:
        processors += [
            _rename_for_ecs,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))
    return processors


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "autocrud",
    add_timestamp: bool = True,
    driver_level: str | None = "WARNING",
) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        level: Minimum level for autocrud events.
        json_format: JSON lines; ``None`` picks JSON when stdout is not a tty.
        service: Value of ``service.name`` on every event.
        add_timestamp: Add an ISO ``timestamp`` (``@timestamp`` in JSON).
        driver_level: Level for database driver loggers; ``None`` leaves
            them alone.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level!r}")
    if json_format is None:
        json_format = not sys.stdout.isatty()

    structlog.configure(
        processors=build_processors(json_format, service, add_timestamp),
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=numeric_level)
    if driver_level is not None:
        for name in DRIVER_LOGGERS:
            logging.getLogger(name).setLevel(driver_level.upper())


def get_logger(name: str | None = None) -> Any:
    """Structured logger, usually ``get_logger(__name__)``."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


class LogContext:
    """Bind keys for the duration of a ``with`` block.

    Example:
        with LogContext(table="orders", operation="insert_many"):
            logger.info("bulk_load_submitted", rows=500)
    """

    def __init__(self, **kwargs: Any):
        self._context = kwargs

    def __enter__(self) -> LogContext:
        bind_context(**self._context)
        return self

    def __exit__(self, *args: Any) -> None:
        unbind_context(*self._context)


__all__ = [
    "DRIVER_LOGGERS",
    "LogContext",
    "ServiceTag",
    "bind_context",
    "build_processors",
    "clear_context",
    "configure_logging",
    "get_logger",
    "unbind_context",
]
