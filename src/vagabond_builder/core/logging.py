"""Structured logging configuration for the Vagabond character engine.

Logging goes through structlog so that engine and builder events carry
structured context (formula text, builder step, character id) rather than
interpolated strings. Hosts that never call configure_logging still get
structlog's default console output.

Example:
    >>> from vagabond_builder.core.config import Settings
    >>> from vagabond_builder.core.logging import configure_logging, get_logger
    >>> configure_logging(Settings(log_json=True))
    >>> get_logger(__name__).info("Stat array selected", array_id=3)
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any, TextIO

import structlog
from structlog.types import Processor

from vagabond_builder.core.config import Settings, get_settings


if TYPE_CHECKING:
    from structlog.types import EventDict, WrappedLogger


class AppContext:
    """Processor stamping every entry with the configured library name."""

    def __init__(self, app_name: str) -> None:
        self.app_name = app_name

    def __call__(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("app", self.app_name)
        return event_dict


def resolve_level(settings: Settings) -> int:
    """Get the numeric log level; debug mode always logs DEBUG."""
    name = "DEBUG" if settings.debug else settings.log_level
    return logging.getLevelName(name)


def build_processors(settings: Settings, *, colors: bool = False) -> list[Processor]:
    """Assemble the processor chain for the configured output format.

    Args:
        settings: Settings supplying app_name and log_json.
        colors: Colorize console output.

    Returns:
        Processors ending in a JSON or console renderer.
    """
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        AppContext(settings.app_name),
        structlog.processors.StackInfoRenderer(),
    ]
    if settings.log_json:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(colors=colors, exception_formatter=structlog.dev.plain_traceback)
        )
    return processors


def configure_logging(settings: Settings | None = None, *, stream: TextIO | None = None) -> None:
    """Configure structlog from the library settings.

    Loggers are not cached, so calling this again (for example after
    changing VAGABOND_LOG_LEVEL) takes effect for module-level loggers too.

    Args:
        settings: Settings to read; defaults to the global settings.
        stream: Output stream; defaults to stdout.
    """
    settings = settings or get_settings()
    output = stream or sys.stdout
    structlog.configure(
        processors=build_processors(settings, colors=output.isatty()),
        wrapper_class=structlog.make_filtering_bound_logger(resolve_level(settings)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=output),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a logger, typically with __name__."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind context variables that will be included in all subsequent logs.

    The commit binds `builder_session` to the character id while it runs.

    Args:
        **kwargs: Key-value pairs to bind to the logging context.
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()


__all__ = [
    "AppContext",
    "resolve_level",
    "build_processors",
    "configure_logging",
    "get_logger",
    "bind_context",
    "clear_context",
]
