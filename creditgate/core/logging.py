"""Structured logging setup (structlog over stdlib logging)."""

from __future__ import annotations

import logging
import sys

import structlog


def build_processors(json_output: bool) -> list[structlog.typing.Processor]:
    """Processor chain ending in a JSON or console renderer.

    Only the JSON chain pre-formats exceptions; the console renderer
    formats them itself.
    """
    processors: list[structlog.typing.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if json_output:
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))
    return processors


def setup_logging(level: str = "INFO", json_output: bool = False) -> None:
    """Configure structlog and the root stdlib logger.

    Call once from each process entry point (API app factory, scripts).
    """
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
        force=True,
    )

    structlog.configure(
        processors=build_processors(json_output),
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a named structlog logger."""
    return structlog.get_logger(name)  # type: ignore[no-any-return]
