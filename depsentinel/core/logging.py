"""Structured logging for the CLI: structlog on top of stdlib logging, on stderr."""

from __future__ import annotations

import logging
import logging.config
import os
import sys
from typing import Any

import structlog

# -v count -> level; anything above the table is DEBUG.
_VERBOSITY_LEVELS = {0: "WARNING", 1: "INFO"}

# HTTP client chatter only shows up from -vvv on.
_HTTP_LOGGERS = ("httpx", "httpcore")
_HTTP_DEBUG_VERBOSITY = 3

_FORMATS = ("console", "json")


def level_for_verbosity(verbosity: int) -> str:
    """Map the ``-v`` repetition count to a stdlib level name."""
    return _VERBOSITY_LEVELS.get(verbosity, "DEBUG")


def _resolve_level(verbosity: int, override: str | None) -> str:
    if override:
        name = override.strip().upper()
        if isinstance(logging.getLevelName(name), int):
            return name
    return level_for_verbosity(verbosity)


def _renderer(log_format: str, *, colors: bool) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=colors)


def _dict_config(
    level: str,
    renderer: structlog.types.Processor,
    pre_chain: list[structlog.types.Processor],
    http_level: str,
) -> dict[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structlog": {
                "()": structlog.stdlib.ProcessorFormatter,
                "foreign_pre_chain": pre_chain,
                "processors": [
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    renderer,
                ],
            },
        },
        "handlers": {
            "stderr": {
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stderr",
                "formatter": "structlog",
            },
        },
        "root": {"handlers": ["stderr"], "level": level},
        "loggers": {
            "depsentinel": {"level": level},
            **{name: {"level": http_level} for name in _HTTP_LOGGERS},
        },
    }


def setup_logging(verbosity: int = 0, *, no_color: bool = False) -> str:
    """Configure logging for one CLI run and return the effective level.

    Environment overrides:
        DEPSENTINEL_LOG_LEVEL  — level name, wins over ``-v`` when valid
        DEPSENTINEL_LOG_FORMAT — console | json (default: console)

    Stdout carries the audit report, so every record goes to stderr.
    """
    level = _resolve_level(verbosity, os.environ.get("DEPSENTINEL_LOG_LEVEL"))
    log_format = os.environ.get("DEPSENTINEL_LOG_FORMAT", "console").strip().lower()
    if log_format not in _FORMATS:
        log_format = "console"
    colors = not no_color and sys.stderr.isatty()
    http_level = "DEBUG" if verbosity >= _HTTP_DEBUG_VERBOSITY else "WARNING"

    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=pre_chain + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    logging.config.dictConfig(
        _dict_config(level, _renderer(log_format, colors=colors), pre_chain, http_level)
    )
    return level
