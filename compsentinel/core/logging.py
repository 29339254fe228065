"""Structured logging for compscan: structlog events rendered by stdlib handlers."""

from __future__ import annotations

import logging
import logging.config
import os

import structlog

ENGINE_LOGGER = "compsentinel.engine"

LOG_FORMATS = ("console", "json")


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def _exception_processors(log_format: str) -> list[structlog.types.Processor]:
    # the console renderer prints tracebacks itself
    if log_format == "json":
        return [structlog.processors.format_exc_info]
    return []


def setup_logging(
    level: str | None = None,
    *,
    log_format: str | None = None,
    cache_loggers: bool = True,
) -> None:
    """Configure structlog and stdlib logging for a compscan run.

    Reads from environment variables:
        COMPSENTINEL_LOG_LEVEL       : log level (default: INFO); *level* wins if given
        COMPSENTINEL_ENGINE_LOG_LEVEL: level of the matching engine only
                                       (default: the log level)
        COMPSENTINEL_LOG_FORMAT      : console | json (default: console)

    Output goes to stderr so stdout stays free for scan reports.
    """
    log_level = (level or os.environ.get("COMPSENTINEL_LOG_LEVEL") or "INFO").upper()
    engine_level = (os.environ.get("COMPSENTINEL_ENGINE_LOG_LEVEL") or log_level).upper()
    log_format = (log_format or os.environ.get("COMPSENTINEL_LOG_FORMAT") or "console").lower()
    if log_format not in LOG_FORMATS:
        raise ValueError(f"Unsupported log format: {log_format!r}")

    timestamper = structlog.processors.TimeStamper(fmt="iso", utc=True)
    exception_processors = _exception_processors(log_format)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            timestamper,
            structlog.processors.StackInfoRenderer(),
            *exception_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=cache_loggers,
    )

    # records from plain stdlib loggers only lack the fields structlog adds
    foreign_pre_chain = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        timestamper,
        *exception_processors,
    ]

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "compscan": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "foreign_pre_chain": foreign_pre_chain,
                    "processors": [
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        _renderer(log_format),
                    ],
                },
            },
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "formatter": "compscan",
                },
            },
            "root": {
                "handlers": ["stderr"],
                "level": "WARNING",
            },
            "loggers": {
                "compsentinel": {"level": log_level},
                ENGINE_LOGGER: {"level": engine_level},
            },
        }
    )
