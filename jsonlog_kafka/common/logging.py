"""
Structured logging configuration using structlog.

Produces JSON logs in production, pretty logs in development.
librdkafka's own log lines go through a stdlib logger whose
threshold follows the client's syslog-style log level.
"""

import logging
import sys

import structlog

LIBRDKAFKA_LOGGER = "jsonlog_kafka.librdkafka"

# syslog severity (librdkafka log_level) -> stdlib logging level
SYSLOG_LEVELS = {
    0: logging.CRITICAL,  # emerg
    1: logging.CRITICAL,  # alert
    2: logging.CRITICAL,  # crit
    3: logging.ERROR,
    4: logging.WARNING,
    5: logging.INFO,  # notice
    6: logging.INFO,
    7: logging.DEBUG,
}


def setup_logging(json_format: bool = True, level: str = "INFO") -> None:
    """
    Configure structured logging for the application.

    Args:
        json_format: If True, output JSON logs. If False, pretty console logs.
        level: Logging level (DEBUG, INFO, WARNING, ERROR).

    Usage:
        from jsonlog_kafka.common.logging import setup_logging, get_logger

        setup_logging(json_format=True)
        logger = get_logger(__name__)
        logger.info("message", key="value")
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper()),
    )

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.ExtraAdder(),
    ]

    if json_format:
        processors = shared_processors + [
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Get a logger instance for a module.

    Args:
        name: Usually __name__ of the calling module.

    Returns:
        Configured structlog logger.
    """
    return structlog.get_logger(name)


def librdkafka_logger() -> logging.Logger:
    """Stdlib logger handed to librdkafka through the 'logger' property."""
    return logging.getLogger(LIBRDKAFKA_LOGGER)


def syslog_to_logging(level: int) -> int:
    """
    Map a librdkafka (syslog) severity to a stdlib logging level.

    Values above 7 are clamped to DEBUG, below 0 to CRITICAL.
    """
    return SYSLOG_LEVELS[min(max(level, 0), 7)]
