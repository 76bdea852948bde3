"""
Module: logger.py
Description: Structured logging configuration for the event client.

Configures structlog for JSON output so delivery diagnostics can be
collected by whatever log pipeline the host application uses.

Key Components:
- JSON output with timestamp and level fields
- configure_logging() for applying a minimum log level
- get_logger() helper function

Dependencies: structlog, logging, datetime
"""

import logging

import structlog
from datetime import datetime, timezone


def _add_timestamp(logger, method_name, event_dict):
    """
    Add ISO 8601 timestamp to log entries.

    Args:
        logger: Logger instance
        method_name: Log method name (info, error, etc.)
        event_dict: Current log event dictionary

    Returns:
        Updated event dictionary with timestamp
    """
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def _add_log_level(logger, method_name, event_dict):
    """Add log level to event dictionary."""
    event_dict["level"] = method_name.upper()
    return event_dict


def configure_logging(level: str = "INFO") -> None:
    """
    Configure structlog processors and the minimum log level.

    Safe to call more than once; the last call wins.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    structlog.configure(
        processors=[
            _add_timestamp,
            _add_log_level,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.WriteLoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
        cache_logger_on_first_use=False,
    )


configure_logging()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Event queued for retry", record="event_1718000000000_ab12cd34.json")
        {"record": "event_1718000000000_ab12cd34.json", "event": "Event queued for retry", "timestamp": "...", "level": "INFO"}
    """
    return structlog.get_logger(name)
