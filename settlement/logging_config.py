"""
Structured logging configuration for the settlement layer.

Provides JSON-formatted logs with a trace_id naming the asset or checkpoint
an operation acted on.

Environment Variables:
    PLASMA_LOG_LEVEL: Log level (DEBUG, INFO, WARNING, ERROR) - default: INFO
    PLASMA_LOG_FORMAT: Log format (json, text) - default: json

Usage:
    from settlement.logging_config import setup_logging, get_logger

    setup_logging()
    logger = get_logger(__name__, trace_id="asset-7")
    logger.info("Exit started", extra={"deadline": 1209600})
"""

import logging
import os
import sys
from typing import Optional

from pythonjsonlogger import jsonlogger


class TraceIDFilter(logging.Filter):
    """
    Logging filter that adds trace_id to all log records.

    Ensures all logs have a trace_id field, even if not set via LoggerAdapter.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "trace_id"):
            record.trace_id = "N/A"  # type: ignore
        return True


def setup_logging(level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """
    Configure root logger with structured logging.

    Arguments override the PLASMA_LOG_LEVEL / PLASMA_LOG_FORMAT environment
    variables.
    """
    log_level = (level or os.getenv("PLASMA_LOG_LEVEL", "INFO")).upper()
    fmt = (log_format or os.getenv("PLASMA_LOG_FORMAT", "json")).lower()

    level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    resolved = level_map.get(log_level, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(resolved)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(resolved)
    handler.addFilter(TraceIDFilter())

    if fmt == "json":
        formatter: logging.Formatter = jsonlogger.JsonFormatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s %(trace_id)s",
            rename_fields={
                "asctime": "timestamp",
                "name": "logger",
                "levelname": "level",
            },
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s [trace_id=%(trace_id)s]",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)


class TraceAdapter(logging.LoggerAdapter):
    """LoggerAdapter that keeps call-site extra fields next to trace_id."""

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs


def get_logger(name: str, trace_id: Optional[str] = None) -> logging.LoggerAdapter:
    """
    Get a logger with optional trace_id for correlation.

    Args:
        name: Logger name (typically __name__)
        trace_id: Trace ID, "asset-<id>" or "checkpoint-<root prefix>"

    Example:
        logger = get_logger(__name__, trace_id="asset-7")
        logger.info("Exit finalized")
        # Output (JSON): {"timestamp": "...", "level": "INFO", "message": "Exit finalized", "trace_id": "asset-7"}
    """
    logger = logging.getLogger(name)
    return TraceAdapter(logger, {"trace_id": trace_id or "N/A"})
