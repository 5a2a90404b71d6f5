"""
Structured Logging Configuration Module

Ledger events are logged as one JSON object per line. Worker threads log
too, so every entry carries the thread name next to the usual fields.
"""

import logging
import json
from datetime import datetime, timezone
from typing import Optional

from .config import get_config


TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(threadName)s | %(name)s | %(message)s"

# Attributes log_action() attaches to a record
STRUCTURED_FIELDS = ("action", "resource", "extra")


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging"""

    def format(self, record):
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "thread": record.threadName,
            "message": record.getMessage(),
        }
        for name in STRUCTURED_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_entry[name] = value

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def setup_logging(level: Optional[str] = None, logger_name: str = "bank_ledger",
                  log_format: Optional[str] = None) -> logging.Logger:
    """
    Attach a single stream handler to the ledger's logger.

    Args:
        level: Log level name; defaults to LedgerConfig.log_level
        logger_name: Name of the logger
        log_format: "json" or "text"; defaults to LedgerConfig.log_format

    Returns:
        Configured logger instance
    """
    config = get_config()
    level = level or config.log_level
    log_format = log_format or config.log_format

    logger = logging.getLogger(logger_name)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler()
    if log_format == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))

    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.propagate = False
    return logger


def get_logger(name: str = "bank_ledger") -> logging.Logger:
    """Get logger instance"""
    return logging.getLogger(name)


def log_action(logger: logging.Logger, level: str, message: str,
               action: Optional[str] = None, resource: Optional[str] = None,
               extra: Optional[dict] = None):
    """
    Log a ledger event with structured fields.

    The record is attributed to the caller, so "module" names the module
    that performed the action rather than this one.

    Args:
        logger: Logger instance
        level: Level name (info, warning, error, ...)
        message: Human-readable message
        action: What was done, e.g. "confirm_transaction"
        resource: What it was done to, e.g. "transaction:TXN001"
        extra: Additional structured data
    """
    fields = {"action": action, "resource": resource, "extra": extra}
    logger.log(
        getattr(logging, level.upper()),
        message,
        extra={k: v for k, v in fields.items() if v},
        stacklevel=2
    )
