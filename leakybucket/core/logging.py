"""Structured logging configuration for leakybucket.

Uses Python's standard logging module, with an optional JSON formatter
for production environments.
"""

import json
import logging
import logging.config
import sys
import traceback
from datetime import datetime
from typing import Any, Dict, Optional

from leakybucket.core import config
from leakybucket.core.config import Settings


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging.

    Outputs log records as JSON objects for consumption by log aggregation
    systems. Bucket context fields are promoted to the top level; any other
    extra attributes are nested under "extra".
    """

    # Contextual fields for bucket operations
    CONTEXT_FIELDS = [
        "bucket",        # Bucket name
        "store_key",     # Key in the backing store
        "amount",        # Units requested by an add
        "capacity",      # Bucket capacity
        "remaining",     # Remaining units after the operation
        "command",       # Store command (GET, INCRBY, ...)
    ]

    # LogRecord attributes that are never copied into "extra"
    RESERVED_ATTRS = (
        "name", "msg", "args", "levelname", "levelno", "pathname",
        "filename", "module", "exc_info", "exc_text", "stack_info",
        "lineno", "funcName", "created", "msecs", "relativeCreated",
        "thread", "threadName", "processName", "process", "taskName",
        "message", "asctime", "timestamp", "logger", "level", "source",
    )

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: Dict[str, Any] = {}

        record.message = record.getMessage()

        log_data["timestamp"] = datetime.now().astimezone().isoformat()
        log_data["level"] = record.levelname
        log_data["logger"] = record.name
        log_data["message"] = record.message

        log_data["source"] = {
            "file": record.pathname,
            "line": record.lineno,
            "function": record.funcName,
        }

        for field in self.CONTEXT_FIELDS:
            if hasattr(record, field):
                value = getattr(record, field)
                if value is not None:
                    log_data[field] = value

        for key, value in record.__dict__.items():
            if key in self.RESERVED_ATTRS or key in self.CONTEXT_FIELDS:
                continue
            log_data.setdefault("extra", {})[key] = value

        if record.exc_info and record.exc_info != (None, None, None):
            log_data["exception"] = traceback.format_exception(*record.exc_info)

        return json.dumps(log_data, default=str, ensure_ascii=False)


class ContextFilter(logging.Filter):
    """Logging filter that adds default bucket context fields to records."""

    CONTEXT_DEFAULTS = {
        "bucket": None,
        "store_key": None,
        "amount": None,
        "capacity": None,
        "remaining": None,
        "command": None,
    }

    def filter(self, record: logging.LogRecord) -> bool:
        for field, default in self.CONTEXT_DEFAULTS.items():
            if not hasattr(record, field):
                setattr(record, field, default)
        return True


def get_logging_config(settings: Optional[Settings] = None) -> Dict[str, Any]:
    """Get logging configuration dictionary.

    Args:
        settings: Settings to read log_format and log_level from; defaults
            to the module-level settings

    Returns:
        Logging configuration dict compatible with logging.config.dictConfig
    """
    if settings is None:
        settings = config.settings

    log_format = settings.log_format.lower()
    log_level = settings.log_level.upper()

    formatters = {
        "standard": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        },
        "structured": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s - bucket=%(bucket)s - amount=%(amount)s - remaining=%(remaining)s"
        },
    }

    if log_format == "json":
        formatters["json"] = {
            "()": "leakybucket.core.logging.JSONFormatter",
        }
        default_formatter = "json"
    else:
        default_formatter = "structured" if log_format == "structured" else "standard"

    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "level": log_level,
            "formatter": default_formatter,
            "stream": sys.stdout,
            "filters": ["context"],
        },
        "error_console": {
            "class": "logging.StreamHandler",
            "level": "ERROR",
            "formatter": default_formatter,
            "stream": sys.stderr,
            "filters": ["context"],
        },
    }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "filters": {
            "context": {
                "()": "leakybucket.core.logging.ContextFilter",
            },
        },
        "handlers": handlers,
        "loggers": {
            "leakybucket": {
                "level": log_level,
                "handlers": ["console", "error_console"],
                "propagate": False,
            },
        },
        "root": {
            "level": log_level,
            "handlers": ["console"],
        },
    }


def setup_logging(settings: Optional[Settings] = None) -> None:
    """Configure logging for applications embedding leakybucket."""
    logging.config.dictConfig(get_logging_config(settings))

    # Reduce noise from the redis client
    logging.getLogger("redis").setLevel(logging.WARNING)


def get_logger(name: str = "leakybucket") -> logging.Logger:
    return logging.getLogger(name)


def get_log_context(
    bucket: Optional[str] = None,
    amount: Optional[int] = None,
    capacity: Optional[int] = None,
    remaining: Optional[int] = None,
    **extra
) -> Dict[str, Any]:
    """Create a log context dictionary for use with the extra parameter.

    None values are dropped so they do not shadow ContextFilter defaults.

    Example:
        >>> logger.debug(
        ...     "Bucket add accepted",
        ...     extra=get_log_context(bucket="api:alice", amount=1, remaining=9)
        ... )
    """
    context = {
        "bucket": bucket,
        "amount": amount,
        "capacity": capacity,
        "remaining": remaining,
    }
    context.update(extra)
    return {k: v for k, v in context.items() if v is not None}
