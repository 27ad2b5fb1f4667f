"""
Centralized logging configuration with structured logging support.
"""
import json
import logging
import logging.config
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from cbt_assembler.config import Settings, get_settings

# Correlates every log line emitted while assembling one assessment,
# including lines from concurrently running subject pipelines.
request_id_context: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
caller_context: ContextVar[Optional[str]] = ContextVar("caller", default=None)


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for production logging.

    Produces structured log entries with consistent fields for log aggregation.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        log_entry: Dict[str, Any] = {
            "timestamp": timestamp.isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = request_id_context.get()
        if request_id:
            log_entry["request_id"] = request_id
        caller = caller_context.get()
        if caller:
            log_entry["caller"] = caller

        for attr in ("subject", "provider", "model", "error_kind"):
            if hasattr(record, attr):
                log_entry[attr] = getattr(record, attr)

        if record.levelno >= logging.ERROR:
            log_entry["source"] = f"{record.pathname}:{record.lineno}"

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def setup_logging(
    log_level: Optional[str] = None, config: Optional[Settings] = None
) -> None:
    """
    Configure application-wide logging with structured output.

    Args:
        log_level: Override for the configured log level (e.g. "DEBUG")
        config: Settings to read (default: the global settings)
    """
    config = config or get_settings()
    log_level_name = log_level or config.log_level
    level = getattr(logging, log_level_name.upper(), logging.INFO)

    is_production = config.env == "production"

    logging_config: Dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "json": {
                "()": JSONFormatter,
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "json" if is_production else "default",
                "stream": sys.stderr,
            },
        },
        "root": {
            "level": level,
            "handlers": ["console"],
        },
        "loggers": {
            "cbt_assembler": {
                "level": level,
                "handlers": ["console"],
                "propagate": False,
            },
            # SDK clients are chatty at INFO
            "httpx": {
                "level": logging.WARNING,
                "handlers": ["console"],
                "propagate": False,
            },
            "sqlalchemy.engine": {
                "level": logging.WARNING,
                "handlers": ["console"],
                "propagate": False,
            },
        },
    }

    logging.config.dictConfig(logging_config)
