"""
Logging setup for blobfacade.

Status lines are plain stdlib logging records under the "blobfacade" logger.
setup_logging installs a stdout handler with a text or JSON formatter and
redacts storage secrets.
"""

import json
import logging
import re
import sys
from datetime import datetime, timezone
from typing import Any

from .errors import ConfigurationError

ROOT_LOGGER = "blobfacade"
LOG_FORMATS = ("text", "json")


class SensitiveDataFilter(logging.Filter):
    """Filter to redact storage secrets from log messages."""

    PATTERNS = [
        (re.compile(r"(AccountKey=)[^;]+", re.IGNORECASE), r"\1***REDACTED***"),
        (
            re.compile(r"(SharedAccessSignature=)[^;&]+", re.IGNORECASE),
            r"\1***REDACTED***",
        ),
        (re.compile(r"(sig=)[^;&\s]+", re.IGNORECASE), r"\1***REDACTED***"),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = message
        for pattern, replacement in self.PATTERNS:
            redacted = pattern.sub(replacement, redacted)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "module": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data)


class TextFormatter(logging.Formatter):
    """Human-readable text formatter."""

    def __init__(self):
        fmt = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
        super().__init__(fmt=fmt, datefmt="%Y-%m-%d %H:%M:%S")


def setup_logging(level: str = "INFO", format_type: str = "text") -> logging.Logger:
    """Configure the blobfacade logger and return it."""
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ConfigurationError(f"Unknown log level: {level!r}")
    if format_type not in LOG_FORMATS:
        raise ConfigurationError(
            f"log format must be one of {LOG_FORMATS}, got {format_type!r}"
        )

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(numeric_level)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if format_type == "json" else TextFormatter())
    handler.addFilter(SensitiveDataFilter())
    logger.addHandler(handler)
    return logger
