"""Centralized logging configuration.

This module provides:
- PlainFormatter for readable stderr output (default)
- JSONFormatter for structured logging (LOG_FORMAT=json)

Log messages follow the "[TAG] message" convention; the JSON formatter
splits the tag into its own field.
"""

import json
import logging
import os
import re
import sys
from datetime import datetime, timezone


def redact(value, keep: int = 6) -> str:
    """Short prefix of a secret for log messages (tokens, codes, state values)."""
    if not value:
        return str(value)
    value = str(value)
    if len(value) <= keep:
        return "***"
    return f"{value[:keep]}..."


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def __init__(self, service_name: str = None):
        super().__init__()
        self.service_name = service_name or "oidc-client"

    def format(self, record: logging.LogRecord) -> str:
        # Extract tag from message if present: [TAG] message
        tag = None
        message = record.getMessage()
        tag_match = re.match(r'\[([A-Z_]+)\]\s*(.*)', message)
        if tag_match:
            tag = tag_match.group(1)
            message = tag_match.group(2)

        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "service": self.service_name,
            "level": record.levelname,
            "tag": tag,
            "message": message,
            "module": record.module,
            "extra": {
                "function": record.funcName,
                "line": record.lineno,
            }
        }

        if record.exc_info:
            log_entry["extra"]["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry)


class PlainFormatter(logging.Formatter):
    """Plain text formatter for stderr output (local debugging)."""

    def __init__(self):
        super().__init__(
            fmt='%(asctime)s [%(levelname)s] %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )


def setup_logging(level: str = None, log_format: str = None) -> logging.Logger:
    """Configure root logging.

    Args:
        level: Log level name, defaults to LOG_LEVEL or INFO.
        log_format: "plain" or "json", defaults to LOG_FORMAT or plain.

    Returns:
        Configured root logger.
    """
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_format = (log_format or os.getenv("LOG_FORMAT", "plain")).lower()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(level)
    if log_format == "json":
        stderr_handler.setFormatter(JSONFormatter())
    else:
        stderr_handler.setFormatter(PlainFormatter())
    root_logger.addHandler(stderr_handler)

    # Suppress noisy HTTP client logs
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info(f"[STARTUP] Logging configured: level={level}, format={log_format}")

    return root_logger
