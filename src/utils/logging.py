"""
Logging helpers shared by every module.

Usage:
    from src.utils.logging import get_logger

    logger = get_logger(__name__)

Set LOG_FORMAT=json to emit one JSON object per line (for log shipping).
"""
from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Optional

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class JSONFormatter(logging.Formatter):
    """Format log records as single-line JSON documents."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def setup_logger(
    name: str,
    level: Optional[str] = None,
    json_format: Optional[bool] = None,
) -> logging.Logger:
    """
    Configure and return a named logger.

    Calling this twice for the same name returns the same logger without
    attaching a second handler.

    Args:
        name: Logger name (usually __name__)
        level: Level name; defaults to INFO
        json_format: Emit JSON lines; defaults to LOG_FORMAT == "json"
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, (level or "INFO").upper(), logging.INFO))

    if logger.handlers:
        return logger

    if json_format is None:
        json_format = os.getenv("LOG_FORMAT", "text").lower() == "json"

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if json_format else logging.Formatter(DEFAULT_FORMAT))
    logger.addHandler(handler)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a module logger; level follows LOG_LEVEL."""
    return setup_logger(name, level=os.getenv("LOG_LEVEL", "INFO"))
