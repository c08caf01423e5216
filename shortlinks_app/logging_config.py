"""Logging configuration for the short links service."""

import json
import logging
import sys
from typing import Optional

ROOT_LOGGER_NAME = "shortlinks_app"


class JsonFormatter(logging.Formatter):
    """One JSON object per line; message text is escaped by json.dumps."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    json_format: bool = False,
) -> logging.Logger:
    """Configure the package logger once per app start.

    Handlers are replaced, not added, so building several apps in one
    process (the test suite does) doesn't duplicate output.

    Args:
        level: Level name (DEBUG, INFO, ...); unknown names fall back to INFO
        log_file: Also write to this file when set
        json_format: Emit JSON lines instead of plain text

    Returns:
        The "shortlinks_app" logger
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(numeric_level)
    logger.handlers.clear()

    if json_format:
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger
