"""
Logging configuration for iMessage filtering.

Diagnostics go to stderr so that listings printed to stdout stay parseable.
Configured with dictConfig, so calling setup_logging() again reconfigures
cleanly.

Environment Variables:
    LOG_LEVEL: Set log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
               Defaults to INFO if not set or invalid.

Usage:
    from imessage_filter.logger_config import setup_logging
    setup_logging()  # Uses LOG_LEVEL env var, defaults to INFO
"""

import logging
import logging.config
import os
from typing import Optional

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_log_level() -> int:
    """
    Get log level from LOG_LEVEL environment variable.

    Returns:
        Logging level constant, INFO if unset or invalid.
    """
    level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, None)

    if not isinstance(level, int):
        return logging.INFO

    return level


def setup_logging(
    level: Optional[int] = None,
    format_string: Optional[str] = None,
    log_file: Optional[str] = None,
) -> None:
    """
    Configure root logging with a stderr console handler.

    Args:
        level: Logging level. If None, reads from LOG_LEVEL env var (default: INFO).
        format_string: Optional custom format string.
        log_file: Optional file path to also write logs to (with rotation).
    """
    if level is None:
        level = get_log_level()

    config: dict = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": format_string or DEFAULT_FORMAT,
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "standard",
                "stream": "ext://sys.stderr",
            },
        },
        "root": {
            "level": level,
            "handlers": ["console"],
        },
    }

    if log_file:
        config["handlers"]["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": level,
            "formatter": "standard",
            "filename": log_file,
            "maxBytes": 5_242_880,  # 5 MB
            "backupCount": 3,
        }
        config["root"]["handlers"].append("file")

    logging.config.dictConfig(config)
