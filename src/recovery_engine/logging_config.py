"""
Logging setup for processes embedding the recovery engine.
"""

import logging
import logging.handlers
from pathlib import Path
from typing import Optional

from .config import LOG_FORMAT, LOG_LEVEL

LOGGER_NAME = "recovery_engine"


def setup_logging(log_dir: Optional[Path] = None, level: str = LOG_LEVEL) -> logging.Logger:
    """Configure the package logger with a rotating file handler and console output."""
    log_dir = log_dir or Path.home() / ".recovery_engine" / "logs"

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Repeated calls must not stack handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(
        LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # File handler with rotation
    file_error: Optional[OSError] = None
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_dir / "recovery_engine.log",
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
        )
        file_handler.setLevel(getattr(logging, level.upper(), logging.INFO))
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
    except OSError as e:
        file_error = e

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if file_error is not None:
        logger.warning(f"Could not create file logger: {file_error}")

    return logger
