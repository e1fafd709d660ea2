"""Utility helpers for configuring logging for scraper runs."""

from __future__ import annotations

import logging
import os
from typing import Optional

from .config import LoggingConfig

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Chatty third-party loggers kept at WARNING unless explicitly debugging
NOISY_LOGGERS = ("selenium", "urllib3", "WDM")


def configure_logging(config: Optional[LoggingConfig] = None) -> None:
    """Configure root logging from the pipeline config.

    ``LOG_LEVEL`` and ``LOG_FORMAT`` environment variables override the
    configured values so a single run can be made verbose without editing
    the YAML.
    """
    config = config or LoggingConfig()
    log_level_name = os.getenv("LOG_LEVEL", config.level).upper()
    log_format = os.getenv("LOG_FORMAT", config.format or DEFAULT_LOG_FORMAT)

    level = getattr(logging, log_level_name, logging.INFO)
    root_logger = logging.getLogger()
    logging.captureWarnings(True)

    if not root_logger.handlers:
        logging.basicConfig(level=level, format=log_format, datefmt="%Y-%m-%d %H:%M:%S")
    else:
        root_logger.setLevel(level)
        for handler in root_logger.handlers:
            handler.setLevel(level)

    if level > logging.DEBUG:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


__all__ = ["configure_logging"]
