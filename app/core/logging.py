"""
Centralized logging configuration.

stdout only: gunicorn / Railway / Render capture it.
"""
import logging
import sys
from typing import Optional

from app.core.config import Settings

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _level(config: Optional[Settings]) -> int:
    if config is None:
        from app.core.config import settings as config
    return getattr(logging, config.LOG_LEVEL.upper(), logging.INFO)


def setup_logging(config: Optional[Settings] = None) -> None:
    """Configure the root logger once at process start."""
    logging.basicConfig(
        level=_level(config),
        format=_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def get_logger(name: str, config: Optional[Settings] = None) -> logging.Logger:
    """Return a module logger with the configured level."""
    logger = logging.getLogger(name)
    logger.setLevel(_level(config))
    return logger
