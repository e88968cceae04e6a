"""
Loguru setup for the review pipeline.

Every module logs through get_logger(name); the bound name shows up in
each record so a run can be followed across fetch, dispatch and
aggregation.
"""

import sys
from typing import Optional

from loguru import logger

from src.config import settings

DEV_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[logger_name]}</cyan> - "
    "<level>{message}</level>"
)

PLAIN_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[logger_name]} - {message}"


def _level() -> str:
    if settings.log_level:
        return settings.log_level.upper()
    return "DEBUG" if settings.debug else "INFO"


def configure_logging() -> None:
    """Colorized output in development, JSON lines everywhere else."""
    logger.remove()
    logger.configure(extra={"logger_name": "app"})

    if settings.environment == "development":
        logger.add(
            sys.stderr,
            format=DEV_FORMAT,
            level=_level(),
            colorize=True,
            backtrace=True,
            diagnose=settings.debug,
        )
    else:
        logger.add(sys.stderr, format=PLAIN_FORMAT, level=_level(), serialize=True)


configure_logging()


def get_logger(name: Optional[str] = None):
    """Get a logger bound to a component name."""
    if name:
        return logger.bind(logger_name=name)
    return logger
