"""Centralized logging configuration."""

import logging
from typing import Dict, Optional

from atmosphere.config import LOG_LEVEL

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Minimum level per library logger. None follows the service level.
# httpx logs one line per provider request and geopy one per lookup,
# three of each per snapshot, so they only show up at DEBUG.
LIBRARY_LOGGERS: Dict[str, Optional[int]] = {
    "uvicorn": None,
    "uvicorn.access": None,
    "uvicorn.error": None,
    "fastapi": None,
    "httpx": logging.WARNING,
    "geopy": logging.WARNING,
}


def _resolve_level(level: str) -> int:
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        return logging.INFO
    return log_level


def _stream_handler(formatter: logging.Formatter) -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    return handler


def configure_logging(level: str = LOG_LEVEL) -> int:
    """
    Configure one log format for the service and the libraries it calls.

    Library loggers get a dedicated handler and stop propagating, so
    uvicorn lines are not printed twice.

    Args:
        level: Level name such as "INFO" or "debug"; unknown names fall back to INFO

    Returns:
        The numeric level applied to the root logger
    """
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    log_level = _resolve_level(level)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    root_logger.addHandler(_stream_handler(formatter))

    for logger_name, floor in LIBRARY_LOGGERS.items():
        logger = logging.getLogger(logger_name)
        logger.setLevel(log_level if floor is None or log_level <= logging.DEBUG else max(log_level, floor))
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
        logger.propagate = False
        logger.addHandler(_stream_handler(formatter))

    return log_level
