"""Logging for the command line client: one stderr handler, level from -v flags or BINGO_LOG_LEVEL."""

import logging
import sys
from typing import Optional

HANDLER_MARKER = "_bingo_client_handler"
LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

# log every frame / statement at DEBUG
CHATTY_LOGGERS = ("websockets", "asyncio", "sqlalchemy.engine")


def resolve_level(verbose_count: int, configured: str = "WARNING") -> int:
    """-v raises the configured level to at least INFO, -vv (or more) to DEBUG."""
    level = logging.getLevelNamesMapping()[configured.upper()]
    if verbose_count >= 2:
        return logging.DEBUG
    if verbose_count == 1:
        return min(level, logging.INFO)
    return level


def setup_logging(
    verbose_count: int = 0,
    configured_level: str = "WARNING",
    logger_name: Optional[str] = None,
) -> logging.Logger:
    """
    Configure the root (or a named) logger. Calling it again only changes the level.

    Frame-level chatter from websockets and SQL echo stay at WARNING unless -vv was given.
    """
    level = resolve_level(verbose_count, configured_level)
    logger = logging.getLogger(logger_name or "")
    logger.setLevel(level)

    if not any(getattr(h, HANDLER_MARKER, False) for h in logger.handlers):
        handler = logging.StreamHandler(stream=sys.stderr)
        setattr(handler, HANDLER_MARKER, True)
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%H:%M:%S"))
        logger.addHandler(handler)

    chatty_level = logging.NOTSET if verbose_count >= 2 else logging.WARNING
    for name in CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(chatty_level)

    return logger
