import logging

import pytest

from src.core.logging_utils import (
    CHATTY_LOGGERS,
    HANDLER_MARKER,
    resolve_level,
    setup_logging,
)

LOGGER_NAME = "bingo-client-test"


@pytest.mark.parametrize(
    "verbose_count, configured, expected",
    [
        (0, "ERROR", logging.ERROR),
        (0, "debug", logging.DEBUG),
        (1, "ERROR", logging.INFO),
        (1, "DEBUG", logging.DEBUG),
        (2, "ERROR", logging.DEBUG),
        (5, "WARNING", logging.DEBUG),
    ],
)
def test_resolve_level(verbose_count: int, configured: str, expected: int) -> None:
    assert resolve_level(verbose_count, configured) == expected


def test_setup_sets_level() -> None:
    logger = setup_logging(0, "ERROR", LOGGER_NAME)
    assert logger.level == logging.ERROR
    setup_logging(1, "ERROR", LOGGER_NAME)
    assert logger.level == logging.INFO


def test_handler_added_once() -> None:
    logger = setup_logging(0, logger_name=LOGGER_NAME)
    setup_logging(1, logger_name=LOGGER_NAME)
    marked = [h for h in logger.handlers if getattr(h, HANDLER_MARKER, False)]
    assert len(marked) == 1


def test_chatty_loggers_quiet_unless_very_verbose() -> None:
    setup_logging(0, "DEBUG", LOGGER_NAME)
    assert all(logging.getLogger(name).level == logging.WARNING for name in CHATTY_LOGGERS)

    setup_logging(2, logger_name=LOGGER_NAME)
    assert all(logging.getLogger(name).level == logging.NOTSET for name in CHATTY_LOGGERS)
