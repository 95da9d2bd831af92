import logging

import pytest

from src.core.shared_types import RoundOutcome
from src.services.notifier import LoggingNotifier


def test_logging_notifier(caplog: pytest.LogCaptureFixture) -> None:
    notifier = LoggingNotifier()
    with caplog.at_level(logging.WARNING, logger="src.services.notifier"):
        notifier.notify("Room full")
        notifier.connection_lost()
        notifier.round_outcome(RoundOutcome.WON, "Abebe", "row", 6984)

    assert [record.levelno for record in caplog.records] == [
        logging.WARNING,
        logging.ERROR,
        logging.WARNING,
    ]
    assert caplog.records[0].getMessage() == "Room full"
    assert "Abebe won with row for 6984" in caplog.records[2].getMessage()
