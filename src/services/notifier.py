"""Notification collaborator: the layer that tells the user about connection loss, errors and round outcomes."""

import logging
from typing import Optional, Protocol

from src.core.shared_types import RoundOutcome

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """What the client needs from the user-facing layer"""

    def notify(self, message: str) -> None:
        """Plain informational / error message (server errors, failed login, no win yet)"""
        ...

    def connection_lost(self) -> None:
        """Reconnect attempts are exhausted. The user has to retry by hand."""
        ...

    def round_outcome(
        self, outcome: RoundOutcome, winner_name: str, pattern: str, amount: int
    ) -> None: ...


class LoggingNotifier:
    """Default notifier for headless runs: everything goes to the log."""

    def __init__(self, log: Optional[logging.Logger] = None) -> None:
        self.log = log or logger

    def notify(self, message: str) -> None:
        self.log.warning(message)

    def connection_lost(self) -> None:
        self.log.error("Connection to the game server lost. Retry to reconnect.")

    def round_outcome(
        self, outcome: RoundOutcome, winner_name: str, pattern: str, amount: int
    ) -> None:
        self.log.warning(
            "Round over (%s): %s won with %s for %d", outcome, winner_name, pattern, amount
        )
