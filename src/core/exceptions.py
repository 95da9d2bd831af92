"""Custom exceptions shared by all layers"""


class BingoError(Exception):
    """Top-level exception for anything raised by the client on purpose"""


class ConfigError(BingoError):
    """Configuration could not be loaded or holds an invalid value."""


class UnknownVariantError(BingoError):
    """A game variant that is not in the closed set of supported variants.

    Generating a board for it is a programming error, so we fail fast.
    """


class SessionStateError(BingoError):
    """A local action is not allowed in the current phase of the session."""


class RepositoryError(BingoError):
    """The persistence layer could not find or store a record."""


# WebSocket close code for a deliberate, clean shutdown
NORMAL_CLOSURE = 1000


class TransportClosed(BingoError):
    """The socket closed (cleanly or not). Handled inside the connection layer, never surfaced to callers."""

    def __init__(self, code: int | None = None, reason: str = "") -> None:
        super().__init__(f"Connection closed: code={code} reason={reason!r}")
        self.code = code
        self.reason = reason

    @property
    def clean(self) -> bool:
        return self.code == NORMAL_CLOSURE
