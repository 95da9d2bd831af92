"""Routes inbound server messages to SessionState mutations, and triggers the win check after new numbers."""

import logging
from typing import Awaitable, Callable, Optional, get_args

from src.api.models import (
    GameState,
    InboundMessage,
    LoginFailed,
    LoginSuccess,
    NumberCalled,
    OutboundMessage,
    Ping,
    PlayerCount,
    Pong,
    ServerError,
    WinnerAnnounced,
    parse_frame,
)
from src.bingo.session import SessionState
from src.core.shared_types import Pattern, Phase
from src.services.notifier import Notifier

logger = logging.getLogger(__name__)

SendFn = Callable[[OutboundMessage], Awaitable[bool]]
WinCheckFn = Callable[[], Awaitable[Optional[Pattern]]]
Handler = Callable[..., Awaitable[None]]


def inbound_message_types() -> set[type]:
    """Every model in the InboundMessage union"""
    union = get_args(InboundMessage)[0]
    return set(get_args(union))


class Dispatcher:
    def __init__(
        self,
        session: SessionState,
        send: SendFn,
        notifier: Notifier,
        check_for_win: WinCheckFn,
        on_round_end: Optional[Callable[[], None]] = None,
        on_admin_lost: Optional[Callable[[], None]] = None,
        auto_daub: bool = False,
    ) -> None:
        self.session = session
        self.auto_daub = auto_daub
        self._send = send
        self._notifier = notifier
        self._check_for_win = check_for_win
        self._on_round_end = on_round_end
        self._on_admin_lost = on_admin_lost

        self._handlers: dict[type, Handler] = {
            LoginSuccess: self._login_success,
            LoginFailed: self._login_failed,
            NumberCalled: self._number_called,
            GameState: self._game_state,
            PlayerCount: self._player_count,
            WinnerAnnounced: self._winner_announced,
            ServerError: self._server_error,
            Ping: self._ping,
        }
        missing = inbound_message_types() - set(self._handlers)
        if missing:
            raise TypeError(
                f"No handler for: {', '.join(sorted(t.__name__ for t in missing))}"
            )

    async def dispatch_frame(self, frame: str | bytes) -> None:
        """Entry point for the connection: malformed or unknown frames are dropped, the connection stays up."""
        message = parse_frame(frame)
        if message is None:
            return
        await self.dispatch(message)

    async def dispatch(self, message: InboundMessage) -> None:
        logger.debug("Received %s", message.type)
        handler = self._handlers[type(message)]
        await handler(message)

    # --- HANDLERS ---
    async def _login_success(self, message: LoginSuccess) -> None:
        self.session.is_admin = True
        self._notifier.notify(message.message or "Welcome, admin!")

    async def _login_failed(self, message: LoginFailed) -> None:
        self.session.is_admin = False
        self._notifier.notify(message.message or "Admin login failed.")
        if self._on_admin_lost is not None:
            self._on_admin_lost()

    async def _number_called(self, message: NumberCalled) -> None:
        if not self.session.record_called_number(message.number, message.display):
            return
        if self.auto_daub:
            self.session.mark_number(message.number)
        await self._check_for_win()

    async def _game_state(self, message: GameState) -> None:
        was_active = self.session.phase == Phase.ACTIVE
        self.session.apply_server_state(message.model_dump(exclude={"type"}))
        if was_active and self.session.phase == Phase.ROUND_ENDED:
            self._round_ended()
        await self._check_for_win()

    async def _player_count(self, message: PlayerCount) -> None:
        self.session.player_count = message.count

    async def _winner_announced(self, message: WinnerAnnounced) -> None:
        outcome = self.session.end_round(message.winner_name)
        self._round_ended()
        if outcome is None:
            return
        self._notifier.round_outcome(
            outcome, message.winner_name, message.pattern, message.amount
        )

    async def _server_error(self, message: ServerError) -> None:
        self._notifier.notify(message.message)

    async def _ping(self, message: Ping) -> None:
        await self._send(Pong())

    def _round_ended(self) -> None:
        if self._on_round_end is not None:
            self._on_round_end()
