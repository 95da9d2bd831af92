"""Orchestration of the client: what the rendering layer calls, wired to session state, connection and dispatcher."""

import asyncio
import logging
from typing import Optional

from src.api.models import (
    AdminLogin,
    DrawNumber,
    EndGame,
    OutboundMessage,
    PlayerConnect,
    PlayerJoin,
    StartGame,
    WinClaim,
)
from src.bingo.board import Board
from src.bingo.position import Position
from src.bingo.session import DEFAULT_STAKE, GUEST_NAME, SessionState
from src.core.config import ClientConfig
from src.core.exceptions import SessionStateError
from src.core.models import ADMIN_CREDENTIAL
from src.core.shared_types import GameVariant, Pattern, Phase
from src.db.repository import CredentialRepository
from src.services.auto_caller import AutoCaller
from src.services.connection import (
    ConnectionManager,
    Connector,
    ReconnectPolicy,
    SleepFn,
    websocket_connector,
)
from src.services.dispatcher import Dispatcher
from src.services.notifier import LoggingNotifier, Notifier

logger = logging.getLogger(__name__)


class BingoClient:
    """Orchestration of layers for one bingo player (or the hall admin)."""

    def __init__(
        self,
        config: ClientConfig,
        notifier: Optional[Notifier] = None,
        credentials: Optional[CredentialRepository] = None,
        connector: Optional[Connector] = None,
        admin: bool = False,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self.config = config
        self.session = SessionState()
        self.notifier: Notifier = notifier or LoggingNotifier()
        self.admin = admin
        # the admin token is read once, at startup
        stored = credentials.get_credential(ADMIN_CREDENTIAL) if credentials else None
        self._admin_token = stored.token if stored else None

        self.connection = ConnectionManager(
            url=config.server_url,
            on_frame=self._on_frame,
            notifier=self.notifier,
            connector=connector or websocket_connector(config.subprotocol),
            policy=ReconnectPolicy(
                base_delay=config.reconnect_base_delay,
                max_delay=config.reconnect_max_delay,
                max_attempts=config.max_reconnect_attempts,
            ),
            heartbeat_interval=config.heartbeat_interval,
            on_open=self._on_open,
            sleep=sleep,
        )
        self.auto_caller = AutoCaller(self.draw_number, config.auto_call_interval)
        self.dispatcher = Dispatcher(
            session=self.session,
            send=self.connection.send,
            notifier=self.notifier,
            check_for_win=self.claim_if_won,
            on_round_end=self.auto_caller.stop,
            on_admin_lost=self.auto_caller.stop,
            auto_daub=config.auto_daub,
        )

    # --- CONNECTION ---
    def connect(self) -> asyncio.Task[None]:
        return self.connection.start()

    def retry_connection(self) -> asyncio.Task[None]:
        """After the reconnect attempts ran out, the user has to trigger this by hand."""
        return self.connection.reconnect()

    async def disconnect(self) -> None:
        """Explicit disconnect: stop timers, close cleanly and reset the session to IDLE."""
        self.auto_caller.stop()
        await self.connection.close()
        self.session.reset()

    # --- PLAYER ACTIONS ---
    async def join(
        self,
        variant: GameVariant | str,
        stake: int = DEFAULT_STAKE,
        name: str = "",
        phone: str = "",
        board_id: int = 1,
    ) -> None:
        """Register locally (IDLE -> REGISTERED) and tell the server who joined."""
        self.session.register(variant, stake, name, phone, board_id)
        identity = self.session.identity
        assert identity is not None and self.session.variant is not None
        await self._send(
            PlayerJoin(
                player_name=identity.name,
                phone=identity.phone,
                game_type=self.session.variant,
                stake=self.session.stake,
                board_id=identity.board_id,
            )
        )

    async def start_round(self, seed: Optional[int] = None) -> Board:
        """New board, cleared numbers and marks. The admin also tells the server to start the game."""
        board = self.session.start_round(seed=seed)
        if self.session.is_admin:
            await self._send(StartGame(game_type=self.session.variant))
        return board

    async def mark(self, position: Position) -> bool:
        """Toggle a cell. Ignored outside an active round or for cells that are not on the board."""
        changed = self.session.toggle_mark(position)
        if changed:
            await self.claim_if_won()
        return changed

    async def claim_if_won(self) -> Optional[Pattern]:
        """Called after every mark and every called number: claim the first satisfied pattern (once per round)."""
        if not self.config.auto_claim:
            return None
        pattern = self.session.pending_win()
        if pattern is None:
            return None
        await self._claim(pattern)
        return pattern

    async def claim_win(self) -> Optional[Pattern]:
        """The player pressed 'Bingo!'."""
        if self.session.phase != Phase.ACTIVE:
            return None
        if self.session.claimed_pattern is not None:
            return self.session.claimed_pattern
        pattern = self.session.pending_win()
        if pattern is None:
            self.notifier.notify("No winning pattern yet. Keep counting!")
            return None
        await self._claim(pattern)
        return pattern

    # --- ADMIN ACTIONS ---
    async def draw_number(self) -> None:
        self._assert_admin()
        await self._send(DrawNumber())

    def start_auto_call(self) -> None:
        self._assert_admin()
        self.auto_caller.start()

    def stop_auto_call(self) -> None:
        self.auto_caller.stop()

    async def end_game(self) -> None:
        self._assert_admin()
        self.auto_caller.stop()
        await self._send(EndGame())

    # -- Internal helpers --
    async def _on_open(self) -> None:
        """Every (re)connect: authenticate as admin, or announce the player."""
        if self.admin:
            if self._admin_token is None:
                self.notifier.notify("No admin credential stored. Connected as player.")
            else:
                await self._send(AdminLogin(password=self._admin_token))
                return
        identity = self.session.identity
        await self._send(
            PlayerConnect(
                player_name=identity.name if identity else None,
                phone=identity.phone if identity else None,
            )
        )

    async def _on_frame(self, frame: str | bytes) -> None:
        await self.dispatcher.dispatch_frame(frame)

    async def _claim(self, pattern: Pattern) -> None:
        board = self.session.board
        assert board is not None
        amount = self.session.record_claim(pattern)
        identity = self.session.identity
        numbers = sorted(
            number
            for number in (board.number_at(p) for p in self.session.marked)
            if number is not None
        )
        logger.info("Claiming %s for %d", pattern, amount)
        await self._send(
            WinClaim(
                winner_name=identity.name if identity else GUEST_NAME,
                pattern=pattern,
                amount=amount,
                numbers=numbers,
            )
        )

    async def _send(self, message: OutboundMessage) -> bool:
        return await self.connection.send(message)

    def _assert_admin(self) -> None:
        if not self.session.is_admin:
            raise SessionStateError("Only an authenticated admin can call numbers.")
