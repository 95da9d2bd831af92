"""
SessionState is the client's in-memory model of the current game.

It is a cache of the server's state: whatever the server pushes overwrites the local values.
Every mutation happens from the single event-handling flow (inbound frames, local input, timers),
so there is no locking here.

Phase machine: IDLE -> REGISTERED -> ACTIVE -> ROUND_ENDED -> (ACTIVE | IDLE)
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from math import floor
from typing import Any, Optional

from src.bingo.board import Board, choose_target_pattern, generate_board, make_rng
from src.bingo.patterns import find_winning_pattern
from src.bingo.position import Position
from src.bingo.variants import variant_spec
from src.core.exceptions import SessionStateError
from src.core.shared_types import GameVariant, Pattern, Phase, RoundOutcome

logger = logging.getLogger(__name__)

STAKES: tuple[int, ...] = (25, 50, 100, 200, 500, 1000, 2000, 5000)
DEFAULT_STAKE = 25
BOARD_IDS = range(1, 101)
RECENT_NUMBERS_SHOWN = 8
GUEST_NAME = "Guest"
GUEST_PHONE = "0000000000"

# Prize formula used by the hall: 80% of a full room of 90 stakes, minus a 3% fee
ROOM_SIZE = 90
PAYOUT_SHARE = 0.8
FEE_FACTOR = 0.97


def potential_win(stake: int) -> int:
    return floor(PAYOUT_SHARE * ROOM_SIZE * stake * FEE_FACTOR)


@dataclass
class PlayerIdentity:
    name: str = GUEST_NAME
    phone: str = GUEST_PHONE
    board_id: int = 1


@dataclass
class SessionState:
    # --- SESSION ---
    phase: Phase = Phase.IDLE
    identity: Optional[PlayerIdentity] = None
    is_admin: bool = False
    variant: Optional[GameVariant] = None
    stake: int = DEFAULT_STAKE
    total_won: int = 0
    player_count: int = 0

    # --- ROUND ---
    board: Optional[Board] = None
    target_pattern: Optional[Pattern] = None
    called_numbers: list[int] = field(default_factory=list)
    marked: set[Position] = field(default_factory=set)
    current_number: Optional[str] = None
    recent_numbers: deque[str] = field(
        default_factory=lambda: deque(maxlen=RECENT_NUMBERS_SHOWN)
    )
    claimed_pattern: Optional[Pattern] = None
    last_outcome: Optional[RoundOutcome] = None

    # --- LOCAL ACTIONS ---
    def register(
        self,
        variant: GameVariant | str,
        stake: int = DEFAULT_STAKE,
        name: str = "",
        phone: str = "",
        board_id: int = 1,
    ) -> None:
        """
        Capture who is playing, which variant and for how much.
        ---
        Incomplete details fall back to the guest defaults, like the hall does at the desk.
        """
        if self.phase == Phase.ACTIVE:
            raise SessionStateError("Cannot register while a round is in progress.")
        if stake not in STAKES:
            raise SessionStateError(
                f"Stake {stake} not offered. Pick one from {', '.join(map(str, STAKES))}."
            )
        if board_id not in BOARD_IDS:
            raise SessionStateError(f"Board number {board_id} out of range 1-100.")

        self.variant = variant_spec(variant).variant
        self.stake = stake
        self.identity = PlayerIdentity(
            name=name or GUEST_NAME, phone=phone or GUEST_PHONE, board_id=board_id
        )
        self._change_phase(Phase.REGISTERED)

    def start_round(
        self,
        variant: Optional[GameVariant | str] = None,
        stake: Optional[int] = None,
        seed: Optional[int] = None,
    ) -> Board:
        """Fresh board, no called numbers, no marks. Allowed from every phase except IDLE."""
        if self.phase == Phase.IDLE:
            raise SessionStateError("Register before starting a round.")

        if variant is not None:
            self.variant = variant_spec(variant).variant
        if stake is not None:
            if stake not in STAKES:
                raise SessionStateError(f"Stake {stake} not offered.")
            self.stake = stake
        assert self.variant is not None

        rng = make_rng(seed)
        self.board = generate_board(self.variant, rng=rng)
        self.target_pattern = (
            choose_target_pattern(rng) if self.variant == GameVariant.PATTERN else None
        )
        self.called_numbers = []
        self.marked = set()
        self.current_number = None
        self.recent_numbers.clear()
        self.claimed_pattern = None
        self.last_outcome = None
        self._change_phase(Phase.ACTIVE)
        logger.info(
            "Round started: %s, stake %d, target %s",
            self.variant,
            self.stake,
            self.target_pattern,
        )
        return self.board

    def toggle_mark(self, position: Position) -> bool:
        """
        Flip a cell between marked / unmarked.

        Ignored (returns False) outside an active round and for positions that are not playable on this board
        (out of range, blank cells, the free cell which is always marked anyway).
        """
        if self.phase != Phase.ACTIVE or self.board is None:
            return False
        if not self.board.is_markable(position):
            logger.debug("Ignoring mark on %s: not a playable cell", position)
            return False

        if position in self.marked:
            self.marked.remove(position)
        else:
            self.marked.add(position)
        return True

    def mark_number(self, number: int) -> bool:
        """Mark the cell carrying this number (auto-daub). Never unmarks."""
        if self.phase != Phase.ACTIVE or self.board is None:
            return False
        position = self.board.position_of(number)
        if position is None or position in self.marked:
            return False
        self.marked.add(position)
        return True

    def reset(self) -> None:
        """Explicit disconnect: back to IDLE, forget the round and who we are."""
        self.phase = Phase.IDLE
        self.identity = None
        self.is_admin = False
        self.variant = None
        self.board = None
        self.target_pattern = None
        self.called_numbers = []
        self.marked = set()
        self.current_number = None
        self.recent_numbers.clear()
        self.claimed_pattern = None
        self.last_outcome = None

    # --- SERVER DRIVEN ---
    def record_called_number(self, number: int, display: Optional[str] = None) -> bool:
        """Append a drawn number. A number that was already called is a no-op (returns False)."""
        if number in self.called_numbers:
            return False
        self.called_numbers.append(number)

        # the previous number moves to the bar of recent numbers
        if self.current_number is not None:
            self.recent_numbers.appendleft(self.current_number)
        self.current_number = display or str(number)
        return True

    def apply_server_state(self, partial: dict[str, Any]) -> None:
        """
        Merge an authoritative snapshot pushed by the server.
        ---
        Known keys: called_numbers, game_active, current_number, player_count, stake.
        Missing keys leave the local value untouched, present keys always overwrite.
        """
        # phase first: a round started by the server clears the round, then the snapshot fills it
        game_active = partial.get("game_active")
        if game_active is True and self.phase in (Phase.REGISTERED, Phase.ROUND_ENDED):
            self.start_round()
        elif game_active is False and self.phase == Phase.ACTIVE:
            self._change_phase(Phase.ROUND_ENDED)

        if partial.get("called_numbers") is not None:
            self.called_numbers = list(dict.fromkeys(partial["called_numbers"]))
        if partial.get("current_number") is not None:
            self.current_number = str(partial["current_number"])
        if partial.get("player_count") is not None:
            self.player_count = int(partial["player_count"])
        if partial.get("stake") is not None:
            self.stake = int(partial["stake"])

    def end_round(self, winner_name: Optional[str] = None) -> Optional[RoundOutcome]:
        """
        Winner announced / game ended. Marking is disabled until the next round starts.
        ---
        The announcement only carries a name. Every unnamed player is a guest, so for guests
        the name counts only together with a claim sent from this client in this round.
        """
        if self.phase != Phase.ACTIVE:
            return None

        is_me = (
            self.identity is not None
            and winner_name is not None
            and winner_name == self.identity.name
            and (self.identity.name != GUEST_NAME or self.claimed_pattern is not None)
        )
        self.last_outcome = RoundOutcome.WON if is_me else RoundOutcome.LOST
        self._change_phase(Phase.ROUND_ENDED)
        return self.last_outcome

    # --- WIN CLAIMS ---
    def pending_win(self) -> Optional[Pattern]:
        """The pattern to claim right now: first satisfied one, once per round, only while the round is active."""
        if (
            self.phase != Phase.ACTIVE
            or self.board is None
            or self.claimed_pattern is not None
        ):
            return None
        return find_winning_pattern(self.board, self.marked, self.target_pattern)

    def record_claim(self, pattern: Pattern) -> int:
        """Remember the claim for this round and book the prize. Returns the claimed amount."""
        self.claimed_pattern = pattern
        amount = potential_win(self.stake)
        self.total_won += amount
        return amount

    # --- INTERNAL ---
    def _change_phase(self, new_phase: Phase) -> None:
        if new_phase != self.phase:
            logger.debug("Session phase: %s -> %s", self.phase, new_phase)
        self.phase = new_phase
