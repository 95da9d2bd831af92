"""Unit tests for src/bingo/session.py"""

import pytest

from src.bingo.board import CellKind
from src.bingo.position import Position
from src.bingo.session import (
    GUEST_NAME,
    RECENT_NUMBERS_SHOWN,
    STAKES,
    SessionState,
    potential_win,
)
from src.core.exceptions import SessionStateError, UnknownVariantError
from src.core.shared_types import GameVariant, Pattern, Phase, RoundOutcome


@pytest.fixture
def session() -> SessionState:
    """Registered player, not playing yet"""
    state = SessionState()
    state.register(GameVariant.BALL_75, stake=100, name="Abebe", phone="0911223344", board_id=7)
    return state


@pytest.fixture
def active(session: SessionState) -> SessionState:
    session.start_round(seed=1)
    return session


# --- REGISTRATION ---
def test_register(session: SessionState) -> None:
    assert session.phase == Phase.REGISTERED
    assert session.variant == GameVariant.BALL_75
    assert session.stake == 100
    assert session.identity is not None
    assert session.identity.name == "Abebe"
    assert session.identity.board_id == 7


def test_register_guest_defaults() -> None:
    state = SessionState()
    state.register("90ball")
    assert state.identity is not None
    assert (state.identity.name, state.identity.phone, state.identity.board_id) == (
        "Guest",
        "0000000000",
        1,
    )
    assert state.stake == STAKES[0]


@pytest.mark.parametrize("stake", [0, 30, 10_000])
def test_register_rejects_stake(stake: int) -> None:
    with pytest.raises(SessionStateError):
        SessionState().register(GameVariant.BALL_75, stake=stake)


@pytest.mark.parametrize("board_id", [0, 101])
def test_register_rejects_board(board_id: int) -> None:
    with pytest.raises(SessionStateError):
        SessionState().register(GameVariant.BALL_75, board_id=board_id)


def test_register_unknown_variant() -> None:
    state = SessionState()
    with pytest.raises(UnknownVariantError):
        state.register("80ball")
    assert state.phase == Phase.IDLE


def test_cannot_register_mid_round(active: SessionState) -> None:
    with pytest.raises(SessionStateError):
        active.register(GameVariant.BALL_90)


# --- ROUNDS ---
def test_start_round_requires_registration() -> None:
    with pytest.raises(SessionStateError):
        SessionState().start_round()


def test_start_round(active: SessionState) -> None:
    assert active.phase == Phase.ACTIVE
    assert active.board is not None
    assert active.board.variant == GameVariant.BALL_75
    assert active.target_pattern is None


def test_start_round_clears_previous_round(active: SessionState) -> None:
    assert active.board is not None
    position = next(iter(active.board.playable_positions()))
    active.toggle_mark(position)
    active.record_called_number(5)
    active.record_called_number(6)
    active.end_round("Someone else")

    active.start_round(seed=2)
    assert active.phase == Phase.ACTIVE
    assert active.marked == set()
    assert active.called_numbers == []
    assert active.current_number is None
    assert len(active.recent_numbers) == 0
    assert active.claimed_pattern is None
    assert active.last_outcome is None


def test_start_round_switches_variant(active: SessionState) -> None:
    board = active.start_round(variant=GameVariant.PATTERN, seed=3)
    assert board.variant == GameVariant.PATTERN
    assert active.target_pattern in (
        Pattern.X_PATTERN,
        Pattern.FRAME,
        Pattern.POSTAGE_STAMP,
        Pattern.SMALL_DIAMOND,
    )


# --- MARKING ---
def test_toggle_mark(active: SessionState) -> None:
    position = Position(0, 0)
    assert active.toggle_mark(position)
    assert position in active.marked
    assert active.toggle_mark(position)
    assert position not in active.marked


@pytest.mark.parametrize("position", [Position(2, 2), Position(5, 0), Position(0, -1)])
def test_toggle_mark_ignores_unplayable(active: SessionState, position: Position) -> None:
    assert not active.toggle_mark(position)
    assert active.marked == set()


def test_toggle_mark_ignores_blank_cell() -> None:
    state = SessionState()
    state.register(GameVariant.BALL_90)
    board = state.start_round(seed=9)
    blank = next(p for p, c in board.cells.items() if c.kind == CellKind.BLANK)
    assert not state.toggle_mark(blank)


def test_mark_ignored_when_not_active(active: SessionState) -> None:
    idle = SessionState()
    assert not idle.toggle_mark(Position(0, 0))

    active.end_round("Someone else")
    assert active.phase == Phase.ROUND_ENDED
    assert not active.toggle_mark(Position(0, 0))
    assert active.marked == set()


def test_mark_number(active: SessionState) -> None:
    assert active.board is not None
    number = active.board.number_at(Position(1, 1))
    assert number is not None
    assert active.mark_number(number)
    assert Position(1, 1) in active.marked
    # auto-daub never unmarks
    assert not active.mark_number(number)
    assert Position(1, 1) in active.marked


def test_mark_number_not_on_card(active: SessionState) -> None:
    assert active.board is not None
    missing = next(n for n in range(1, 76) if n not in active.board.numbers())
    assert not active.mark_number(missing)


# --- CALLED NUMBERS ---
def test_record_called_numbers(active: SessionState) -> None:
    assert active.record_called_number(12, "B-12")
    assert active.record_called_number(47, "G-47")
    assert active.called_numbers == [12, 47]
    assert active.current_number == "G-47"
    assert list(active.recent_numbers) == ["B-12"]


def test_duplicate_called_number(active: SessionState) -> None:
    active.record_called_number(12, "B-12")
    active.record_called_number(47, "G-47")
    assert not active.record_called_number(12, "B-12")
    assert active.called_numbers == [12, 47]
    assert active.current_number == "G-47"
    assert list(active.recent_numbers) == ["B-12"]


def test_recent_numbers_bar_is_bounded(active: SessionState) -> None:
    for number in range(1, 21):
        active.record_called_number(number)
    assert len(active.recent_numbers) == RECENT_NUMBERS_SHOWN
    assert active.recent_numbers[0] == "19"
    assert active.current_number == "20"


# --- SERVER STATE ---
def test_apply_server_state_overwrites(active: SessionState) -> None:
    active.record_called_number(3)
    active.apply_server_state(
        {"called_numbers": [5, 9, 5], "current_number": "O-70", "player_count": 14}
    )
    assert active.called_numbers == [5, 9]
    assert active.current_number == "O-70"
    assert active.player_count == 14
    assert active.phase == Phase.ACTIVE


def test_apply_server_state_missing_keys(active: SessionState) -> None:
    active.record_called_number(3)
    active.apply_server_state({"player_count": 2})
    assert active.called_numbers == [3]
    assert active.stake == 100


def test_server_starts_round(session: SessionState) -> None:
    session.apply_server_state(
        {"game_active": True, "called_numbers": [1, 2], "current_number": "2"}
    )
    assert session.phase == Phase.ACTIVE
    assert session.board is not None
    assert session.called_numbers == [1, 2]
    assert session.current_number == "2"


def test_server_ends_round(active: SessionState) -> None:
    active.apply_server_state({"game_active": False})
    assert active.phase == Phase.ROUND_ENDED


def test_server_state_while_idle() -> None:
    state = SessionState()
    state.apply_server_state({"game_active": True, "player_count": 3})
    assert state.phase == Phase.IDLE
    assert state.player_count == 3


# --- OUTCOME / CLAIMS ---
def test_end_round_won(active: SessionState) -> None:
    assert active.end_round("Abebe") == RoundOutcome.WON
    assert active.phase == Phase.ROUND_ENDED


def test_end_round_lost(active: SessionState) -> None:
    assert active.end_round("Unknown") == RoundOutcome.LOST
    assert active.last_outcome == RoundOutcome.LOST


@pytest.fixture
def guest() -> SessionState:
    state = SessionState()
    state.register(GameVariant.BALL_75)
    state.start_round(seed=1)
    return state


def test_guest_name_alone_is_not_a_win(guest: SessionState) -> None:
    """Another unnamed player won: the shared guest name does not make it ours"""
    assert guest.end_round(GUEST_NAME) == RoundOutcome.LOST


def test_guest_with_claim_wins(guest: SessionState) -> None:
    for col in range(5):
        guest.toggle_mark(Position(0, col))
    guest.record_claim(Pattern.ROW)
    assert guest.end_round(GUEST_NAME) == RoundOutcome.WON


def test_end_round_only_once(active: SessionState) -> None:
    active.end_round("Abebe")
    assert active.end_round("Abebe") is None


def test_claim_once_per_round(active: SessionState) -> None:
    for col in range(5):
        active.toggle_mark(Position(0, col))
    assert active.pending_win() == Pattern.ROW

    amount = active.record_claim(Pattern.ROW)
    assert amount == potential_win(100)
    assert active.total_won == amount
    assert active.pending_win() is None


def test_no_pending_win_after_round(active: SessionState) -> None:
    for col in range(5):
        active.toggle_mark(Position(0, col))
    active.end_round("Someone else")
    assert active.pending_win() is None


@pytest.mark.parametrize(
    "stake, expected",
    [(25, 1746), (100, 6984), (5000, 349200)],
)
def test_potential_win(stake: int, expected: int) -> None:
    assert potential_win(stake) == expected


def test_reset(active: SessionState) -> None:
    active.is_admin = True
    active.toggle_mark(Position(0, 0))
    active.reset()
    assert active.phase == Phase.IDLE
    assert active.identity is None
    assert not active.is_admin
    assert active.board is None
    assert active.marked == set()
