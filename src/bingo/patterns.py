"""
Win verification

Key idea: every pattern is a rule (strategy) that gets the board and the set of effectively marked
positions, i.e. the player's marks on playable cells plus the free cell(s) of the card.

Whether a pattern is legal for a variant, and in which order patterns are tried, lives in variants.py.
"""

import logging
from typing import Callable, Collection, Iterable, Optional

from src.bingo.board import Board, CellKind
from src.bingo.position import Position
from src.bingo.variants import PATTERN_SHAPES, variant_spec
from src.core.shared_types import GameVariant, Pattern

logger = logging.getLogger(__name__)

PatternRuleFn = Callable[[Board, frozenset[Position]], bool]

# 90-ball: a line counts once 5 of its cells are marked
NINETY_BALL_LINE = 5


def effective_marks(board: Board, marked: Iterable[Position]) -> frozenset[Position]:
    """Marks on cells that exist and can be marked, plus the always-marked free cell(s)"""
    playable = board.playable_positions()
    return frozenset(p for p in marked if p in playable) | board.free_positions()


def _line_complete(board: Board, line: Iterable[Position], marks: frozenset[Position]) -> bool:
    """All cells of the line that exist on the board are marked (blank cells never block a line)"""
    cells = [
        p for p in line if p in board.cells and board.cells[p].kind != CellKind.BLANK
    ]
    return len(cells) > 0 and all(p in marks for p in cells)


# --- RULES ---
def any_row(board: Board, marks: frozenset[Position]) -> bool:
    spec = board.spec
    return any(
        _line_complete(board, (Position(row, col) for col in range(spec.columns)), marks)
        for row in range(spec.rows)
    )


def any_column(board: Board, marks: frozenset[Position]) -> bool:
    spec = board.spec
    return any(
        _line_complete(board, (Position(row, col) for row in range(spec.rows)), marks)
        for col in range(spec.columns)
    )


def any_diagonal(board: Board, marks: frozenset[Position]) -> bool:
    size = min(board.spec.rows, board.spec.columns)
    main = (Position(i, i) for i in range(size))
    anti = (Position(i, size - 1 - i) for i in range(size))
    return _line_complete(board, main, marks) or _line_complete(board, anti, marks)


def four_corners(board: Board, marks: frozenset[Position]) -> bool:
    last_row, last_col = board.spec.rows - 1, board.spec.columns - 1
    corners = (
        Position(0, 0),
        Position(0, last_col),
        Position(last_row, 0),
        Position(last_row, last_col),
    )
    return all(corner in marks for corner in corners)


def full_card(board: Board, marks: frozenset[Position]) -> bool:
    """Every cell that carries a number is marked (full-house on all cards, full-board on coverall)"""
    return board.playable_positions() <= marks


def _row_counts(board: Board, marks: frozenset[Position]) -> list[int]:
    """Marked playable cells per row"""
    playable = board.playable_positions()
    counts = [0] * board.spec.rows
    for position in marks:
        if position in playable:
            counts[position.row] += 1
    return counts


def one_line(board: Board, marks: frozenset[Position]) -> bool:
    return any(count >= NINETY_BALL_LINE for count in _row_counts(board, marks))


def two_lines(board: Board, marks: frozenset[Position]) -> bool:
    return (
        len([count for count in _row_counts(board, marks) if count >= NINETY_BALL_LINE])
        >= 2
    )


def shape_rule(pattern: Pattern) -> PatternRuleFn:
    """Pattern-variant shapes: a fixed set of cells must all be marked, the rest is irrelevant"""
    shape = PATTERN_SHAPES[pattern]

    def _rule(board: Board, marks: frozenset[Position]) -> bool:
        return shape <= marks

    return _rule


PATTERN_RULES: dict[Pattern, PatternRuleFn] = {
    Pattern.ROW: any_row,
    Pattern.COLUMN: any_column,
    Pattern.DIAGONAL: any_diagonal,
    Pattern.FOUR_CORNERS: four_corners,
    Pattern.FULL_HOUSE: full_card,
    Pattern.ONE_LINE: one_line,
    Pattern.TWO_LINES: two_lines,
    Pattern.FULL_BOARD: full_card,
    **{pattern: shape_rule(pattern) for pattern in PATTERN_SHAPES},
}


# --- VERIFIER API ---
def is_winning(
    variant: GameVariant | str,
    pattern: Pattern | str,
    board: Board,
    marked: Collection[Position],
) -> bool:
    """
    Does the marked set satisfy the pattern on this board?
    ---
    A pattern that is not legal for the variant (or a board of another variant) is "not won yet": returns False.
    """
    spec = variant_spec(variant)
    if pattern not in spec.patterns or board.variant != spec.variant:
        logger.debug(
            "Pattern %r is not checked for variant %s (board: %s)",
            pattern,
            spec.variant,
            board.variant,
        )
        return False
    rule = PATTERN_RULES[Pattern(pattern)]
    return rule(board, effective_marks(board, marked))


def find_winning_pattern(
    board: Board,
    marked: Collection[Position],
    target: Optional[Pattern] = None,
) -> Optional[Pattern]:
    """
    First satisfied pattern in the variant's declared order, or None.

    With a target (pattern variant: the shape chosen for this round) only that pattern is checked.
    """
    patterns = (target,) if target is not None else board.spec.patterns
    for pattern in patterns:
        if is_winning(board.variant, pattern, board, marked):
            return pattern
    return None
