"""The Board holds one player's card for one round: which number sits on which cell.

Generation is a pure function of (variant, randomness source). Every card geometry gets its own
generator (strategy pattern), looked up in BOARD_GENERATORS.
"""

from dataclasses import dataclass
from enum import Enum, auto
from random import Random
from types import MappingProxyType
from typing import Callable, Mapping, Optional, Self

from src.bingo.position import Position
from src.bingo.variants import SHAPE_PATTERNS, VariantSpec, variant_spec
from src.core.shared_types import GameVariant, Pattern

FREE_LABEL = "★"
BLANK_LABEL = "✗"


class CellKind(Enum):
    NUMBER = auto()
    FREE = auto()
    BLANK = auto()


@dataclass(frozen=True)
class Cell:
    kind: CellKind
    number: Optional[int] = None

    @classmethod
    def with_number(cls, number: int) -> Self:
        return cls(CellKind.NUMBER, number)

    @classmethod
    def free(cls) -> Self:
        return cls(CellKind.FREE)

    @classmethod
    def blank(cls) -> Self:
        return cls(CellKind.BLANK)

    @property
    def is_playable(self) -> bool:
        """Only cells carrying a number can be marked by the player"""
        return self.kind == CellKind.NUMBER

    def label(self) -> str:
        if self.kind == CellKind.FREE:
            return FREE_LABEL
        if self.kind == CellKind.BLANK:
            return BLANK_LABEL
        return str(self.number)


@dataclass(frozen=True)
class Board:
    variant: GameVariant
    cells: Mapping[Position, Cell]

    def __post_init__(self) -> None:
        # read-only view over a private copy: the card never changes once dealt
        object.__setattr__(self, "cells", MappingProxyType(dict(self.cells)))

    @property
    def spec(self) -> VariantSpec:
        return variant_spec(self.variant)

    def cell(self, position: Position) -> Cell:
        return self.cells[position]

    def number_at(self, position: Position) -> Optional[int]:
        cell = self.cells.get(position)
        return cell.number if cell is not None else None

    def position_of(self, number: int) -> Optional[Position]:
        """Where a called number sits on this card (if anywhere)"""
        return next(
            (
                position
                for position, cell in self.cells.items()
                if cell.kind == CellKind.NUMBER and cell.number == number
            ),
            None,
        )

    def playable_positions(self) -> frozenset[Position]:
        return frozenset(
            position for position, cell in self.cells.items() if cell.is_playable
        )

    def free_positions(self) -> frozenset[Position]:
        return frozenset(
            position
            for position, cell in self.cells.items()
            if cell.kind == CellKind.FREE
        )

    def numbers(self) -> list[int]:
        return [
            cell.number
            for cell in self.cells.values()
            if cell.kind == CellKind.NUMBER and cell.number is not None
        ]

    def is_markable(self, position: Position) -> bool:
        cell = self.cells.get(position)
        return cell is not None and cell.is_playable

    def to_rows(self) -> list[list[str]]:
        """Labels row by row, what a rendering layer would paint"""
        spec = self.spec
        return [
            [self.cells[Position(row, col)].label() for col in range(spec.columns)]
            for row in range(spec.rows)
        ]


BoardGeneratorFn = Callable[[VariantSpec, Random], dict[Position, Cell]]


# --- GENERATORS ---
def column_band_grid(spec: VariantSpec, rng: Random) -> dict[Position, Cell]:
    """
    75-ball, 50-ball and pattern cards.
    ---
    Every column draws distinct numbers from its own band (1-15, 16-30, ... for 75-ball), sorted top to bottom.
    The centre is the free cell and never gets a number.
    """
    assert spec.column_bands is not None
    cells: dict[Position, Cell] = {}
    for col, (low, high) in enumerate(spec.column_bands):
        column_numbers = sorted(rng.sample(range(low, high + 1), spec.rows))
        for row, number in enumerate(column_numbers):
            position = Position(row, col)
            cells[position] = (
                Cell.free() if position == spec.free_cell else Cell.with_number(number)
            )
    return cells


def ninety_ball_ticket(spec: VariantSpec, rng: Random) -> dict[Position, Cell]:
    """
    90-ball tickets: 3 rows x 9 columns, column bands of width 10.
    ---
    Each column independently draws 1 to 3 numbers from its band and puts them on randomly chosen rows.
    Rows that did not get a number become blank (unplayable) cells.
    """
    assert spec.column_bands is not None
    cells: dict[Position, Cell] = {
        Position(row, col): Cell.blank()
        for row in range(spec.rows)
        for col in range(spec.columns)
    }
    for col, (low, high) in enumerate(spec.column_bands):
        count = rng.randint(1, spec.rows)
        column_numbers = sorted(rng.sample(range(low, high + 1), count))
        rows = sorted(rng.sample(range(spec.rows), count))
        for row, number in zip(rows, column_numbers):
            cells[Position(row, col)] = Cell.with_number(number)
    return cells


def sorted_flat_card(spec: VariantSpec, rng: Random) -> dict[Position, Cell]:
    """30-ball: a sample over the whole range, laid out in ascending order row by row"""
    numbers = sorted(rng.sample(range(1, spec.max_number + 1), spec.cell_count))
    return {
        Position.from_index(index, spec.columns): Cell.with_number(number)
        for index, number in enumerate(numbers)
    }


def shuffled_flat_card(spec: VariantSpec, rng: Random) -> dict[Position, Cell]:
    """Coverall: the first 45 numbers of a full shuffle of 1-90, kept in shuffled order"""
    numbers = list(range(1, spec.max_number + 1))
    rng.shuffle(numbers)
    return {
        Position.from_index(index, spec.columns): Cell.with_number(number)
        for index, number in enumerate(numbers[: spec.cell_count])
    }


BOARD_GENERATORS: dict[GameVariant, BoardGeneratorFn] = {
    GameVariant.BALL_75: column_band_grid,
    GameVariant.BALL_50: column_band_grid,
    GameVariant.PATTERN: column_band_grid,
    GameVariant.BALL_90: ninety_ball_ticket,
    GameVariant.BALL_30: sorted_flat_card,
    GameVariant.COVERALL: shuffled_flat_card,
}


def make_rng(seed: Optional[int] = None) -> Random:
    """Isolated Random instance. Without a seed it is freshly seeded from the OS."""
    return Random(seed)


def generate_board(
    variant: GameVariant | str, seed: Optional[int] = None, rng: Optional[Random] = None
) -> Board:
    """Deterministic for a given seed (or rng). Raises UnknownVariantError for variants outside the closed set."""
    spec = variant_spec(variant)
    rng = rng if rng is not None else make_rng(seed)
    generator = BOARD_GENERATORS[spec.variant]
    return Board(spec.variant, generator(spec, rng))


def choose_target_pattern(rng: Optional[Random] = None) -> Pattern:
    """The pattern variant plays for a single shape per round, picked at random at round start."""
    rng = rng if rng is not None else make_rng()
    return rng.choice(SHAPE_PATTERNS)
