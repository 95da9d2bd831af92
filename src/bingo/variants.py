"""
Static description of every game variant: grid geometry, number ranges and the legal win patterns.

Defined once at import time and never mutated.
"""

from dataclasses import dataclass
from typing import Optional

from src.bingo.position import Position
from src.core.exceptions import UnknownVariantError
from src.core.shared_types import GameVariant, Pattern

NumberBand = tuple[int, int]


def _bands(width: int, count: int) -> tuple[NumberBand, ...]:
    """Equal, consecutive column bands: width 15 gives (1, 15), (16, 30), ..."""
    return tuple((i * width + 1, (i + 1) * width) for i in range(count))


@dataclass(frozen=True)
class VariantSpec:
    variant: GameVariant
    name: str
    max_number: int
    rows: int
    columns: int
    # Per-column number ranges. None means numbers are drawn from the whole range.
    column_bands: Optional[tuple[NumberBand, ...]]
    # Always-marked cell. Carries no number.
    free_cell: Optional[Position]
    # Highlighted centre cell. Purely a display marker, it has to be marked like any other cell.
    center_cell: Optional[Position]
    # Evaluated in this order: the first satisfied pattern is the one reported as the win
    patterns: tuple[Pattern, ...]

    @property
    def cell_count(self) -> int:
        return self.rows * self.columns


GRID_PATTERNS: tuple[Pattern, ...] = (
    Pattern.ROW,
    Pattern.COLUMN,
    Pattern.DIAGONAL,
    Pattern.FOUR_CORNERS,
    Pattern.FULL_HOUSE,
)

SHAPE_PATTERNS: tuple[Pattern, ...] = (
    Pattern.X_PATTERN,
    Pattern.FRAME,
    Pattern.POSTAGE_STAMP,
    Pattern.SMALL_DIAMOND,
)

CENTER_5X5 = Position(2, 2)

VARIANTS: dict[GameVariant, VariantSpec] = {
    GameVariant.BALL_75: VariantSpec(
        variant=GameVariant.BALL_75,
        name="75-ball",
        max_number=75,
        rows=5,
        columns=5,
        column_bands=_bands(15, 5),
        free_cell=CENTER_5X5,
        center_cell=CENTER_5X5,
        patterns=GRID_PATTERNS,
    ),
    GameVariant.BALL_90: VariantSpec(
        variant=GameVariant.BALL_90,
        name="90-ball",
        max_number=90,
        rows=3,
        columns=9,
        column_bands=_bands(10, 9),
        free_cell=None,
        center_cell=Position(1, 4),
        patterns=(Pattern.ONE_LINE, Pattern.TWO_LINES, Pattern.FULL_HOUSE),
    ),
    GameVariant.BALL_30: VariantSpec(
        variant=GameVariant.BALL_30,
        name="30-ball",
        max_number=30,
        rows=3,
        columns=3,
        column_bands=None,
        free_cell=None,
        center_cell=Position.from_index(4, 3),
        patterns=(Pattern.FULL_HOUSE,),
    ),
    GameVariant.BALL_50: VariantSpec(
        variant=GameVariant.BALL_50,
        name="50-ball",
        max_number=50,
        rows=5,
        columns=5,
        column_bands=_bands(10, 5),
        free_cell=CENTER_5X5,
        center_cell=CENTER_5X5,
        patterns=GRID_PATTERNS,
    ),
    GameVariant.PATTERN: VariantSpec(
        variant=GameVariant.PATTERN,
        name="pattern",
        max_number=75,
        rows=5,
        columns=5,
        column_bands=_bands(15, 5),
        free_cell=CENTER_5X5,
        center_cell=CENTER_5X5,
        patterns=SHAPE_PATTERNS,
    ),
    GameVariant.COVERALL: VariantSpec(
        variant=GameVariant.COVERALL,
        name="coverall",
        max_number=90,
        rows=5,
        columns=9,
        column_bands=None,
        free_cell=None,
        center_cell=Position(2, 4),
        patterns=(Pattern.FULL_BOARD,),
    ),
}


def _positions(*cells: tuple[int, int]) -> frozenset[Position]:
    return frozenset(Position(row, col) for row, col in cells)


# Cells that make up each shape of the pattern variant (on the 5x5 grid)
PATTERN_SHAPES: dict[Pattern, frozenset[Position]] = {
    Pattern.X_PATTERN: _positions(
        (0, 0), (0, 4), (1, 1), (1, 3), (2, 2), (3, 1), (3, 3), (4, 0), (4, 4)
    ),
    Pattern.FRAME: frozenset(
        Position(row, col)
        for row in range(5)
        for col in range(5)
        if row in (0, 4) or col in (0, 4)
    ),
    Pattern.POSTAGE_STAMP: _positions(
        (0, 0), (0, 1), (1, 0), (1, 1), (3, 3), (3, 4), (4, 3), (4, 4)
    ),
    Pattern.SMALL_DIAMOND: _positions((1, 2), (2, 1), (2, 2), (2, 3), (3, 2)),
}


def variant_spec(variant: GameVariant | str) -> VariantSpec:
    """Look up a variant by enum member or wire name. Unknown names are a programming error."""
    try:
        return VARIANTS[GameVariant(variant)]
    except (ValueError, KeyError) as exc:
        raise UnknownVariantError(f"Unknown game variant: {variant!r}") from exc
