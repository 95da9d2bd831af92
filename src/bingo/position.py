"""
A cell position on a bingo card

(placed in its own module as the variants, board and pattern modules all need to import it)
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, order=True)
class Position:
    row: int
    col: int

    @classmethod
    def from_index(cls, index: int, columns: int) -> Position:
        """Flat cards (30-ball, coverall) number their cells row by row: index 4 on a 3-wide card is (1, 1)"""
        return cls(index // columns, index % columns)

    def to_index(self, columns: int) -> int:
        return self.row * columns + self.col

    def is_within_bounds(self, rows: int, columns: int) -> bool:
        return (0 <= self.row < rows) and (0 <= self.col < columns)
