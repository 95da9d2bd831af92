"""
Type definitions used across layers
"""

from enum import StrEnum


class GameVariant(StrEnum):
    """The closed set of bingo rule sets. Values are the names used on the wire."""

    BALL_75 = "75ball"
    BALL_90 = "90ball"
    BALL_30 = "30ball"
    BALL_50 = "50ball"
    PATTERN = "pattern"
    COVERALL = "coverall"


class Pattern(StrEnum):
    ROW = "row"
    COLUMN = "column"
    DIAGONAL = "diagonal"
    FOUR_CORNERS = "four-corners"
    FULL_HOUSE = "full-house"
    ONE_LINE = "one-line"
    TWO_LINES = "two-lines"
    X_PATTERN = "x-pattern"
    FRAME = "frame"
    POSTAGE_STAMP = "postage-stamp"
    SMALL_DIAMOND = "small-diamond"
    FULL_BOARD = "full-board"


class Phase(StrEnum):
    IDLE = "idle"
    REGISTERED = "registered"
    ACTIVE = "active"
    ROUND_ENDED = "round ended"


class RoundOutcome(StrEnum):
    WON = "won"
    LOST = "lost"
