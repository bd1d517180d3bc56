"""
Configuration constants for the Riverthello game engine.
"""
from enum import Enum


class Color(str, Enum):
    BLACK = "black"
    WHITE = "white"


class Winner(str, Enum):
    BLACK = "black"
    WHITE = "white"
    DRAW = "draw"


EMPTY = "empty"

# Board geometry
BOARD_SIZE = 8
COLUMN_LETTERS = "abcdefgh"

# (row delta, col delta) for N, NE, E, SE, S, SW, W, NW
DIRECTIONS = (
    (-1, 0),
    (-1, 1),
    (0, 1),
    (1, 1),
    (1, 0),
    (1, -1),
    (0, -1),
    (-1, -1),
)

# Starting pieces, black moves first
INITIAL_PIECES = {
    (3, 3): Color.WHITE,
    (3, 4): Color.BLACK,
    (4, 3): Color.BLACK,
    (4, 4): Color.WHITE,
}
FIRST_TO_MOVE = Color.BLACK

# Rating system
INITIAL_RATING = 1200
RATING_K_FACTOR = 32
RATING_SCALE = 400.0


def is_on_board(row: int, col: int) -> bool:
    """Check if a position lies inside the grid."""
    return 0 <= row < BOARD_SIZE and 0 <= col < BOARD_SIZE
