"""
Pure board rules for Riverthello.

Boards are immutable 8x8 tuples of cell values ("empty", "black", "white").
Every transition returns a new board and leaves its input untouched, so a
board can be shared between a game record and any number of broadcast
payloads without aliasing.
"""
from typing import Iterable, List, Sequence, Set, Tuple

from app.core.exceptions import IllegalMove
from app.core.game_config import (
    BOARD_SIZE, COLUMN_LETTERS, DIRECTIONS, EMPTY, INITIAL_PIECES, Color, is_on_board
)

Board = Tuple[Tuple[str, ...], ...]
Position = Tuple[int, int]

_CELL_VALUES = {EMPTY, Color.BLACK.value, Color.WHITE.value}


def opponent(player) -> Color:
    """The other colour."""
    return Color.WHITE if Color(player) == Color.BLACK else Color.BLACK


def initial_board() -> Board:
    """Empty grid with the four starting pieces in the centre."""
    return tuple(
        tuple(
            INITIAL_PIECES[(row, col)].value if (row, col) in INITIAL_PIECES else EMPTY
            for col in range(BOARD_SIZE)
        )
        for row in range(BOARD_SIZE)
    )


def board_from_rows(rows: Iterable[Sequence[str]]) -> Board:
    """Normalise a stored or decoded board into the immutable representation."""
    board = tuple(tuple(str(cell) for cell in row) for row in rows)
    if len(board) != BOARD_SIZE or any(len(row) != BOARD_SIZE for row in board):
        raise ValueError(f"Board must be {BOARD_SIZE}x{BOARD_SIZE}")
    for row in board:
        for cell in row:
            if cell not in _CELL_VALUES:
                raise ValueError(f"Unknown cell value {cell!r}")
    return board


def _outflanked(board: Board, row: int, col: int, player: str, d_row: int, d_col: int) -> List[Position]:
    """
    Walk one ray from (row, col) and return the opponent pieces it would flip.

    The run must be at least one opponent piece long and end on one of the
    player's own pieces; otherwise nothing is outflanked and the result is
    empty. Shared by legality checks and move application.
    """
    other = opponent(player).value
    run: List[Position] = []
    r, c = row + d_row, col + d_col
    while is_on_board(r, c) and board[r][c] == other:
        run.append((r, c))
        r += d_row
        c += d_col
    if run and is_on_board(r, c) and board[r][c] == player:
        return run
    return []


def _flips(board: Board, row: int, col: int, player: str) -> List[Position]:
    flipped: List[Position] = []
    for d_row, d_col in DIRECTIONS:
        flipped.extend(_outflanked(board, row, col, player, d_row, d_col))
    return flipped


def is_legal_move(board: Board, row: int, col: int, player) -> bool:
    player = Color(player).value
    if not is_on_board(row, col) or board[row][col] != EMPTY:
        return False
    return any(
        _outflanked(board, row, col, player, d_row, d_col)
        for d_row, d_col in DIRECTIONS
    )


def legal_moves(board: Board, player) -> Set[Position]:
    """Every empty cell from which some ray outflanks the opponent."""
    return {
        (row, col)
        for row in range(BOARD_SIZE)
        for col in range(BOARD_SIZE)
        if is_legal_move(board, row, col, player)
    }


def apply_move(board: Board, row: int, col: int, player) -> Board:
    """
    Place a piece for player at (row, col) and flip every outflanked run.

    Raises IllegalMove when the cell is not a legal move for player; callers
    are expected to have checked against legal_moves first.
    """
    player = Color(player).value
    if not is_on_board(row, col) or board[row][col] != EMPTY:
        raise IllegalMove(f"Cell ({row}, {col}) is not a legal move for {player}")

    flipped = _flips(board, row, col, player)
    if not flipped:
        raise IllegalMove(f"Cell ({row}, {col}) is not a legal move for {player}")

    changed = set(flipped)
    changed.add((row, col))
    return tuple(
        tuple(
            player if (r, c) in changed else board[r][c]
            for c in range(BOARD_SIZE)
        )
        for r in range(BOARD_SIZE)
    )


def scores(board: Board) -> Tuple[int, int]:
    """(black count, white count)."""
    black = sum(row.count(Color.BLACK.value) for row in board)
    white = sum(row.count(Color.WHITE.value) for row in board)
    return black, white


def empty_count(board: Board) -> int:
    return sum(row.count(EMPTY) for row in board)


def is_terminal(board: Board) -> bool:
    """True when neither side has a legal move."""
    return not legal_moves(board, Color.BLACK) and not legal_moves(board, Color.WHITE)


def notation(row: int, col: int) -> str:
    """Column letter followed by the 1-indexed row, e.g. (2, 3) -> 'd3'."""
    if not is_on_board(row, col):
        raise ValueError(f"Position ({row}, {col}) is off the board")
    return f"{COLUMN_LETTERS[col]}{row + 1}"


def position_from_notation(text: str) -> Position:
    """Inverse of notation()."""
    text = text.strip().lower()
    if len(text) < 2 or text[0] not in COLUMN_LETTERS or not text[1:].isdigit():
        raise ValueError(f"Cannot interpret {text!r} as a board position")
    row, col = int(text[1:]) - 1, COLUMN_LETTERS.index(text[0])
    if not is_on_board(row, col):
        raise ValueError(f"Position {text!r} is off the board")
    return row, col
