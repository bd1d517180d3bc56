import pytest

from app.core.exceptions import IllegalMove
from app.core.game_config import EMPTY, Color
from app.services import board_engine

B, W, E = Color.BLACK.value, Color.WHITE.value, EMPTY


def board_with(pieces):
    rows = [[E] * 8 for _ in range(8)]
    for (row, col), value in pieces.items():
        rows[row][col] = value
    return board_engine.board_from_rows(rows)


class TestBoardEngine:

    def test_initial_board(self):
        board = board_engine.initial_board()
        assert board[3][3] == W and board[4][4] == W
        assert board[3][4] == B and board[4][3] == B
        assert board_engine.scores(board) == (2, 2)
        assert board_engine.empty_count(board) == 60

    def test_initial_legal_moves_for_black(self):
        board = board_engine.initial_board()
        assert board_engine.legal_moves(board, Color.BLACK) == {(2, 3), (3, 2), (4, 5), (5, 4)}

    def test_initial_legal_moves_for_white(self):
        board = board_engine.initial_board()
        assert board_engine.legal_moves(board, Color.WHITE) == {(2, 4), (3, 5), (4, 2), (5, 3)}

    def test_legal_moves_is_a_pure_read(self):
        opening = board_engine.initial_board()
        after = board_engine.apply_move(opening, 2, 3, Color.BLACK)

        for board in (opening, after):
            snapshot = [list(row) for row in board]
            for player in (Color.BLACK, Color.WHITE):
                first = board_engine.legal_moves(board, player)
                assert board_engine.legal_moves(board, player) == first
            assert [list(row) for row in board] == snapshot

        assert board_engine.legal_moves(after, Color.WHITE) == {(2, 2), (2, 4), (4, 2)}

    def test_apply_move_flips_outflanked_piece(self):
        board = board_engine.initial_board()
        after = board_engine.apply_move(board, 2, 3, Color.BLACK)
        assert after[2][3] == B
        assert after[3][3] == B
        assert board_engine.scores(after) == (4, 1)

    def test_apply_move_leaves_input_untouched(self):
        board = board_engine.initial_board()
        board_engine.apply_move(board, 2, 3, Color.BLACK)
        assert board == board_engine.initial_board()

    def test_flip_runs_in_all_directions_from_one_cell(self):
        board = board_with({
            (3, 3): E,
            (3, 4): W, (3, 5): B,
            (4, 4): W, (5, 5): B,
            (4, 3): W, (5, 3): B,
        })
        after = board_engine.apply_move(board, 3, 3, Color.BLACK)
        assert after[3][4] == B and after[4][4] == B and after[4][3] == B
        assert board_engine.scores(after) == (7, 0)

    def test_piece_count_never_exceeds_cells(self):
        board = board_engine.initial_board()
        player = Color.BLACK
        for _ in range(10):
            moves = sorted(board_engine.legal_moves(board, player))
            if not moves:
                break
            board = board_engine.apply_move(board, *moves[0], player)
            black, white = board_engine.scores(board)
            assert black + white + board_engine.empty_count(board) == 64
            player = board_engine.opponent(player)

    def test_illegal_move_on_occupied_cell(self):
        with pytest.raises(IllegalMove):
            board_engine.apply_move(board_engine.initial_board(), 3, 3, Color.BLACK)

    def test_illegal_move_without_flip(self):
        board = board_engine.initial_board()
        assert not board_engine.is_legal_move(board, 0, 0, Color.BLACK)
        with pytest.raises(IllegalMove):
            board_engine.apply_move(board, 0, 0, Color.BLACK)

    def test_off_board_is_never_legal(self):
        board = board_engine.initial_board()
        assert not board_engine.is_legal_move(board, -1, 3, Color.BLACK)
        assert not board_engine.is_legal_move(board, 2, 8, Color.BLACK)

    def test_run_must_end_on_own_piece(self):
        board = board_with({(0, 0): W, (0, 1): W})
        assert board_engine.legal_moves(board, Color.BLACK) == set()

    def test_terminal_board(self):
        assert board_engine.is_terminal(board_with({(0, 0): B, (7, 7): B}))
        assert not board_engine.is_terminal(board_engine.initial_board())

    def test_opponent(self):
        assert board_engine.opponent(Color.BLACK) == Color.WHITE
        assert board_engine.opponent("white") == Color.BLACK

    def test_board_from_rows_rejects_bad_shape(self):
        with pytest.raises(ValueError):
            board_engine.board_from_rows([[E] * 8] * 7)
        with pytest.raises(ValueError):
            board_engine.board_from_rows([["red"] * 8] * 8)

    def test_notation(self):
        assert board_engine.notation(2, 3) == "d3"
        assert board_engine.notation(0, 0) == "a1"
        assert board_engine.notation(7, 7) == "h8"
        assert board_engine.position_from_notation("d3") == (2, 3)
        with pytest.raises(ValueError):
            board_engine.notation(8, 0)
        with pytest.raises(ValueError):
            board_engine.position_from_notation("z9")
