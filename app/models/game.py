import json
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.core.database import Base
from app.core.game_config import Color
from app.services import board_engine


class Game(Base):
    __tablename__ = "games"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    black_player_id = Column(Integer, ForeignKey("players.id"), nullable=False, index=True)
    white_player_id = Column(Integer, ForeignKey("players.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="active", index=True)  # active, completed, abandoned
    winner = Column(String(5))  # black, white, draw
    resigned_by = Column(String(5))
    current_turn = Column(String(5), nullable=False, default=Color.BLACK.value)
    board = Column(Text, nullable=False)
    valid_moves = Column(Text, nullable=False, default="[]")
    black_score = Column(Integer, nullable=False, default=2)
    white_score = Column(Integer, nullable=False, default=2)
    black_rating_change = Column(Integer)
    white_rating_change = Column(Integer)
    started_at = Column(DateTime(timezone=True), server_default=func.now())
    ended_at = Column(DateTime(timezone=True))

    moves = relationship("Move", back_populates="game", order_by="Move.move_number")
    chat_messages = relationship("ChatMessage", back_populates="game", order_by="ChatMessage.id")
    black_player = relationship("Player", foreign_keys=[black_player_id])
    white_player = relationship("Player", foreign_keys=[white_player_id])

    @property
    def players(self):
        return [self.black_player_id, self.white_player_id]

    def get_board(self) -> board_engine.Board:
        """Get the game board as an immutable grid."""
        return board_engine.board_from_rows(json.loads(self.board))

    @staticmethod
    def board_values(board_obj) -> dict:
        """Column values for a board: the JSON grid plus both piece counts."""
        black_score, white_score = board_engine.scores(board_obj)
        return {
            "board": json.dumps([list(row) for row in board_obj]),
            "black_score": black_score,
            "white_score": white_score,
        }

    @staticmethod
    def encode_moves(moves) -> str:
        return json.dumps([list(move) for move in sorted(moves)])

    def set_board(self, board_obj) -> None:
        """Set the game board and keep the stored scores in step with it."""
        for column, value in self.board_values(board_obj).items():
            setattr(self, column, value)

    def get_valid_moves(self):
        """Cached legal moves for the side to move, as sorted (row, col) pairs."""
        return [tuple(move) for move in json.loads(self.valid_moves or "[]")]

    def set_valid_moves(self, moves) -> None:
        self.valid_moves = self.encode_moves(moves)

    def color_of(self, player_id: int):
        """Colour played by a participant, None for anyone else."""
        if player_id == self.black_player_id:
            return Color.BLACK
        if player_id == self.white_player_id:
            return Color.WHITE
        return None
