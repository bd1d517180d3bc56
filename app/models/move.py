from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base


class Move(Base):
    __tablename__ = "moves"

    id = Column(Integer, primary_key=True, index=True)
    game_id = Column(Integer, ForeignKey("games.id"), nullable=False, index=True)
    move_number = Column(Integer, nullable=False)
    row = Column(Integer, nullable=False)
    col = Column(Integer, nullable=False)
    notation = Column(String(2), nullable=False)
    player = Column(String(5), nullable=False)  # colour of the mover
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    game = relationship("Game", back_populates="moves")

    # Constraints
    __table_args__ = (
        UniqueConstraint('game_id', 'row', 'col', name='unique_game_position'),
        UniqueConstraint('game_id', 'move_number', name='unique_game_move_number'),
        CheckConstraint('row >= 0 AND row < 8', name='valid_row'),
        CheckConstraint('col >= 0 AND col < 8', name='valid_col'),
    )

    def to_log_entry(self) -> dict:
        return {"position": self.notation, "player": self.player}
