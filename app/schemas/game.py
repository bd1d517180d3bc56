from pydantic import BaseModel, Field, model_validator
from typing import List, Optional
from datetime import datetime
from enum import Enum

from app.schemas.player import PlayerResponse


class GameStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class GameCreate(BaseModel):
    black_player_id: int = Field(..., description="ID of the player taking black (moves first)")
    white_player_id: int = Field(..., description="ID of the player taking white")

    @model_validator(mode="after")
    def check_distinct_players(self):
        if self.black_player_id == self.white_player_id:
            raise ValueError("black_player_id and white_player_id must differ")
        return self


class Position(BaseModel):
    row: int = Field(..., ge=0, le=7)
    col: int = Field(..., ge=0, le=7)


class MoveLogEntry(BaseModel):
    position: str
    player: str


class GameResponse(BaseModel):
    id: int
    status: GameStatus
    black_player_id: int
    white_player_id: int
    current_turn: str
    winner: Optional[str] = None
    resigned_by: Optional[str] = None
    black_score: int
    white_score: int
    black_rating_change: Optional[int] = None
    white_rating_change: Optional[int] = None
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ChatMessageResponse(BaseModel):
    id: int
    game_id: int
    user_id: int
    message: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class GameState(BaseModel):
    id: int
    status: GameStatus
    winner: Optional[str] = None
    resigned_by: Optional[str] = None
    board: List[List[str]]
    current_turn: str
    black_score: int
    white_score: int
    black_rating_change: Optional[int] = None
    white_rating_change: Optional[int] = None
    valid_moves: List[Position]
    moves: List[MoveLogEntry]
    black_player: PlayerResponse
    white_player: PlayerResponse
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    chat_messages: List[ChatMessageResponse] = []
