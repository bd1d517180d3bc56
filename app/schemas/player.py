from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class PlayerCreate(BaseModel):
    username: str = Field(..., min_length=1, max_length=50, description="Unique username")


class PlayerResponse(BaseModel):
    id: int
    username: str
    rating: int
    games_played: int
    games_won: int
    games_lost: int
    games_tied: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PlayerStats(BaseModel):
    player_id: int
    username: str
    rating: int
    total_games: int
    wins: int
    losses: int
    draws: int
    win_rate: float


class LeaderboardEntry(BaseModel):
    rank: int
    player_id: int
    username: str
    rating: int
    wins: int
    total_games: int
    win_rate: float
