"""
Leaderboard API endpoints.
"""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_db, leaderboard_limit
from app.schemas import player as player_schemas
from app.services.player_service import player_service_obj

router = APIRouter(
    prefix="/leaderboard",
    tags=["leaderboard"]
)


@router.get("", response_model=List[player_schemas.LeaderboardEntry])
def get_leaderboard(
        limit: int = Depends(leaderboard_limit),
        db: Session = Depends(get_db)
):
    """
    Get the leaderboard showing top players.

    Players are ranked by rating, ties broken by total wins.
    """
    return player_service_obj.get_leaderboard(db, limit=limit)
