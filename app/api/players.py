"""
Player-related API endpoints.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_db, history_limit
from app.schemas import game as game_schemas
from app.schemas import player as player_schemas
from app.services.game_service import game_service_obj
from app.services.player_service import player_service_obj

router = APIRouter(
    prefix="/players",
    tags=["players"],
    responses={404: {"description": "Player not found"}}
)


@router.post("", response_model=player_schemas.PlayerResponse)
def create_player(
        player: player_schemas.PlayerCreate,
        db: Session = Depends(get_db)
):
    """
    Create a new player.

    Username must be unique. If username already exists,
    returns the existing player instead of creating a duplicate.
    New players start at a rating of 1200.
    """
    return player_service_obj.create_player(db, player.username)


@router.get("/{player_id}", response_model=player_schemas.PlayerResponse)
def get_player(
        player_id: int,
        db: Session = Depends(get_db)
):
    return player_service_obj.get_player(db, player_id)


@router.get("/{player_id}/stats", response_model=player_schemas.PlayerStats)
def get_player_stats(
        player_id: int,
        db: Session = Depends(get_db)
):
    """
    Get lifetime statistics for a player.

    Returns:
    - Current rating
    - Total games played
    - Wins, losses, draws
    - Win rate percentage
    """
    return player_service_obj.get_player_stats(db, player_id)


@router.get("/{player_id}/games", response_model=List[game_schemas.GameResponse])
def get_game_history(
        player_id: int,
        limit: int = Depends(history_limit),
        db: Session = Depends(get_db)
):
    """Finished and abandoned games, most recent first."""
    player_service_obj.get_player(db, player_id)
    return game_service_obj.get_game_history(db, player_id, limit)


@router.get("/{player_id}/active-game", response_model=Optional[game_schemas.GameResponse])
def get_active_game(
        player_id: int,
        db: Session = Depends(get_db)
):
    """The game the player is currently in, or null."""
    player_service_obj.get_player(db, player_id)
    return game_service_obj.get_active_game_for_player(db, player_id)
