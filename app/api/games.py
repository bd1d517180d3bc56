"""
Game-related API endpoints.

Moves, chat and resignation travel over the realtime channel; these routes
start matches and expose their state.
"""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.schemas import game as game_schemas
from app.services.chat_service import chat_service_obj
from app.services.game_service import game_service_obj

router = APIRouter(
    prefix="/games",
    tags=["games"],
    responses={404: {"description": "Game not found"}}
)


@router.post("", response_model=game_schemas.GameResponse)
def create_game(
        game: game_schemas.GameCreate,
        db: Session = Depends(get_db)
):
    """
    Start a match between two players.

    Black moves first. Neither player may already be in an active game.
    """
    return game_service_obj.create_game(db, game.black_player_id, game.white_player_id)


@router.get("/{game_id}", response_model=game_schemas.GameState)
def get_game_state(
        game_id: int,
        db: Session = Depends(get_db)
):
    """
    Get the current state of a game.

    Returns:
    - Board, scores and whose turn it is
    - Legal moves for the side to move
    - Move log in order
    - Result and rating changes once the game is over
    """
    return game_service_obj.get_game_state(db, game_id)


@router.get("/{game_id}/chat", response_model=List[game_schemas.ChatMessageResponse])
def get_game_chat(
        game_id: int,
        db: Session = Depends(get_db)
):
    game_service_obj.get_game(db, game_id)
    return chat_service_obj.list_messages_for_game(db, game_id)


@router.post("/{game_id}/abandon", response_model=game_schemas.GameResponse)
def abandon_game(
        game_id: int,
        db: Session = Depends(get_db)
):
    """Close an active game with no winner and no rating change."""
    return game_service_obj.abandon_game(db, game_id)
