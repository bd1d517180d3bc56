"""
Dependency injection for API and WebSocket endpoints.
"""
from typing import Generator

from fastapi import Query

from app.core.config import settings
from app.core.database import SessionLocal


def get_db() -> Generator:
    """
    Database dependency that ensures proper session cleanup.

    A WebSocket connection keeps its session for as long as the socket is open.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def history_limit(
        limit: int = Query(settings.GAME_HISTORY_DEFAULT_LIMIT, ge=1, le=100)
) -> int:
    return limit


def leaderboard_limit(
        limit: int = Query(settings.LEADERBOARD_DEFAULT_LIMIT, ge=1, le=100,
                           description="Number of players to return")
) -> int:
    return limit
