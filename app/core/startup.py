"""
Application startup and shutdown logic for the Riverthello server.
"""
import logging
from sqlalchemy import text

from app.core.database import engine, Base, SessionLocal
from app.models.chat_message import ChatMessage  # noqa: F401
from app.models.game import Game
from app.models.move import Move  # noqa: F401
from app.models.player import Player  # noqa: F401
from app.services.session_directory import session_directory

logger = logging.getLogger(__name__)


def initialize_database() -> None:
    """Initialize database tables and warm up connection pool."""
    try:
        # Create database tables
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created/verified")
        
        # Warm up the connection pool
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("Database connection pool initialized")
        
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise


def load_session_directory() -> None:
    """Index every game that was still active when the process last stopped."""
    db = SessionLocal()
    try:
        active_games = db.query(Game).filter(Game.status == "active").all()
        for game in active_games:
            session_directory.register(game.id, game.black_player_id, game.white_player_id)
        logger.info(f"Session directory loaded with {len(active_games)} active games")
    finally:
        db.close()


def shutdown_database() -> None:
    """Clean up database connections."""
    try:
        engine.dispose()
        logger.info("Database connections closed")
    except Exception as e:
        logger.error(f"Error during database shutdown: {e}")
        # Don't re-raise during shutdown
