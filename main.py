"""
Riverthello game server.

Players open a socket on /ws, AUTH with their player id and JOIN_GAME to
follow a match; moves, resignations and chat are pushed to everyone in the
game. Player records, match setup, history and the leaderboard are plain
HTTP under /api/v1.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.router import include_routers
from app.core.config import settings
from app.core.exception_handlers import register_exception_handlers
from app.core.startup import initialize_database, load_session_directory, shutdown_database

logging.basicConfig(
    level=logging.INFO if not settings.DEBUG else logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables, then index the games left active by the last run."""
    logger.info(f"Starting Riverthello (debug={settings.DEBUG})")
    initialize_database()
    # Moves arriving for these games find their participants and lock
    load_session_directory()

    yield

    logger.info("Riverthello stopping, closing database connections")
    shutdown_database()


app = FastAPI(
    title="Riverthello",
    description="""
    Two-player Othello server.

    * **/ws**: realtime play. AUTH, JOIN_GAME, MAKE_MOVE, SEND_CHAT and RESIGN in;
      GAME_STATE, GAME_UPDATED, TURN_SKIPPED, GAME_OVER and CHAT_MESSAGE out.
    * **/api/v1/players**: register players, stats, game history.
    * **/api/v1/games**: start a match, read its state and chat, abandon it.
    * **/api/v1/leaderboard**: top players by ELO rating.
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan
)

register_exception_handlers(app)
include_routers(app)

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info",
        access_log=True
    )
