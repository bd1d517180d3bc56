"""
WebSocket endpoint for live games.
"""
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.services.realtime_hub import realtime_hub

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])


@router.websocket("/ws")
async def game_websocket(websocket: WebSocket, db: Session = Depends(get_db)):
    """
    One socket per client.

    Send AUTH first, then JOIN_GAME to follow a game. MAKE_MOVE, SEND_CHAT and
    RESIGN act on it; results are pushed to everyone following the game.
    """
    await realtime_hub.connect(websocket)

    try:
        while True:
            data = await websocket.receive_text()
            await realtime_hub.handle_message(websocket, data, db)
    except WebSocketDisconnect:
        logger.debug("WebSocket closed by client")
    finally:
        realtime_hub.disconnect(websocket)
