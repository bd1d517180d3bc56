"""
Real-time game channel with WebSocket support.

Tracks which user each connection speaks for and which connections follow
each game, routes client actions to the game service, and fans committed
state changes out to every subscriber of the game.
"""
import json
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Optional, Set

from fastapi import WebSocket
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import AuthRequired, GameException, MalformedMessage, PlayerNotFound
from app.services.chat_service import chat_service_obj
from app.services.game_service import (
    GameTransition, MoveOutcome, game_service_obj, serialize_chat_message, serialize_player
)
from app.services.player_service import player_service_obj
from app.services.session_directory import session_directory
from app.schemas.realtime import (
    AuthMessage, AuthPayload, AuthSuccessPayload, ChatMessagePayload, ErrorPayload,
    GameOverPayload, GamePayload, GameStatePayload, GameUpdatedPayload, JoinGameMessage,
    MakeMoveMessage, MakeMovePayload, MessageType, ResignMessage, SendChatMessage,
    SendChatPayload, TurnSkippedPayload, envelope, parse_inbound
)

logger = logging.getLogger(__name__)


@dataclass
class ClientConnection:
    """Identity and subscriptions of one socket"""
    websocket: WebSocket
    user_id: Optional[int] = None
    games: Set[int] = field(default_factory=set)
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class RealtimeHub:
    """Manage WebSocket connections for running games"""

    def __init__(self):
        self.connections: Dict[WebSocket, ClientConnection] = {}
        self.user_connections: Dict[int, WebSocket] = {}  # user_id -> bound websocket
        self.game_subscribers: Dict[int, Set[WebSocket]] = {}  # game_id -> websockets
        # One outbound channel per game keeps broadcasts in issue order
        self.channel_locks: Dict[int, asyncio.Lock] = {}

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self.connections[websocket] = ClientConnection(websocket=websocket)
        logger.info("New WebSocket client connected")

    def disconnect(self, websocket: WebSocket) -> None:
        """Drop a socket from every table. Contains no await, so it runs as one step."""
        connection = self.connections.pop(websocket, None)
        if connection and connection.user_id is not None:
            if self.user_connections.get(connection.user_id) is websocket:
                del self.user_connections[connection.user_id]

        self._unsubscribe_all(websocket)

        if connection:
            logger.info(f"WebSocket client disconnected (user={connection.user_id})")

    async def handle_message(self, websocket: WebSocket, raw: str, db: Session) -> None:
        """Handle one incoming frame. Every failure is answered, none is raised."""
        message = None
        try:
            message = parse_inbound(raw)

            if isinstance(message, AuthMessage):
                await self._handle_auth(websocket, message.payload, db)
            elif isinstance(message, JoinGameMessage):
                await self._handle_join_game(websocket, message.payload, db)
            elif isinstance(message, MakeMoveMessage):
                await self._handle_make_move(websocket, message.payload, db)
            elif isinstance(message, SendChatMessage):
                await self._handle_send_chat(websocket, message.payload, db)
            elif isinstance(message, ResignMessage):
                await self._handle_resign(websocket, message.payload, db)
            else:
                raise MalformedMessage(f"Unsupported message type: {message.type!r}")

        except GameException as e:
            logger.info(f"Rejected {self._describe(message)} from user {self._user_of(websocket)}: {e}")
            await self._send(self._error_target(websocket, message), self._error(str(e), e.error_code))

        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Database error handling {self._describe(message)}: {e}", exc_info=True)
            await self._send(
                self._error_target(websocket, message),
                self._error(f"Failed to process {self._describe(message)}", "PERSISTENCE_ERROR")
            )

        except Exception as e:
            db.rollback()
            logger.error(f"Unexpected error handling {self._describe(message)}: {e}", exc_info=True)
            await self._send(
                self._error_target(websocket, message),
                self._error("An unexpected error occurred", "INTERNAL_ERROR")
            )

    # --- Handlers ---
    async def _handle_auth(self, websocket: WebSocket, payload: AuthPayload, db: Session):
        if payload.user_id is None:
            raise MalformedMessage("Authentication failed: User ID is required")

        try:
            player_service_obj.get_player(db, payload.user_id)
        except PlayerNotFound as e:
            raise PlayerNotFound("Authentication failed: User not found") from e

        # A socket dropped after a failed send is still open; AUTH re-registers it
        connection = self.connections.setdefault(websocket, ClientConnection(websocket=websocket))
        previous_user = connection.user_id
        if previous_user is not None and previous_user != payload.user_id:
            # Switching identity drops the previous identity's rooms
            if self.user_connections.get(previous_user) is websocket:
                del self.user_connections[previous_user]
            self._unsubscribe_all(websocket)

        superseded = self.user_connections.get(payload.user_id)
        if superseded is not None and superseded is not websocket:
            logger.info(f"User {payload.user_id} re-authenticated on a new connection")

        connection.user_id = payload.user_id
        self.user_connections[payload.user_id] = websocket

        logger.info(f"Connection authenticated as user {payload.user_id}")
        await self._send(websocket, envelope(
            MessageType.AUTH_SUCCESS, AuthSuccessPayload(user_id=payload.user_id)
        ))

    async def _handle_join_game(self, websocket: WebSocket, payload: GamePayload, db: Session):
        user_id = self._require_user(websocket)

        game = game_service_obj.get_game(db, payload.game_id)
        game_service_obj.validator.validate_participant(game, user_id)

        async with self._channel_lock(payload.game_id):
            connection = self.connections.get(websocket)
            # Dropped or re-identified while waiting for the channel
            if connection is None or connection.user_id != user_id:
                return
            state = game_service_obj.get_game_state(db, payload.game_id, include_chat=True)
            self.game_subscribers.setdefault(payload.game_id, set()).add(websocket)
            connection.games.add(payload.game_id)

            await self._send(websocket, envelope(
                MessageType.GAME_STATE,
                GameStatePayload.model_validate(self._snapshot(state))
            ))

        logger.info(f"User {user_id} joined game {payload.game_id}")

    async def _handle_make_move(self, websocket: WebSocket, payload: MakeMovePayload, db: Session):
        user_id = self._require_user(websocket)
        game_service_obj.ensure_registered(db, payload.game_id)

        # One in-flight mutation per game; the broadcast belongs to the same step
        async with session_directory.lock_for(payload.game_id):
            transition = game_service_obj.make_move(
                db, payload.game_id, user_id, payload.row, payload.col
            )
            await self._broadcast_transition(payload.game_id, transition)

    async def _handle_send_chat(self, websocket: WebSocket, payload: SendChatPayload, db: Session):
        user_id = self._require_user(websocket)
        user = player_service_obj.get_player(db, user_id)

        async with self._channel_lock(payload.game_id):
            chat_message = chat_service_obj.create_message(db, payload.game_id, user_id, payload.message)
            await self._broadcast_unlocked(payload.game_id, envelope(
                MessageType.CHAT_MESSAGE,
                ChatMessagePayload.model_validate({
                    "message": serialize_chat_message(chat_message),
                    "user": serialize_player(user),
                })
            ))

    async def _handle_resign(self, websocket: WebSocket, payload: GamePayload, db: Session):
        user_id = self._require_user(websocket)
        game_service_obj.ensure_registered(db, payload.game_id)

        async with session_directory.lock_for(payload.game_id):
            transition = game_service_obj.resign(db, payload.game_id, user_id)
            await self._broadcast_transition(payload.game_id, transition)

    # --- Broadcasting ---
    async def _broadcast_transition(self, game_id: int, transition: GameTransition):
        snapshot = self._snapshot(transition.state)

        if transition.is_over:
            message = envelope(MessageType.GAME_OVER, GameOverPayload.model_validate({
                **snapshot,
                "last_move": transition.last_move,
                "resigned": transition.outcome == MoveOutcome.RESIGNED,
            }))
        elif transition.outcome == MoveOutcome.SKIPPED:
            next_turn = transition.state["current_turn"]
            message = envelope(MessageType.TURN_SKIPPED, TurnSkippedPayload.model_validate({
                **snapshot,
                "last_move": transition.last_move,
                "skipped_player": transition.skipped_player,
                "next_turn": next_turn,
                "message": f"No valid moves for {transition.skipped_player}, {next_turn} goes again",
            }))
        else:
            message = envelope(MessageType.GAME_UPDATED, GameUpdatedPayload.model_validate({
                **snapshot,
                "last_move": transition.last_move,
            }))

        await self.broadcast_to_game(game_id, message)

    async def broadcast_to_game(self, game_id: int, message: Dict):
        """Send message to every connection subscribed to a game"""
        async with self._channel_lock(game_id):
            await self._broadcast_unlocked(game_id, message)

    async def _broadcast_unlocked(self, game_id: int, message: Dict):
        subscribers = list(self.game_subscribers.get(game_id, ()))
        if not subscribers:
            return

        message_text = json.dumps(message)
        disconnected = []

        for websocket in subscribers:
            try:
                await websocket.send_text(message_text)
            except Exception as e:
                logger.warning(f"Failed to send {message['type']} for game {game_id}: {e}")
                disconnected.append(websocket)

        # Clean up dead connections
        for websocket in disconnected:
            self.disconnect(websocket)

    async def _send(self, websocket: Optional[WebSocket], message: Dict):
        """Send message to a single connection"""
        if websocket is None:
            return
        try:
            await websocket.send_text(json.dumps(message))
        except Exception as e:
            logger.warning(f"Failed to send {message['type']} to user {self._user_of(websocket)}: {e}")
            self.disconnect(websocket)

    # --- Helpers ---
    def _require_user(self, websocket: WebSocket) -> int:
        connection = self.connections.get(websocket)
        if connection is None or connection.user_id is None:
            raise AuthRequired("Not authenticated")
        return connection.user_id

    def _user_of(self, websocket: WebSocket) -> Optional[int]:
        connection = self.connections.get(websocket)
        return connection.user_id if connection else None

    def _error_target(self, websocket: WebSocket, message) -> WebSocket:
        """Move rejections go to the mover's bound connection, everything else to the sender."""
        if isinstance(message, MakeMoveMessage):
            user_id = self._user_of(websocket)
            if user_id is not None:
                return self.user_connections.get(user_id, websocket)
        return websocket

    def _unsubscribe_all(self, websocket: WebSocket) -> None:
        for game_id in list(self.game_subscribers):
            subscribers = self.game_subscribers[game_id]
            subscribers.discard(websocket)
            if not subscribers:
                del self.game_subscribers[game_id]
                self.channel_locks.pop(game_id, None)

        connection = self.connections.get(websocket)
        if connection:
            connection.games.clear()

    def _channel_lock(self, game_id: int) -> asyncio.Lock:
        lock = self.channel_locks.get(game_id)
        if lock is None:
            lock = self.channel_locks[game_id] = asyncio.Lock()
        return lock

    @staticmethod
    def _snapshot(state: dict) -> dict:
        return {**state, "game_id": state["id"]}

    @staticmethod
    def _error(message: str, code: str) -> Dict:
        return envelope(MessageType.ERROR, ErrorPayload(message=message, code=code))

    @staticmethod
    def _describe(message) -> str:
        return message.type if message is not None else "message"

    def subscribers_of(self, game_id: int) -> Set[WebSocket]:
        return set(self.game_subscribers.get(game_id, ()))

    def connection_for_user(self, user_id: int) -> Optional[WebSocket]:
        return self.user_connections.get(user_id)


# Global hub instance
realtime_hub = RealtimeHub()
