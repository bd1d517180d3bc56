"""
Wire schemas for the realtime game channel.

Every frame is a JSON envelope {"type": <TAG>, "payload": {...}} with
camelCase payload keys. Inbound envelopes form a closed union keyed by the
type tag; anything outside it is reported as a malformed message.
"""
from datetime import datetime
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from app.core.exceptions import MalformedMessage


class MessageType(str, Enum):
    AUTH = "AUTH"
    AUTH_SUCCESS = "AUTH_SUCCESS"
    JOIN_GAME = "JOIN_GAME"
    GAME_STATE = "GAME_STATE"
    MAKE_MOVE = "MAKE_MOVE"
    GAME_UPDATED = "GAME_UPDATED"
    TURN_SKIPPED = "TURN_SKIPPED"
    GAME_OVER = "GAME_OVER"
    SEND_CHAT = "SEND_CHAT"
    CHAT_MESSAGE = "CHAT_MESSAGE"
    RESIGN = "RESIGN"
    ERROR = "ERROR"


class WireModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


# --- INBOUND ---
class AuthPayload(WireModel):
    user_id: Optional[int] = None


class GamePayload(WireModel):
    game_id: int


class MakeMovePayload(GamePayload):
    row: int
    col: int


class SendChatPayload(GamePayload):
    message: str


class AuthMessage(WireModel):
    type: Literal["AUTH"]
    payload: AuthPayload = Field(default_factory=AuthPayload)


class JoinGameMessage(WireModel):
    type: Literal["JOIN_GAME"]
    payload: GamePayload


class MakeMoveMessage(WireModel):
    type: Literal["MAKE_MOVE"]
    payload: MakeMovePayload


class SendChatMessage(WireModel):
    type: Literal["SEND_CHAT"]
    payload: SendChatPayload


class ResignMessage(WireModel):
    type: Literal["RESIGN"]
    payload: GamePayload


InboundMessage = Annotated[
    Union[AuthMessage, JoinGameMessage, MakeMoveMessage, SendChatMessage, ResignMessage],
    Field(discriminator="type")
]

inbound_message_adapter = TypeAdapter(InboundMessage)


def parse_inbound(raw: str) -> InboundMessage:
    """Decode one client frame, raising MalformedMessage for anything unusable."""
    try:
        return inbound_message_adapter.validate_json(raw)
    except ValidationError as exc:
        raise MalformedMessage(_describe_error(exc)) from exc


def _describe_error(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid message format"

    first = errors[0]
    error_type = first.get("type")
    if error_type == "json_invalid":
        return "Invalid JSON message"
    if error_type == "union_tag_invalid":
        tag = (first.get("ctx") or {}).get("tag")
        return f"Unknown message type: {tag!r}"
    if error_type == "union_tag_not_found":
        return "Message type is required"
    if error_type in ("model_type", "model_attributes_type", "dict_type"):
        return "Invalid message format"

    # Drop the union branch name from the location, e.g. ('MAKE_MOVE', 'payload', 'row')
    location = ".".join(str(part) for part in first.get("loc", ())[1:])
    return f"Invalid message payload: {location} {first.get('msg', '')}".strip()


# --- OUTBOUND ---
class WirePlayer(WireModel):
    id: int
    username: str
    rating: int
    games_played: int
    games_won: int
    games_lost: int
    games_tied: int
    created_at: Optional[datetime] = None


class WireChatMessage(WireModel):
    id: int
    game_id: int
    user_id: int
    message: str
    created_at: Optional[datetime] = None


class WirePosition(WireModel):
    row: int
    col: int


class WireLastMove(WirePosition):
    player: str


class WireMoveLogEntry(WireModel):
    position: str
    player: str


class AuthSuccessPayload(WireModel):
    user_id: int
    message: str = "Successfully authenticated"


class ErrorPayload(WireModel):
    message: str
    code: str = "ERROR"


class GameSnapshot(WireModel):
    game_id: int
    board: List[List[str]]
    current_turn: str
    black_score: int
    white_score: int
    black_player: WirePlayer
    white_player: WirePlayer
    valid_moves: List[WirePosition]
    status: str
    winner: Optional[str] = None


class GameStatePayload(GameSnapshot):
    moves: List[WireMoveLogEntry]
    resigned_by: Optional[str] = None
    black_rating_change: Optional[int] = None
    white_rating_change: Optional[int] = None
    chat_messages: List[WireChatMessage] = []


class GameUpdatedPayload(GameSnapshot):
    last_move: WireLastMove


class TurnSkippedPayload(GameSnapshot):
    last_move: WireLastMove
    skipped_player: str
    next_turn: str
    message: str


class GameOverPayload(WireModel):
    game_id: int
    board: List[List[str]]
    status: str
    black_score: int
    white_score: int
    winner: str
    black_rating_change: int
    white_rating_change: int
    black_player: WirePlayer
    white_player: WirePlayer
    last_move: Optional[WireLastMove] = None
    resigned: bool = False
    resigned_by: Optional[str] = None


class ChatMessagePayload(WireModel):
    message: WireChatMessage
    user: WirePlayer


def envelope(message_type: MessageType, payload: BaseModel) -> dict:
    """Outbound frame with camelCase, JSON-ready payload."""
    return {
        "type": MessageType(message_type).value,
        "payload": payload.model_dump(mode="json", by_alias=True),
    }
