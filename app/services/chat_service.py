"""
Append-only chat log scoped to a single game.
"""
import logging
from typing import List

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import GameNotFound, MalformedMessage
from app.models.chat_message import ChatMessage
from app.models.game import Game

logger = logging.getLogger(__name__)


class ChatService:

    def create_message(self, db: Session, game_id: int, user_id: int, message: str) -> ChatMessage:
        """Store a chat line for a game."""
        content = (message or "").strip()
        if not content:
            raise MalformedMessage("Chat message cannot be empty")
        if len(content) > settings.CHAT_MESSAGE_MAX_LENGTH:
            raise MalformedMessage(
                f"Chat message is longer than {settings.CHAT_MESSAGE_MAX_LENGTH} characters"
            )

        if not db.query(Game.id).filter(Game.id == game_id).first():
            raise GameNotFound(f"Game {game_id} not found")

        chat_message = ChatMessage(game_id=game_id, user_id=user_id, message=content)
        db.add(chat_message)
        db.commit()
        db.refresh(chat_message)

        logger.debug(f"Chat message {chat_message.id} stored for game {game_id}")
        return chat_message

    def list_messages_for_game(self, db: Session, game_id: int) -> List[ChatMessage]:
        """Chat history of a game in creation order."""
        return db.query(ChatMessage).filter(
            ChatMessage.game_id == game_id
        ).order_by(
            ChatMessage.created_at.asc(),
            ChatMessage.id.asc()
        ).all()


chat_service_obj = ChatService()
