import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.core.exceptions import (
    GameException, GameNotFound, InvalidMove, PlayerAlreadyInGame
)
from app.core.game_config import FIRST_TO_MOVE, Color, Winner
from app.models.game import Game
from app.models.move import Move
from app.models.player import Player
from app.services import board_engine
from app.services.chat_service import chat_service_obj
from app.services.player_service import player_service_obj
from app.services.session_directory import session_directory
from app.services.skill_calculator import skill_calculator
from app.services.validators import GameValidator

logger = logging.getLogger(__name__)


class MoveOutcome(str, Enum):
    UPDATED = "updated"      # turn passed to the opponent
    SKIPPED = "skipped"      # opponent has no move, mover goes again
    COMPLETED = "completed"  # neither side can move
    RESIGNED = "resigned"


@dataclass
class GameTransition:
    """Committed result of a move or resignation, ready to broadcast."""
    outcome: MoveOutcome
    state: dict
    last_move: Optional[dict] = None
    skipped_player: Optional[str] = None

    @property
    def is_over(self) -> bool:
        return self.outcome in (MoveOutcome.COMPLETED, MoveOutcome.RESIGNED)


class GameService:
    def __init__(self):
        self.validator = GameValidator()

    def create_game(self, db: Session, black_player_id: int, white_player_id: int) -> Game:
        if black_player_id == white_player_id:
            raise GameException("A player cannot play against themselves")

        for player_id in (black_player_id, white_player_id):
            player_service_obj.get_player(db, player_id)
            if self.get_active_game_for_player(db, player_id) is not None:
                raise PlayerAlreadyInGame(f"Player {player_id} is already in an active game")

        board = board_engine.initial_board()
        game = Game(
            black_player_id=black_player_id,
            white_player_id=white_player_id,
            status="active",
            current_turn=FIRST_TO_MOVE.value,
            started_at=datetime.now(timezone.utc)
        )
        game.set_board(board)
        game.set_valid_moves(board_engine.legal_moves(board, FIRST_TO_MOVE))
        db.add(game)
        db.commit()
        db.refresh(game)

        session_directory.register(game.id, black_player_id, white_player_id)

        logger.info(f"Game {game.id} created: black={black_player_id}, white={white_player_id}")
        return game

    def get_game(self, db: Session, game_id: int) -> Game:
        return self._fetch_game(db, game_id)

    def make_move(self, db: Session, game_id: int, player_id: int,
                  row: int, col: int) -> GameTransition:
        game = self._fetch_game(db, game_id, for_update=True)

        try:
            # Nothing is touched until every precondition holds
            color = self.validator.validate_move(game, player_id, row, col)
            validated_board = game.board

            board = board_engine.apply_move(game.get_board(), row, col, color)
            changes = Game.board_values(board)

            next_turn = board_engine.opponent(color)
            opponent_moves = board_engine.legal_moves(board, next_turn)
            skipped_player = None

            if opponent_moves:
                outcome = MoveOutcome.UPDATED
                changes["current_turn"] = next_turn.value
                changes["valid_moves"] = Game.encode_moves(opponent_moves)
            else:
                mover_moves = board_engine.legal_moves(board, color)
                if mover_moves:
                    outcome = MoveOutcome.SKIPPED
                    skipped_player = next_turn.value
                    changes["current_turn"] = color.value
                    changes["valid_moves"] = Game.encode_moves(mover_moves)
                else:
                    outcome = MoveOutcome.COMPLETED
                    changes["valid_moves"] = Game.encode_moves([])
                    winner = self._winner_by_score(changes["black_score"], changes["white_score"])
                    changes.update(self._settle_result(db, game, winner))

            # Only lands on the board this move was validated against
            if not self._update_if_active(db, game_id, changes, Game.board == validated_board):
                self._reject_stale(db, game_id,
                                   lambda fresh: self.validator.validate_move(fresh, player_id, row, col))
            self._record_move(db, game, row, col, color)
            db.commit()
        except Exception:
            db.rollback()
            raise

        db.refresh(game)
        if outcome == MoveOutcome.COMPLETED:
            session_directory.archive(game.id)
            logger.info(
                f"Game {game_id} completed: winner={game.winner}, "
                f"score {game.black_score}-{game.white_score}"
            )
        elif outcome == MoveOutcome.SKIPPED:
            logger.info(f"Game {game_id}: no valid moves for {skipped_player}, {color.value} goes again")
        else:
            logger.debug(f"Game {game_id}: {color.value} played {board_engine.notation(row, col)}")

        return GameTransition(
            outcome=outcome,
            state=self._serialize_game(db, game),
            last_move={"row": row, "col": col, "player": color.value},
            skipped_player=skipped_player
        )

    def resign(self, db: Session, game_id: int, player_id: int) -> GameTransition:
        game = self._fetch_game(db, game_id, for_update=True)

        try:
            self.validator.validate_active(game)
            color = self.validator.validate_participant(game, player_id)
            winner = Winner(board_engine.opponent(color).value)

            # Stored scores stand as they are; the board is not re-counted
            changes = self._settle_result(db, game, winner, resigned_by=color)
            changes["valid_moves"] = Game.encode_moves([])
            if not self._update_if_active(db, game_id, changes):
                self._reject_stale(db, game_id, self.validator.validate_active)
            db.commit()
        except Exception:
            db.rollback()
            raise

        db.refresh(game)
        session_directory.archive(game.id)
        logger.info(f"Player {player_id} ({color.value}) resigned game {game_id}")

        return GameTransition(outcome=MoveOutcome.RESIGNED, state=self._serialize_game(db, game))

    def abandon_game(self, db: Session, game_id: int) -> Game:
        """Close an active game without a result or rating change."""
        game = self._fetch_game(db, game_id, for_update=True)

        try:
            self.validator.validate_active(game)

            abandoned = self._update_if_active(db, game_id, {
                "status": "abandoned",
                "valid_moves": Game.encode_moves([]),
                "ended_at": datetime.now(timezone.utc)
            })
            if not abandoned:
                self._reject_stale(db, game_id, self.validator.validate_active)
            db.commit()
        except Exception:
            db.rollback()
            raise

        db.refresh(game)

        session_directory.archive(game.id)
        logger.info(f"Game {game_id} abandoned")
        return game

    def get_game_state(self, db: Session, game_id: int, include_chat: bool = False) -> dict:
        game = self._fetch_game(db, game_id)
        return self._serialize_game(db, game, include_chat=include_chat)

    def get_active_game_for_player(self, db: Session, player_id: int) -> Optional[Game]:
        """Active game of a player, using the session directory before the database."""
        game_id = session_directory.active_game_for(player_id)
        if game_id is not None:
            game = db.query(Game).filter(Game.id == game_id).populate_existing().first()
            if game and game.status == "active" and player_id in game.players:
                return game
            session_directory.archive(game_id)

        game = db.query(Game).filter(
            or_(
                Game.black_player_id == player_id,
                Game.white_player_id == player_id
            ),
            Game.status == "active"
        ).first()
        if game:
            session_directory.register(game.id, game.black_player_id, game.white_player_id)
        return game

    def get_game_history(self, db: Session, player_id: int, limit: int = 10) -> List[Game]:
        """Finished or abandoned games of a player, most recent first."""
        return db.query(Game).filter(
            or_(
                Game.black_player_id == player_id,
                Game.white_player_id == player_id
            ),
            Game.status != "active"
        ).order_by(
            func.coalesce(Game.ended_at, Game.started_at).desc(),
            Game.id.desc()
        ).limit(limit).all()

    def ensure_registered(self, db: Session, game_id: int) -> None:
        """Index an active game that the session directory has not seen yet."""
        if session_directory.lookup(game_id) is not None:
            return
        game = db.query(Game).filter(Game.id == game_id).first()
        if game and game.status == "active":
            session_directory.register(game.id, game.black_player_id, game.white_player_id)

    def _fetch_game(self, db: Session, game_id: int, for_update: bool = False) -> Game:
        query = db.query(Game).filter(Game.id == game_id)
        if for_update:
            query = query.with_for_update()
        # Another connection may have committed since this session last looked
        game = query.populate_existing().first()
        if not game:
            raise GameNotFound(f"Game {game_id} not found")
        return game

    def _record_move(self, db: Session, game: Game, row: int, col: int, color: Color) -> Move:
        move_number = db.query(func.count(Move.id)).filter(
            Move.game_id == game.id
        ).scalar() + 1

        # The mover's colour is logged, not the side that moves next
        move = Move(
            game_id=game.id,
            move_number=move_number,
            row=row,
            col=col,
            notation=board_engine.notation(row, col),
            player=color.value
        )
        db.add(move)
        return move

    def _winner_by_score(self, black_score: int, white_score: int) -> Winner:
        if black_score > white_score:
            return Winner.BLACK
        if white_score > black_score:
            return Winner.WHITE
        return Winner.DRAW

    def _update_if_active(self, db: Session, game_id: int, values: dict, *conditions) -> bool:
        """Write values to the game row only while it is still active.

        Returns False when another session has already ended the game or,
        through the extra conditions, changed the state the caller validated.
        """
        updated_rows = db.query(Game).filter(
            Game.id == game_id,
            Game.status == "active",
            *conditions
        ).update(values, synchronize_session=False)
        return updated_rows > 0

    def _reject_stale(self, db: Session, game_id: int, revalidate) -> None:
        """Raise the error the caller would get against the game as now stored."""
        db.rollback()
        logger.warning(f"Game {game_id} changed after it was read, rejecting the write")
        revalidate(self._fetch_game(db, game_id))
        raise InvalidMove(f"Game {game_id} changed while the action was being applied")

    def _settle_result(self, db: Session, game: Game, winner: Winner,
                       resigned_by: Optional[Color] = None) -> dict:
        """Apply ratings and counters, returning the game's completion columns.

        Runs inside the caller's transaction; the caller writes the returned
        values together with the rest of its update.
        """
        black = player_service_obj.get_player(db, game.black_player_id)
        white = player_service_obj.get_player(db, game.white_player_id)

        black_change, white_change = skill_calculator.rating_changes(
            black.rating, white.rating, winner
        )

        player_service_obj.update_rating(db, black, black.rating + black_change)
        player_service_obj.update_rating(db, white, white.rating + white_change)

        player_service_obj.update_stats(db, black, won=winner == Winner.BLACK, tied=winner == Winner.DRAW)
        player_service_obj.update_stats(db, white, won=winner == Winner.WHITE, tied=winner == Winner.DRAW)

        return {
            "status": "completed",
            "winner": winner.value,
            "resigned_by": resigned_by.value if resigned_by else None,
            "black_rating_change": black_change,
            "white_rating_change": white_change,
            "ended_at": datetime.now(timezone.utc)
        }

    def _serialize_game(self, db: Session, game: Game, include_chat: bool = False) -> dict:
        black = player_service_obj.get_player(db, game.black_player_id)
        white = player_service_obj.get_player(db, game.white_player_id)
        moves = db.query(Move).filter(
            Move.game_id == game.id
        ).order_by(Move.move_number).all()

        state = {
            "id": game.id,
            "status": game.status,
            "winner": game.winner,
            "resigned_by": game.resigned_by,
            "board": [list(row) for row in game.get_board()],
            "current_turn": game.current_turn,
            "black_score": game.black_score,
            "white_score": game.white_score,
            "black_rating_change": game.black_rating_change,
            "white_rating_change": game.white_rating_change,
            "valid_moves": [{"row": r, "col": c} for r, c in game.get_valid_moves()],
            "moves": [move.to_log_entry() for move in moves],
            "black_player": serialize_player(black),
            "white_player": serialize_player(white),
            "started_at": game.started_at,
            "ended_at": game.ended_at,
        }
        if include_chat:
            state["chat_messages"] = [
                serialize_chat_message(message)
                for message in chat_service_obj.list_messages_for_game(db, game.id)
            ]
        return state


def serialize_player(player: Player) -> dict:
    return {
        "id": player.id,
        "username": player.username,
        "rating": player.rating,
        "games_played": player.games_played,
        "games_won": player.games_won,
        "games_lost": player.games_lost,
        "games_tied": player.games_tied,
        "created_at": player.created_at,
    }


def serialize_chat_message(message) -> dict:
    return {
        "id": message.id,
        "game_id": message.game_id,
        "user_id": message.user_id,
        "message": message.message,
        "created_at": message.created_at,
    }


game_service_obj = GameService()
