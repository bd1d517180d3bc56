from app.core.exceptions import (
    NotYourTurn, IllegalMove, GameEnded, NotAParticipant
)
from app.core.game_config import Color, is_on_board
from app.models.game import Game


class GameValidator:
    """Validates game moves and state transitions."""

    def validate_active(self, game: Game) -> None:
        if game.status != "active":
            if game.status == "completed":
                raise GameEnded(f"Game {game.id} has already ended")
            else:
                raise GameEnded(f"Game {game.id} is not active")

    def validate_participant(self, game: Game, player_id: int) -> Color:
        """Return the colour the player is playing."""
        color = game.color_of(player_id)
        if color is None:
            raise NotAParticipant(f"Player {player_id} is not a player in game {game.id}")
        return color

    def validate_move(self, game: Game, player_id: int, row: int, col: int) -> Color:
        """
        Validate a move against the stored game, in order: active, participant,
        turn, legality. Returns the mover's colour.
        """
        self.validate_active(game)
        color = self.validate_participant(game, player_id)

        # Check if it's the player's turn
        if game.current_turn != color.value:
            raise NotYourTurn(f"It's not player {player_id}'s turn")

        # Validate against the cached legal moves for the side to move
        if not is_on_board(row, col) or (row, col) not in game.get_valid_moves():
            raise IllegalMove(f"Invalid move: ({row}, {col}) is not a legal move for {color.value}")

        return color
