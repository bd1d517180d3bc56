import logging
from typing import List

from sqlalchemy.orm import Session

from app.core.exceptions import PlayerNotFound
from app.models.player import Player

logger = logging.getLogger(__name__)


class PlayerService:

    def create_player(self, db: Session, username: str) -> Player:
        """Create a new player."""
        # Check if username already exists
        existing = db.query(Player).filter(Player.username == username).first()
        if existing:
            return existing  # Return existing player instead of error

        player = Player(username=username)
        db.add(player)
        db.commit()
        db.refresh(player)

        logger.info(f"Created player {player.id} with username '{username}'")
        return player

    def get_player(self, db: Session, player_id: int) -> Player:
        player = db.query(Player).filter(
            Player.id == player_id
        ).populate_existing().first()
        if not player:
            raise PlayerNotFound(f"Player {player_id} not found")
        return player

    def update_rating(self, db: Session, player: Player, new_rating: int) -> Player:
        """Set a player's rating. Flushed only; the caller owns the commit."""
        old_rating = player.rating
        player.rating = new_rating
        db.flush()
        logger.info(f"Player {player.id} rating {old_rating} -> {new_rating}")
        return player

    def update_stats(self, db: Session, player: Player, won: bool, tied: bool) -> Player:
        """Count one finished game. Flushed only; the caller owns the commit."""
        player.games_played += 1
        if won:
            player.games_won += 1
        elif tied:
            player.games_tied += 1
        else:
            player.games_lost += 1
        db.flush()
        return player

    def get_player_stats(self, db: Session, player_id: int) -> dict:
        """Get lifetime statistics for a player."""
        player = self.get_player(db, player_id)

        total_games = player.games_played
        win_rate = (player.games_won / total_games * 100) if total_games > 0 else 0.0

        return {
            "player_id": player.id,
            "username": player.username,
            "rating": player.rating,
            "total_games": total_games,
            "wins": player.games_won,
            "losses": player.games_lost,
            "draws": player.games_tied,
            "win_rate": round(win_rate, 2),
        }

    def get_leaderboard(self, db: Session, limit: int = 10) -> List[dict]:
        """Get the top rated players."""
        results = db.query(Player).order_by(
            Player.rating.desc(),
            Player.games_won.desc(),
            Player.id.asc()
        ).limit(limit).all()

        leaderboard = []
        for rank, player in enumerate(results, 1):
            total_games = player.games_played
            win_rate = (player.games_won / total_games * 100) if total_games > 0 else 0.0
            leaderboard.append({
                "rank": rank,
                "player_id": player.id,
                "username": player.username,
                "rating": player.rating,
                "wins": player.games_won,
                "total_games": total_games,
                "win_rate": round(win_rate, 2),
            })

        return leaderboard


player_service_obj = PlayerService()
