"""
Process-wide index of in-progress games.

The database stays the source of truth for game state; the directory only
answers "which game is this player in" and hands out the per-game lock that
serialises every mutation of one game.
"""
import asyncio
import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class GameEntry:
    """Participants and mutation lock of one active game"""
    game_id: int
    black_player_id: int
    white_player_id: int
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    @property
    def players(self) -> List[int]:
        return [self.black_player_id, self.white_player_id]


class SessionDirectory:
    """Registry of active games keyed by game id and by player id"""

    def __init__(self):
        self._games: Dict[int, GameEntry] = {}
        self._player_games: Dict[int, int] = {}  # player_id -> game_id
        # Guards the tables; sync routes run in the threadpool
        self._mutex = threading.Lock()

    def register(self, game_id: int, black_player_id: int, white_player_id: int) -> GameEntry:
        """Index an active game. Registering a known game keeps its lock."""
        with self._mutex:
            entry = self._games.get(game_id)
            if entry is None:
                entry = GameEntry(game_id, black_player_id, white_player_id)
                self._games[game_id] = entry
            self._player_games[black_player_id] = game_id
            self._player_games[white_player_id] = game_id

        logger.debug(f"Game {game_id} registered in session directory")
        return entry

    def lookup(self, game_id: int) -> Optional[GameEntry]:
        with self._mutex:
            return self._games.get(game_id)

    def active_game_for(self, player_id: int) -> Optional[int]:
        with self._mutex:
            return self._player_games.get(player_id)

    def lock_for(self, game_id: int) -> asyncio.Lock:
        """
        Exclusive lock for mutating one game.

        Only active games are indexed. Anything else cannot be mutated, so it
        gets a fresh lock that nobody else shares.
        """
        with self._mutex:
            entry = self._games.get(game_id)
        if entry is None:
            return asyncio.Lock()
        return entry.lock

    def archive(self, game_id: int) -> None:
        """Forget a game that has left the active state."""
        with self._mutex:
            entry = self._games.pop(game_id, None)
            if entry is None:
                return
            for player_id in entry.players:
                if self._player_games.get(player_id) == game_id:
                    del self._player_games[player_id]

        logger.info(f"Game {game_id} archived from session directory")

    def clear(self) -> None:
        with self._mutex:
            self._games.clear()
            self._player_games.clear()

    def __len__(self) -> int:
        with self._mutex:
            return len(self._games)


# Global directory instance
session_directory = SessionDirectory()
