"""
ELO rating system for Riverthello results.
"""
import math
import logging
from typing import Tuple

from app.core.game_config import RATING_K_FACTOR, RATING_SCALE, Winner

logger = logging.getLogger(__name__)

LOSS = 0.0
DRAW = 0.5
WIN = 1.0


class SkillCalculator:
    """ELO-based rating calculator with a fixed K-factor"""

    K_FACTOR = RATING_K_FACTOR

    def rating_delta(self, player_rating: int, opponent_rating: int, result: float) -> int:
        """
        Rating points gained (or lost) by a player for one result.

        result is 1 for a win, 0.5 for a draw and 0 for a loss. Each side uses
        its own expected score, so the two deltas of one game need not be
        exact negatives.
        """
        if result not in (LOSS, DRAW, WIN):
            raise ValueError(f"Result must be 0, 0.5 or 1, got {result}")

        expected = self._expected_score(player_rating, opponent_rating)
        return self._round_half_up(self.K_FACTOR * (result - expected))

    def rating_changes(self, black_rating: int, white_rating: int, winner) -> Tuple[int, int]:
        """Return (black delta, white delta) for a finished game."""
        winner = Winner(winner)
        if winner == Winner.BLACK:
            black_result, white_result = WIN, LOSS
        elif winner == Winner.WHITE:
            black_result, white_result = LOSS, WIN
        else:
            black_result, white_result = DRAW, DRAW

        black_change = self.rating_delta(black_rating, white_rating, black_result)
        white_change = self.rating_delta(white_rating, black_rating, white_result)

        logger.info(
            f"Rating change ({winner.value}): Black {black_rating} ({black_change:+d}), "
            f"White {white_rating} ({white_change:+d})"
        )
        return black_change, white_change

    def _expected_score(self, rating_a: int, rating_b: int) -> float:
        """Calculate expected score for player A against player B"""
        return 1.0 / (1.0 + math.pow(10, (rating_b - rating_a) / RATING_SCALE))

    @staticmethod
    def _round_half_up(value: float) -> int:
        # Halves go toward +infinity: 15.5 -> 16, -15.5 -> -15
        return int(math.floor(value + 0.5))


# Global calculator instance
skill_calculator = SkillCalculator()
