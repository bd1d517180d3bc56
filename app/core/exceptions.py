class GameException(Exception):
    """Base exception for game-related errors."""
    error_code = "GAME_ERROR"


class AuthRequired(GameException):
    """Raised when an action needs an authenticated connection."""
    error_code = "AUTH_REQUIRED"


class NotFound(GameException):
    """Raised when a referenced record does not exist."""
    error_code = "NOT_FOUND"


class GameNotFound(NotFound):
    """Raised when a game is not found."""
    error_code = "GAME_NOT_FOUND"


class PlayerNotFound(NotFound):
    """Raised when a player is not found."""
    error_code = "PLAYER_NOT_FOUND"


class NotAParticipant(GameException):
    """Raised when a player acts on a game they are not playing in."""
    error_code = "NOT_A_PARTICIPANT"


class InvalidMove(GameException):
    """Raised when a move violates turn order or legality."""
    error_code = "INVALID_MOVE"


class GameEnded(InvalidMove):
    """Raised when trying to act on a game that is no longer active."""
    error_code = "GAME_ENDED"


class NotYourTurn(InvalidMove):
    """Raised when a player tries to move out of turn."""
    error_code = "NOT_YOUR_TURN"


class IllegalMove(InvalidMove):
    """Raised when the target cell does not outflank anything."""
    error_code = "ILLEGAL_MOVE"


class MalformedMessage(GameException):
    """Raised when a realtime envelope cannot be understood."""
    error_code = "MALFORMED_MESSAGE"


class PlayerAlreadyInGame(GameException):
    """Raised when starting a game for a player who is already playing."""
    error_code = "PLAYER_ALREADY_IN_GAME"
