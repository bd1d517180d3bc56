from pydantic_settings import BaseSettings
import os

class Settings(BaseSettings):
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "sqlite:///./riverthello.db"
    )
    SECRET_KEY: str = os.getenv("SECRET_KEY", "your-secret-key")
    DEBUG: bool = os.getenv("DEBUG", "True") == "True"

    # Realtime and listing limits
    CHAT_MESSAGE_MAX_LENGTH: int = 200
    LEADERBOARD_DEFAULT_LIMIT: int = 10
    GAME_HISTORY_DEFAULT_LIMIT: int = 10

    class Config:
        env_file = ".env"

settings = Settings()
