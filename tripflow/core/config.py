"""Application configuration from environment variables."""
from __future__ import annotations

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings.

    Loaded from environment variables or a .env file.
    """

    # Application
    APP_NAME: str = "Tripflow"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # API server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # CORS (all origins allowed for development)
    CORS_ORIGINS: list[str] = ["*"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text"  # text | json

    # Conversation state persistence
    STATE_STORE_BACKEND: str = "file"  # memory | file
    STATE_STORE_DIR: str = ".conversation-state"

    # Dialogue rules
    BOOKING_LEAD_DAYS: int = 7     # bare durations start this many days from today
    MAX_TRAVELERS: int = 20
    DEFAULT_CURRENCY: str = "USD"

    # JSONL turn trace
    DEBUG_LOGS: bool = False
    DEBUG_LOG_FILE: str = "logs/turns.jsonl"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )


@lru_cache
def get_settings() -> Settings:
    """Cached application settings."""
    return Settings()


settings = get_settings()
