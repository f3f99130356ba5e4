"""
Application configuration settings
Settings shared by the storage service and the player-side coordinator
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings"""

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    # Server configuration
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    WORKERS: int = 1

    # Database configuration
    DATABASE_URL: str = "sqlite+aiosqlite:///./knowsy.db"
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 3
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800  # Recycle connections every 30 minutes
    DB_POOL_PRE_PING: bool = True

    # Redis configuration (optional fan-out of realtime events between workers)
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_MAX_CONNECTIONS: int = 5
    REDIS_SOCKET_TIMEOUT: int = 5
    REDIS_SOCKET_CONNECT_TIMEOUT: int = 5
    REALTIME_REDIS_FANOUT: bool = False
    REALTIME_CHANNEL_PREFIX: str = "knowsy:realtime"

    # Remote store configuration (used by HttpGameStore)
    API_BASE_URL: str = "http://localhost:8000/api/v1"
    API_TIMEOUT: float = 10.0

    # WebSocket configuration
    MAX_WEBSOCKET_CONNECTIONS: int = 200
    WEBSOCKET_PING_INTERVAL: int = 30

    # Room limits
    MAX_PLAYERS_PER_ROOM: int = 6
    MAX_AI_PLAYERS: int = 5
    ITEMS_PER_SELECTION: int = 5
    DEFAULT_TOTAL_ROUNDS: int = 3
    JOIN_CODE_LENGTH: int = 6

    # Coordinator timing
    POLL_INTERVAL_SECONDS: float = 2.0
    TOPIC_SELECTION_TIME_LIMIT: int = 150  # 2:30 to pick and rank
    TOPIC_SELECTION_WARNING_SECONDS: int = 30
    GUESSING_TIME_LIMIT: int = 60
    GUESSING_WARNING_SECONDS: int = 15
    TRANSITION_LOCK_RELEASE_SECONDS: float = 1.0

    # Default exit paths when a session leaves the room
    EXIT_PATH: str = "/play"
    ORGANIZATION_EXIT_PATH: str = "/org/{slug}/play"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    LOG_FILE: Optional[str] = None

    class Config:
        env_file = ".env"
        case_sensitive = True


# Global settings instance
settings = Settings()
