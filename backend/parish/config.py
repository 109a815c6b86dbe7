"""Application configuration via environment variables."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings loaded from .env or environment."""

    DATABASE_URL: str = "sqlite:///./parish.db"
    CORS_ORIGINS: str = "http://localhost:3000"
    TIMEZONE: str = "UTC"  # IANA tz that defines "today" for upcoming/past listings
    DEFAULT_PAGE_SIZE: int = 5
    MAX_PAGE_SIZE: int = 50
    ACTIVITY_FEED_LIMIT: int = 10
    DB_LOCK_TIMEOUT_SECONDS: float = 30.0
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"


settings = Settings()
