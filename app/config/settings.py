# app/config/settings.py

from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    ENV: str = "development"
    DATABASE_URL: str = "sqlite+aiosqlite:///./matching.db"  # override from .env or environment variable
    LOG_LEVEL: str = "INFO"

    # Lookback window for "already met" pairs
    HISTORY_WEEKS: int = 4

    # Weekly run: Saturday 16:00 UTC (18:00 Israel time)
    MATCHING_SCHEDULER_ENABLED: bool = False
    MATCHING_WEEKDAY: int = 5
    MATCHING_HOUR_UTC: int = 16
    SCHEDULER_POLL_SECONDS: int = 60

    class Config:
        env_file = ".env"

settings = Settings()
