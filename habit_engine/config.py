from __future__ import annotations

from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings loaded from environment variables and .env file."""

    # Logging / time
    LOG_LEVEL: str = "INFO"
    DEFAULT_TIMEZONE: str = "UTC"

    # Today's Focus queue
    REMINDER_FLOOR: int = 7
    ML_PER_GLASS: int = 240
    FALLBACK_WATER_GLASSES: int = 8
    SETTLE_DELAY_SECONDS: float = 1.5
    SNAPSHOT_TIMEOUT_SECONDS: float = 5.0
    REFRESH_INTERVAL_MINUTES: int = 15

    # Circadian profile
    SLEEP_LOOKBACK_DAYS: int = 30

    model_config = SettingsConfigDict(
        env_file=Path(__file__).parent.parent / ".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )


settings = Settings()
