from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import List
import os


class Settings(BaseSettings):
    """Global app settings loaded from environment.
    - Keep defaults light for dev.
    - Override via .env or real env vars.
    """

    APP_NAME: str = "moments_api"
    APP_ENV: str = "dev"
    APP_DEBUG: bool = True

    MONGODB_URI: str = "mongodb://localhost:27017/moments"

    # Raw CORS string from env (comma-separated); parsed via cors_origins property
    CORS_ORIGINS: str | None = None

    # Firebase Admin SDK service account
    FIREBASE_CREDENTIALS_FILE: str | None = None

    # Reminder jobs run in this zone; event dates are calendar dates in it
    REMINDER_TIMEZONE: str = "Asia/Kolkata"
    # Attempts per (user, event, reminder, year) before a failed reminder is given up
    REMINDER_MAX_ATTEMPTS: int = 3
    RETENTION_DAYS: int = 30
    RETENTION_HOUR: int = 3  # local hour of the daily sweep
    ENABLE_SCHEDULER: bool = True

    TEST_NOTIFICATION_RATE_LIMIT: str = "10/minute"

    # Substring identifying an already open app window
    APP_URL_MATCH: str = "birthday-reminder"

    LOG_DIR: str = "logs"

    class Config:
        env_file = ".env"
        case_sensitive = False

    @property
    def cors_origins(self) -> List[str]:
        """Return CORS origins as a list, parsing comma-separated env string."""
        raw = self.CORS_ORIGINS or os.getenv("CORS_ORIGINS", "") or ""
        return [o.strip() for o in raw.split(",") if o.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()
