"""
BadgeWatch - Configuration
Loads settings from environment variables
"""

from typing import List, Optional
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App Info
    APP_NAME: str = "BadgeWatch"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: Optional[str] = None

    # API
    API_PREFIX: str = "/api/v1"

    # Backend action endpoint
    BACKEND_URL: str = "http://localhost/caps2e2/Api"
    BACKEND_SCRIPT: str = "backend.php"
    RETURNS_SCRIPT: str = "pos_return_api.php"
    REQUEST_TIMEOUT: float = 10.0
    MAX_RETRIES: int = 2
    RETRY_DELAY: float = 2.0  # seconds between attempts

    # Poll periods (seconds)
    RETURNS_POLL_INTERVAL: float = 30
    REPORTS_POLL_INTERVAL: float = 10
    SYSTEM_POLL_INTERVAL: float = 30
    REPORT_FEED_POLL_INTERVAL: float = 10
    WAREHOUSE_POLL_INTERVAL: float = 60
    LOGS_POLL_INTERVAL: float = 30
    USERS_POLL_INTERVAL: float = 60
    SYSTEM_ACTIVITY_POLL_INTERVAL: float = 180
    DATE_ROLLOVER_INTERVAL: float = 60

    # Fetch parameters
    RETURNS_FETCH_LIMIT: int = 100
    REPORTS_LOOKBACK_HOURS: int = 1

    # Preferences
    SETTINGS_DEBOUNCE_SECONDS: float = 0.1
    DEFAULT_LOW_STOCK_THRESHOLD: int = 10
    DEFAULT_EXPIRY_WARNING_DAYS: int = 30

    # OS notifications
    DESKTOP_NOTIFICATIONS: bool = True

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    # Badge state survives restarts when set
    STATE_FILE: Optional[str] = None

    @property
    def backend_endpoint(self) -> str:
        return f"{self.BACKEND_URL.rstrip('/')}/{self.BACKEND_SCRIPT}"

    @property
    def returns_endpoint(self) -> str:
        return f"{self.BACKEND_URL.rstrip('/')}/{self.RETURNS_SCRIPT}"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
