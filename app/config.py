"""
Club settings

Environment-driven configuration for the club management service.
Values come from the process environment or a local .env file.
"""
import os
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings

load_dotenv()


class ClubSettings(BaseSettings):
    """Club service settings"""

    # Supabase
    SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
    SUPABASE_KEY: str = os.getenv("SUPABASE_KEY", "")
    SUPABASE_SERVICE_KEY: str = os.getenv("SUPABASE_SERVICE_KEY", "")

    # Session tokens
    JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", "change-me-in-production")
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24  # 24h

    # Backend calls
    API_TIMEOUT_SECONDS: float = Field(default=30.0, description="Per-attempt timeout")
    API_RETRY_ATTEMPTS: int = Field(default=3, ge=1, description="Attempts per request")
    API_RETRY_DELAY_SECONDS: float = Field(default=1.0, description="Base delay between attempts")

    # Permissions
    PERMISSION_CACHE_SECONDS: int = 5 * 60

    # Offline cache
    OFFLINE_ENABLED: bool = True
    OFFLINE_DB_PATH: str = "data/offline_cache.db"

    # Scheduler
    SCHEDULER_ENABLED: bool = False
    SYNC_INTERVAL_MINUTES: int = 5
    CONNECTIVITY_CHECK_SECONDS: int = 60

    # Recurring events
    RECURRENCE_MAX_ITERATIONS: int = Field(default=1000, description="Day steps before giving up")
    RECURRENCE_DEFAULT_MAX_OCCURRENCES: int = 52

    # Pagination
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100

    # Test mode (fixed admin context)
    CLUB_TEST_MODE: bool = os.getenv("CLUB_TEST_MODE", "0") == "1"

    class Config:
        env_file = ".env"
        extra = "ignore"


@lru_cache()
def get_settings() -> ClubSettings:
    return ClubSettings()
