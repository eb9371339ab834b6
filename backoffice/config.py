"""
Back office settings.

Values come from the process environment, then from the env file picked
by APP_ENV (``.env.development`` unless APP_ENV=production).
"""

import os
from functools import lru_cache
from pydantic_settings import BaseSettings

ENV_FILES = {
    "production": ".env.production",
    "development": ".env.development",
}


def get_env_file() -> str:
    """Env file for the current APP_ENV; unknown values read the development file."""
    return ENV_FILES.get(os.getenv("APP_ENV", "development"), ENV_FILES["development"])


class Settings(BaseSettings):
    """Runtime settings of the back office API and engine."""

    # Persistence
    database_url: str = "sqlite:///./backoffice.db"

    # Service
    app_name: str = "Property Back Office"
    app_env: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    # Upper bound on steps when counting recurring event occurrences
    recurrence_max_iterations: int = 10000

    class Config:
        env_file = get_env_file()
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Settings are read once per process."""
    return Settings()
