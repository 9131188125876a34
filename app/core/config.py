"""
Application configuration using Pydantic Settings.

Loads configuration from environment variables (.env file).
"""

from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Project Info
    PROJECT_NAME: str = "Daybook: recurring activity templates and day planning."
    VERSION: str = "0.1.0"
    AUTHORS: List[str] = ["Roberto Martelloni"]
    AUTHORS_EMAILS: List[str] = ["rmartelloni@gmail.com"]
    PROJECT_URL: str = ""

    DEBUG: bool = False

    # Database
    DATABASE_URL: str = "sqlite:///./daybook.db"

    # Calendar
    TIMEZONE: str = "UTC"

    # Template materialization / update propagation
    PLAN_DAYS_AHEAD: int = 120
    DEFAULT_DURATION_MINUTES: int = 30

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None
    LOG_ROTATION: str = "10 MB"
    LOG_RETENTION: str = "7 days"

    # Development server (scripts/run_dev.py)
    DEV_HOST: str = "127.0.0.1"
    DEV_PORT: int = 8000
    DEV_RELOAD: bool = True

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")


# Global settings instance
settings = Settings()
