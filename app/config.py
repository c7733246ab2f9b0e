"""
PeopleDesk HR - Configuration Settings

This module handles all application configuration using Pydantic Settings.
Environment variables are loaded from .env file.
"""

from decimal import Decimal
from functools import lru_cache
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # ===========================================
    # APPLICATION CONFIGURATION
    # ===========================================
    app_name: str = "PeopleDesk HR"
    app_env: str = "development"
    debug: bool = True
    secret_key: str  # Required - must be set in .env
    api_version: str = "v1"

    # ===========================================
    # DATABASE CONFIGURATION
    # ===========================================
    database_url_async: str  # Required - must be set in .env

    # ===========================================
    # JWT AUTHENTICATION
    # ===========================================
    jwt_secret_key: str  # Required - must be set in .env
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60

    # ===========================================
    # REDIS CONFIGURATION
    # ===========================================
    redis_url: str = "redis://localhost:6379/0"

    # ===========================================
    # PAYROLL DEFAULTS
    # Used when no approved tax rule / insurance bracket applies
    # ===========================================
    default_tax_rate: Decimal = Decimal("10")  # percent
    default_insurance_rate: Decimal = Decimal("5")  # percent
    salary_spike_ratio: Decimal = Decimal("1.5")

    # ===========================================
    # PERFORMANCE MANAGEMENT
    # ===========================================
    low_score_threshold: int = 3  # Minimum-score appraisals before termination review

    # ===========================================
    # CONFIGURATION BACKUP
    # ===========================================
    backup_dir: str = "backups/config_setup"
    backup_retention: int = 7  # Keep last N backups
    backup_schedule_hour: int = 2

    # ===========================================
    # CORS SETTINGS
    # ===========================================
    cors_origins: str = "http://localhost:3000,http://localhost:8000,http://127.0.0.1:8000"

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins string into list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env.lower() == "development"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to avoid reading .env file on every call.
    """
    return Settings()


# Export settings instance
settings = get_settings()
