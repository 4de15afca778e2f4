"""
Shared configuration module for CryptoTracker.
All components read their settings from this module.
"""
import logging
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "CryptoTracker"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    # Upstream market data provider
    COINGECKO_BASE_URL: str = "https://api.coingecko.com/api/v3"
    COINGECKO_API_KEY: str = ""  # Optional: CoinGecko works without API key (free tier)
    USER_AGENT: str = "CryptoTracker/1.0.0"
    VS_CURRENCY: str = "usd"

    # Redis (favorites + theme persistence)
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: str = ""
    STORAGE_KEY: str = "crypto-tracker-storage"

    # Sentry
    SENTRY_DSN: str = ""
    SENTRY_ENVIRONMENT: str = "development"
    SENTRY_TRACES_SAMPLE_RATE: float = 0.1

    # API
    CORS_ORIGINS: List[str] = ["http://localhost:8081", "http://localhost:19006"]

    # Logging
    LOG_LEVEL: str = "INFO"

    @field_validator('COINGECKO_BASE_URL')
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Paths are joined with a leading slash."""
        return v.rstrip("/")

    @field_validator('LOG_LEVEL')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown LOG_LEVEL: {v}")
        return level

    class Config:
        env_file = ".env"
        case_sensitive = True


def configure_logging(level: str = None) -> None:
    """Apply LOG_LEVEL to the root logger."""
    logging.basicConfig(
        level=level or settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


# Global settings instance
settings = Settings()
