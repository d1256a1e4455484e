"""Application settings and configuration."""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Server configuration
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    DEBUG: bool = False

    # Intershop ICM backend
    INTERSHOP_BASE_URL: str = (
        "https://develop.icm.intershop.de/INTERSHOP/rest/WFS/"
        "inSPIRED-inTRONICS_Business-Site/-;loc=en_US;cur=USD"
    )
    INTERSHOP_IMAGE_HOST: str = "https://develop.icm.intershop.de"
    ACCEPT_LANGUAGE: str = "en-US,en;q=0.9"
    PRICE_ACCEPT_HEADER: str = "application/json"

    # Outbound requests
    REQUEST_TIMEOUT: float = 30.0
    MAX_RETRY_ATTEMPTS: int = 3
    RETRY_BACKOFF_BASE: float = 1.0
    UPSTREAM_REQUESTS_PER_MINUTE: int = 60

    # Price enrichment
    PRICE_BULK_LIMIT: int = 10
    PRICE_FALLBACK_LIMIT: int = 5

    # Inbound rate limiting
    RATE_LIMIT_REQUESTS: int = 100
    RATE_LIMIT_WINDOW: int = 60

    # Example integrations
    WEATHER_API_KEY: Optional[str] = None
    RAPIDAPI_KEY: Optional[str] = None
    NEWS_API_KEY: Optional[str] = None
    CUSTOM_API_KEY: Optional[str] = None
    DATABASE_PATH: str = ":memory:"

    # SSE configuration
    SSE_RETRY_TIMEOUT: int = 3000

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
