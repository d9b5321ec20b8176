"""
Configuration Management

Uses Pydantic Settings for environment-based configuration.
Loads from .env file automatically.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Application Settings
    LOG_LEVEL: str = "INFO"

    # Remote fetches (spreadsheets, sitemaps)
    FETCH_TIMEOUT: float = 30.0
    FETCH_USER_AGENT: str = "Mozilla/5.0 (compatible; PinrankBot/1.0)"

    # Import batching
    KEYWORD_BATCH_SIZE: int = 500
    SITEMAP_BATCH_SIZE: int = 100
    SITEMAP_FETCH_CONCURRENCY: int = 5

    # Report limits
    SLUG_ANALYSIS_LIMIT: int = 100
    IMPORT_LOG_LIMIT: int = 50
    IMPORT_WARNING_LIMIT: int = 50

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra fields in .env file
        case_sensitive = False  # Allow both UPPERCASE and lowercase


@lru_cache
def get_settings() -> Settings:
    """Get or create cached settings instance."""
    return Settings()
