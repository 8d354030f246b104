"""
Centralized configuration using Pydantic BaseSettings.
All environment variables are loaded here - no hardcoded values.
"""
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Media Discovery API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Telemetry
    ENABLE_OTEL: bool = False  # Default to False to prevent gRPC errors in dev
    ENABLE_PROMETHEUS: bool = True

    # Catalog ("memory" serves the bundled dataset, "tmdb" calls the real API)
    CATALOG_BACKEND: str = "memory"
    TMDB_API_KEY: Optional[str] = None
    TMDB_BASE_URL: str = "https://api.themoviedb.org/3"
    TMDB_IMAGE_BASE_URL: str = "https://image.tmdb.org/t/p/w500"
    TMDB_LANGUAGE: str = "en-US"
    TMDB_TIMEOUT_SEC: float = 10.0

    # Catalog rate limiting (TMDb documents ~40 requests per 10 seconds)
    CATALOG_RATE_LIMIT_REQUESTS: int = 40
    CATALOG_RATE_LIMIT_WINDOW_SEC: float = 10.0

    # Intent extraction (rule-based extractor is used when no key is set)
    LLM_PROVIDER: str = "groq"
    LLM_API_KEY: Optional[str] = None
    LLM_BASE_URL: Optional[str] = None
    LLM_MODEL: str = "llama-3.1-70b-versatile"
    LLM_TIMEOUT_SEC: float = 8.0

    # Circuit Breaker (intent extractor)
    CIRCUIT_BREAKER_FAILURE_THRESHOLD: int = 5
    CIRCUIT_BREAKER_RECOVERY_TIMEOUT_SEC: int = 30

    # Search budget
    SEARCH_TIMEOUT_SEC: float = 15.0
    MAX_RESULT_LIMIT: int = 50
    MAX_QUERY_LENGTH: int = 500

    # Discovery
    DISCOVERY_MIN_VOTE_COUNT: int = 50
    PREFERRED_LANGUAGE: Optional[str] = "en"

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance - singleton pattern."""
    return Settings()
