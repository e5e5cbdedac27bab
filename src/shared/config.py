"""
Application configuration using Pydantic Settings.
Loads from environment variables and .env file.
"""

from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    environment: str = Field(
        default="development",
        description="'production' enables stricter URL checks",
    )

    # OpenAI / LLM
    openai_api_key: SecretStr = Field(default=SecretStr(""))
    openai_model: str = Field(default="gpt-4o-mini")

    # Matcher settings
    matcher_temperature: float = Field(default=0.3)
    matcher_max_tokens: int = Field(default=1000)
    matcher_batch_size: int = Field(default=3, ge=1, description="Jobs scored concurrently per batch")
    matcher_batch_delay: float = Field(
        default=2.0, ge=0, description="Seconds to wait between batches"
    )
    matcher_max_retries: int = Field(default=3, ge=1, description="Scoring attempts per job")
    matcher_retry_base_delay: float = Field(
        default=1.0, ge=0, description="Backoff base in seconds (base * attempt)"
    )

    # Analysis defaults
    default_max_jobs: int = Field(default=10, ge=1, le=100)
    default_match_threshold: int = Field(default=70, ge=0, le=100)
    max_upload_mb: int = Field(default=10)

    # Apify - career page crawler
    apify_api_token: SecretStr = Field(default=SecretStr(""))
    apify_actor_id: str = Field(default="apify~website-content-crawler")
    apify_base_url: str = Field(default="https://api.apify.com/v2")
    scraper_timeout_secs: int = Field(default=300)

    # Session retention
    session_ttl_minutes: int = Field(default=60)
    session_sweep_interval_seconds: int = Field(default=300)

    # HTTP API
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000)
    frontend_cors_origin: str = Field(default="http://localhost:3000")

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
