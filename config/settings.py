"""Configuration management using pydantic-settings."""
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Content store (Supabase / PostgREST)
    content_api_url: Optional[str] = None
    content_api_key: Optional[str] = None
    content_request_timeout: float = 10.0

    # Claude LLM configuration (for search answers)
    anthropic_api_key: Optional[str] = None
    generator_model: str = "claude-3-haiku-20240307"
    generator_max_tokens: int = 200
    generator_timeout_seconds: float = 15.0

    # Cache settings
    cache_default_ttl_seconds: float = 300.0
    cache_sweep_interval_seconds: float = 60.0

    # Parallel loader
    loader_timeout_seconds: float = 10.0
    loader_retries: int = 2
    loader_backoff_base_seconds: float = 0.1
    loader_backoff_max_seconds: float = 2.0

    # Search corpus is re-fetched at most this often
    search_corpus_ttl_seconds: float = 300.0

    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
