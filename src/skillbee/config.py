"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_anon_key: str
    documents_bucket: str = "tasker-documents"
    session_init_timeout_seconds: float = 5.0
    profile_poll_attempts: int = 10
    profile_poll_interval_seconds: float = 0.3
    signed_url_ttl_seconds: int = 3600
    max_document_bytes: int = 10 * 1024 * 1024
    nearby_radius_km: float = 50.0
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
