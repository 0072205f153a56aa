"""Typed settings configuration - single source of truth."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite:///./trip_actions.db"

    # Auth stub
    dev_user_id: str = "00000000-0000-0000-0000-000000000002"

    # Batches
    max_batch_actions: int = 6

    # Schedule annotation marker embedded in destination notes
    schedule_note_prefix: str = "[assistant-schedule]"

    # Replacement items inherit this duration when nothing else is known (minutes)
    default_replacement_duration_minutes: int = 90

    # Audit trail
    audit_enabled: bool = True

    # Processed request ids are remembered for replay protection (seconds)
    processed_request_ttl_seconds: int = 24 * 3600


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
