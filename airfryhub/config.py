"""
Configuration and settings for the forum service.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")
    log_level: str = Field(default="INFO")

    # Hosted platform (managed Postgres + auth)
    database_url: Optional[str] = Field(default=None)
    supabase_url: Optional[str] = Field(default=None)
    supabase_anon_key: Optional[str] = Field(default=None)

    # S3-compatible object storage for uploaded images
    storage_bucket: str = Field(default="images")
    storage_endpoint: Optional[str] = Field(default=None)
    storage_region: Optional[str] = Field(default=None)
    storage_access_key_id: Optional[str] = Field(default=None)
    storage_secret_access_key: Optional[str] = Field(default=None)
    storage_public_url: Optional[str] = Field(default=None)
    max_image_bytes: int = Field(default=5 * 1024 * 1024)

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False, validation_alias="AIRFRYHUB_USE_IN_MEMORY_BACKENDS"
    )

    # Fetch/mutation cache
    query_stale_seconds: float = Field(default=30.0)
    query_cache_size: int = Field(default=256)

    link_preview_fetch: bool = Field(default=False)
    session_cookie_name: str = Field(default="airfryhub_session")

    @property
    def auth_url(self) -> Optional[str]:
        if not self.supabase_url:
            return None
        return f"{self.supabase_url.rstrip('/')}/auth/v1"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
