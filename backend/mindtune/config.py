"""
MindTune Configuration
======================
All environment variables in one place. Pydantic Settings validates
types at startup so a typo in a flag fails at boot, not mid-request.
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Loaded from environment variables or a .env file."""

    # --- Supabase ---
    supabase_url: str = "http://localhost:54321"
    supabase_service_key: str = ""  # empty → no durable store, in-memory only
    checkins_table: str = "daily_checkins"
    users_table: str = "users"
    diary_table: str = "diary_entries"
    supabase_timeout_seconds: int = 10

    # --- App settings ---
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:3000"]

    # --- Storage degradation ---
    # When the durable store is unreachable, keep serving check-ins and diary
    # entries from process-local maps. Ignored in production, where the
    # request fails.
    memory_fallback: bool = True

    # --- Local development ---
    # Skips bearer-token verification and acts as this user. Never honoured
    # in production.
    dev_user_id: Optional[int] = None

    # --- Music ---
    audio_sample_rate: int = 22050
    audio_base_url: str = "/api/v1/music/tracks"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()
