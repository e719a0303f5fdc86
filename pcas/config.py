"""Client Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - get_settings() is cached (lru_cache) — single instance per process
    - backend_url never ends with a slash (paths are joined as "/api/...")

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for every setting: works out of the box against a local backend
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Client settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Backend
    backend_url: str = "http://localhost:5000"

    @field_validator("backend_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        if isinstance(v, str):
            return v.rstrip("/")
        return v

    # Local cache
    cache_database_url: str = "sqlite:///pcas_cache.db"
    # Envelopes older than this are ignored at load time; 0 disables the check
    cache_max_age_days: int = 30

    # Forms
    confirmation_delay_seconds: float = 2.2
    # Sections whose status label stops at in_progress (older pages)
    legacy_status_sections: list[str] = []

    # Universities
    max_university_picks: int = 5

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
