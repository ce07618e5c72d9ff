"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

STORE_BACKENDS = frozenset({"memory", "supabase"})


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    store_backend: str = "memory"
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    store_max_retries: int = 3
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_store_backend(raw: str | None) -> str:
    """Normalize the configured store backend name."""
    if raw is None:
        return "memory"
    cleaned = raw.strip().lower()
    if not cleaned:
        return "memory"
    if cleaned not in STORE_BACKENDS:
        raise ValueError(f"Unknown store backend: {raw!r}")
    return cleaned
