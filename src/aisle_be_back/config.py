"""Application configuration."""

import os
from uuid import UUID

from pydantic_settings import BaseSettings, SettingsConfigDict

from aisle_be_back.services.invalidation import WATCHED_TABLES

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_key: str
    household_user_id: UUID
    api_token: str
    watched_tables: str | None = None
    openai_api_key: str
    openai_model: str = "gpt-5.2"
    openai_search_model: str = "gpt-5.2"
    openai_store: bool = False
    geolocation_url: str = "https://ipapi.co/json/"
    reorder_debounce_seconds: float = 0.8
    reorder_settle_seconds: float = 1.5
    default_fuel_price: float = 3.50
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_watched_tables(raw: str | None) -> tuple[str, ...]:
    """Parse the realtime table override from env."""
    if raw is None:
        return WATCHED_TABLES
    cleaned = raw.strip()
    if cleaned in {"", "*"}:
        return WATCHED_TABLES
    tables: list[str] = []
    for chunk in cleaned.split(","):
        value = chunk.strip().lower()
        if value and value not in tables:
            tables.append(value)
    return tuple(tables) or WATCHED_TABLES
