"""Tests for configuration helpers."""

import pytest

from aisle_be_back.config import Settings, parse_watched_tables
from aisle_be_back.services.invalidation import WATCHED_TABLES


@pytest.mark.parametrize("raw", [None, "", " * "])
def test_parse_watched_tables_defaults(raw: str | None) -> None:
    assert parse_watched_tables(raw) == WATCHED_TABLES


def test_parse_watched_tables_dedupes_and_lowercases() -> None:
    assert parse_watched_tables("Inventory, shopping_list,inventory,,") == (
        "inventory",
        "shopping_list",
    )


def test_settings_read_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co")
    monkeypatch.setenv("SUPABASE_KEY", "key")
    monkeypatch.setenv("HOUSEHOLD_USER_ID", "8c6d2a8e-4d55-4c37-9bb0-5fb1b9d0f1a2")
    monkeypatch.setenv("API_TOKEN", "token")
    monkeypatch.setenv("OPENAI_API_KEY", "openai")
    monkeypatch.setenv("REORDER_DEBOUNCE_SECONDS", "0.3")

    settings = Settings(_env_file=None)

    assert settings.reorder_debounce_seconds == 0.3
    assert settings.reorder_settle_seconds == 1.5
    assert str(settings.household_user_id).startswith("8c6d2a8e")
