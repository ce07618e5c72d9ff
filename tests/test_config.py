"""Tests for configuration helpers."""

import pytest

from uno_server.config import Settings, parse_store_backend


def test_parse_store_backend_defaults_to_memory() -> None:
    assert parse_store_backend(None) == "memory"
    assert parse_store_backend("  ") == "memory"


def test_parse_store_backend_normalizes_case() -> None:
    assert parse_store_backend(" Supabase ") == "supabase"


def test_parse_store_backend_rejects_unknown() -> None:
    with pytest.raises(ValueError, match="Unknown store backend"):
        parse_store_backend("redis")


def test_settings_read_environment(monkeypatch) -> None:
    monkeypatch.setenv("STORE_BACKEND", "supabase")
    monkeypatch.setenv("STORE_MAX_RETRIES", "5")

    settings = Settings()

    assert settings.store_backend == "supabase"
    assert settings.store_max_retries == 5
