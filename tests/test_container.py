"""Tests for container wiring."""

import asyncio

import pytest

from uno_server.adapters.memory_session_store import InMemorySessionStore
from uno_server.config import Settings
from uno_server.containers import build_container, build_session_store


def test_build_container_creates_services(settings) -> None:
    container = build_container(settings)
    assert container.game_service is not None
    assert isinstance(container.session_store, InMemorySessionStore)
    assert container.game_service.store is container.session_store
    asyncio.run(container.close_resources())


def test_supabase_backend_requires_credentials() -> None:
    with pytest.raises(ValueError, match="supabase_url"):
        build_session_store(Settings(store_backend="supabase"))
