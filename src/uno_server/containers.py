"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from uno_server.adapters.memory_session_store import InMemorySessionStore
from uno_server.adapters.supabase_session_store import SupabaseSessionStore
from uno_server.config import Settings, parse_store_backend
from uno_server.services.games import GameService, SessionStore


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    session_store: SessionStore
    game_service: GameService
    close_resources: Callable[[], Awaitable[None]]


def build_session_store(settings: Settings) -> SessionStore:
    """Create the session store selected by ``settings.store_backend``."""
    backend = parse_store_backend(settings.store_backend)
    if backend == "supabase":
        if not settings.supabase_url or not settings.supabase_service_key:
            raise ValueError(
                "supabase_url and supabase_service_key are required for the "
                "supabase store backend"
            )
        client = create_client(settings.supabase_url, settings.supabase_service_key)
        return SupabaseSessionStore(client, max_retries=settings.store_max_retries)
    return InMemorySessionStore()


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    session_store = build_session_store(resolved_settings)
    game_service = GameService(session_store)

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=resolved_settings,
        session_store=session_store,
        game_service=game_service,
        close_resources=close_resources,
    )
