"""Shared test fixtures."""

import random
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import TypeVar
from uuid import UUID, uuid4

import pytest

from uno_server.adapters.memory_session_store import InMemorySessionStore
from uno_server.config import Settings
from uno_server.containers import AppContainer
from uno_server.domain.results import StoreConflictError, Success
from uno_server.domain.sessions import GameSession, SessionSnapshot
from uno_server.services.games import Commit, GameService

T = TypeVar("T")


@dataclass
class TickingClock:
    """Clock that advances one second per reading."""

    current: datetime = field(
        default_factory=lambda: datetime(2024, 1, 1, 12, 0, tzinfo=UTC)
    )

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


@dataclass
class FlakySessionStore(InMemorySessionStore):
    """In-memory store that reports a conflict for the next N commits."""

    conflicts_remaining: int = 0

    def run_atomic(
        self,
        session_id: UUID,
        unit: Callable[[SessionSnapshot], Commit[T]],
        include_cards: bool = False,
    ) -> T:
        if self.conflicts_remaining > 0:
            self.conflicts_remaining -= 1
            raise StoreConflictError("Serialization failure")
        return super().run_atomic(session_id, unit, include_cards)


def build_service(
    store: InMemorySessionStore | None = None, seed: int = 7
) -> GameService:
    return GameService(
        store=store or InMemorySessionStore(),
        rng=random.Random(seed),
        clock=TickingClock(),
    )


def create_ready_game(
    service: GameService, players: int = 2, name: str = "Friends Night"
) -> tuple[GameSession, list[UUID]]:
    """Create a game with ``players`` seated and everyone ready."""
    player_ids = [uuid4() for _ in range(players)]
    result = service.create_game(name, "House rules", player_ids[0])
    assert isinstance(result, Success)
    session = result.value
    for player_id in player_ids[1:]:
        assert service.join_game(session.id, player_id).ok
    for player_id in player_ids:
        assert service.set_ready(session.id, player_id).ok
    return session, player_ids


def create_started_game(
    service: GameService, players: int = 2
) -> tuple[GameSession, list[UUID]]:
    session, player_ids = create_ready_game(service, players)
    result = service.start_game(session.id, player_ids[0])
    assert isinstance(result, Success)
    return result.value, player_ids


@pytest.fixture
def settings() -> Settings:
    return Settings(store_backend="memory")


@pytest.fixture
def session_store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def game_service(session_store: InMemorySessionStore) -> GameService:
    return build_service(session_store)


@pytest.fixture
def container(
    settings: Settings,
    session_store: InMemorySessionStore,
    game_service: GameService,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        session_store=session_store,
        game_service=game_service,
        close_resources=close_resources,
    )
