"""In-process session store serialized with per-session locks."""

import threading
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import TypeVar
from uuid import UUID, uuid4

from uno_server.domain.cards import Card, CardPosition
from uno_server.domain.sessions import (
    GameSession,
    MutationBatch,
    RosterEntry,
    SessionSnapshot,
)
from uno_server.services.games import Commit, SessionStore

T = TypeVar("T")


@dataclass
class InMemorySessionStore(SessionStore):
    """Dictionary-backed store for local runs and tests.

    Every unit of work on a session runs while holding that session's lock,
    so read-validate-write never interleaves on the same session. Locks exist
    only for stored sessions; work on an unknown id runs under the registry
    lock, which also registers the lock of a session it creates.
    """

    sessions: dict[UUID, GameSession] = field(default_factory=dict)
    rosters: dict[UUID, list[RosterEntry]] = field(default_factory=dict)
    cards: dict[UUID, dict[UUID, Card]] = field(default_factory=dict)
    _locks: dict[UUID, threading.Lock] = field(default_factory=dict, repr=False)
    _registry_lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def get_session(self, session_id: UUID) -> GameSession | None:
        return self._guarded(session_id, lambda: self.sessions.get(session_id))

    def get_roster(self, session_id: UUID) -> list[RosterEntry]:
        return self._guarded(
            session_id, lambda: list(self.rosters.get(session_id, []))
        )

    def get_cards(
        self, session_id: UUID, position: CardPosition | None = None
    ) -> list[Card]:
        return self._guarded(
            session_id, lambda: self._sorted_cards(session_id, position)
        )

    def run_atomic(
        self,
        session_id: UUID,
        unit: Callable[[SessionSnapshot], Commit[T]],
        include_cards: bool = False,
    ) -> T:
        return self._guarded(
            session_id, lambda: self._run_unit(session_id, unit, include_cards)
        )

    def _guarded(self, session_id: UUID, work: Callable[[], T]) -> T:
        with self._registry_lock:
            lock = self._locks.get(session_id)
            if lock is None:
                result = work()
                if session_id in self.sessions:
                    self._locks[session_id] = threading.Lock()
                return result
        with lock:
            return work()

    def _run_unit(
        self,
        session_id: UUID,
        unit: Callable[[SessionSnapshot], Commit[T]],
        include_cards: bool,
    ) -> T:
        snapshot = SessionSnapshot(
            session=self.sessions.get(session_id),
            roster=list(self.rosters.get(session_id, [])),
            cards=self._sorted_cards(session_id) if include_cards else [],
        )
        commit = unit(snapshot)
        if not commit.batch.is_empty:
            self._apply(session_id, commit.batch)
        return commit.value

    def _sorted_cards(
        self, session_id: UUID, position: CardPosition | None = None
    ) -> list[Card]:
        cards = self.cards.get(session_id, {}).values()
        if position is not None:
            cards = [card for card in cards if card.position == position]
        return sorted(cards, key=lambda card: card.order_index)

    def _apply(self, session_id: UUID, batch: MutationBatch) -> None:
        # Build every new row set first so a failure leaves the store untouched.
        session = batch.new_session or self.sessions.get(session_id)
        if batch.session_update is not None:
            session = batch.session_update
        if session is None:
            raise RuntimeError(f"Session {session_id} does not exist")
        current_version = (
            self.sessions[session_id].version if session_id in self.sessions else 0
        )

        leaving = set(batch.roster_deletes)
        roster = [
            entry
            for entry in self.rosters.get(session_id, [])
            if entry.player_id not in leaving
        ]
        updates = {entry.player_id: entry for entry in batch.roster_updates}
        roster = [updates.get(entry.player_id, entry) for entry in roster]
        seated = {entry.player_id for entry in roster}
        for entry in batch.roster_inserts:
            if entry.player_id in seated:
                raise RuntimeError("Duplicate roster entry")
            seated.add(entry.player_id)
            roster.append(entry)

        cards = dict(self.cards.get(session_id, {}))
        for blueprint in batch.card_inserts:
            card_id = uuid4()
            cards[card_id] = Card(
                id=card_id,
                session_id=session_id,
                card_type=blueprint.card_type,
                value=blueprint.value,
                color=blueprint.color,
                position=blueprint.position,
                player_id=blueprint.player_id,
                order_index=blueprint.order_index,
            )
        for card in batch.card_updates:
            if card.id not in cards:
                raise RuntimeError(f"Unknown card {card.id}")
            cards[card.id] = card

        self.sessions[session_id] = replace(session, version=current_version + 1)
        self.rosters[session_id] = roster
        self.cards[session_id] = cards
