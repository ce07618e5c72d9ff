"""Supabase-backed session store."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import TypeVar
from uuid import UUID

from supabase import Client

from uno_server.domain.cards import Card, CardColor, CardPosition, CardType
from uno_server.domain.results import StoreConflictError
from uno_server.domain.sessions import (
    GameSession,
    MutationBatch,
    RosterEntry,
    SessionSnapshot,
    SessionState,
)
from uno_server.services.games import Commit, SessionStore

T = TypeVar("T")

_logger = logging.getLogger(__name__)

_SESSION_COLUMNS = (
    "id, name, rules, state, creator_id, current_player_id, created_at, version"
)
_PLAYER_COLUMNS = "session_id, player_id, score, is_ready, joined_at"
_CARD_COLUMNS = (
    "id, session_id, card_type, card_value, card_color, position, player_id, "
    "order_index"
)


@dataclass
class SupabaseSessionStore(SessionStore):
    """Supabase implementation of the session store.

    Batches are committed through the ``apply_game_mutations`` Postgres
    function, which locks the session row and refuses the batch when the
    session version moved since the snapshot was read. Refused units are
    re-run on a fresh snapshot up to ``max_retries`` times.
    """

    client: Client
    max_retries: int = 3

    def get_session(self, session_id: UUID) -> GameSession | None:
        """Return a session by id, if present."""
        response = (
            self.client.table("game_sessions")
            .select(_SESSION_COLUMNS)
            .eq("id", str(session_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_session(response.data[0])

    def get_roster(self, session_id: UUID) -> list[RosterEntry]:
        """Return roster rows ordered by join time."""
        response = (
            self.client.table("game_players")
            .select(_PLAYER_COLUMNS)
            .eq("session_id", str(session_id))
            .order("joined_at", desc=False)
            .execute()
        )
        return [_parse_player(row) for row in response.data or []]

    def get_cards(
        self, session_id: UUID, position: CardPosition | None = None
    ) -> list[Card]:
        """Return card rows ordered by order index."""
        query = (
            self.client.table("game_cards")
            .select(_CARD_COLUMNS)
            .eq("session_id", str(session_id))
        )
        if position is not None:
            query = query.eq("position", position.value)
        response = query.order("order_index", desc=False).execute()
        return [_parse_card(row) for row in response.data or []]

    def run_atomic(
        self,
        session_id: UUID,
        unit: Callable[[SessionSnapshot], Commit[T]],
        include_cards: bool = False,
    ) -> T:
        """Run ``unit`` and commit its batch, retrying on version conflicts."""
        attempts = self.max_retries + 1
        for attempt in range(1, attempts + 1):
            snapshot = SessionSnapshot(
                session=self.get_session(session_id),
                roster=self.get_roster(session_id),
                cards=self.get_cards(session_id) if include_cards else [],
            )
            commit = unit(snapshot)
            if commit.batch.is_empty:
                return commit.value
            expected_version = snapshot.session.version if snapshot.session else None
            response = self.client.rpc(
                "apply_game_mutations",
                {
                    "p_session_id": str(session_id),
                    "p_expected_version": expected_version,
                    "p_batch": _serialize_batch(commit.batch),
                },
            ).execute()
            if response.data:
                return commit.value
            _logger.info(
                "Session write conflict: session_id=%s attempt=%s/%s",
                session_id,
                attempt,
                attempts,
            )
        raise StoreConflictError(
            f"Session {session_id} changed concurrently; retry the command"
        )


def _serialize_batch(batch: MutationBatch) -> dict[str, object]:
    return {
        "new_session": (
            _session_row(batch.new_session) if batch.new_session else None
        ),
        "session_update": (
            _session_row(batch.session_update) if batch.session_update else None
        ),
        "roster_inserts": [_player_row(entry) for entry in batch.roster_inserts],
        "roster_updates": [_player_row(entry) for entry in batch.roster_updates],
        "roster_deletes": [str(player_id) for player_id in batch.roster_deletes],
        "card_inserts": [
            {
                "card_type": card.card_type.value,
                "card_value": card.value,
                "card_color": card.color.value if card.color else None,
                "position": card.position.value,
                "player_id": str(card.player_id) if card.player_id else None,
                "order_index": card.order_index,
            }
            for card in batch.card_inserts
        ],
        "card_updates": [
            {
                "id": str(card.id),
                "position": card.position.value,
                "player_id": str(card.player_id) if card.player_id else None,
                "order_index": card.order_index,
            }
            for card in batch.card_updates
        ],
    }


def _session_row(session: GameSession) -> dict[str, object]:
    return {
        "id": str(session.id),
        "name": session.name,
        "rules": session.rules,
        "state": session.state.value,
        "creator_id": str(session.creator_id),
        "current_player_id": (
            str(session.current_player_id) if session.current_player_id else None
        ),
        "created_at": session.created_at.isoformat(),
    }


def _player_row(entry: RosterEntry) -> dict[str, object]:
    return {
        "session_id": str(entry.session_id),
        "player_id": str(entry.player_id),
        "score": entry.score,
        "is_ready": entry.is_ready,
        "joined_at": entry.joined_at.isoformat(),
    }


def _parse_session(row: dict[str, object]) -> GameSession:
    current = row.get("current_player_id")
    return GameSession(
        id=UUID(str(row["id"])),
        name=str(row["name"]),
        rules=row.get("rules"),
        state=SessionState(row["state"]),
        creator_id=UUID(str(row["creator_id"])),
        current_player_id=UUID(str(current)) if current else None,
        created_at=datetime.fromisoformat(str(row["created_at"])),
        version=int(row.get("version") or 0),
    )


def _parse_player(row: dict[str, object]) -> RosterEntry:
    return RosterEntry(
        session_id=UUID(str(row["session_id"])),
        player_id=UUID(str(row["player_id"])),
        joined_at=datetime.fromisoformat(str(row["joined_at"])),
        score=int(row.get("score") or 0),
        is_ready=bool(row.get("is_ready")),
    )


def _parse_card(row: dict[str, object]) -> Card:
    color = row.get("card_color")
    player_id = row.get("player_id")
    return Card(
        id=UUID(str(row["id"])),
        session_id=UUID(str(row["session_id"])),
        card_type=CardType(row["card_type"]),
        value=str(row["card_value"]),
        color=CardColor(color) if color else None,
        position=CardPosition(row["position"]),
        player_id=UUID(str(player_id)) if player_id else None,
        order_index=int(row.get("order_index") or 0),
    )
