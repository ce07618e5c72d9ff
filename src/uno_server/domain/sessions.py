"""Domain models for game sessions and their rosters."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from uuid import UUID

from uno_server.domain.cards import Card, CardBlueprint, CardPosition


class SessionState(StrEnum):
    """Lifecycle state of a game session."""

    WAITING = "waiting"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


@dataclass(frozen=True)
class GameSession:
    """Represents a persisted game session."""

    id: UUID
    name: str
    rules: str | None
    state: SessionState
    creator_id: UUID
    current_player_id: UUID | None
    created_at: datetime
    version: int = 0


@dataclass(frozen=True)
class RosterEntry:
    """A player seated in a session."""

    session_id: UUID
    player_id: UUID
    joined_at: datetime
    score: int = 0
    is_ready: bool = False


@dataclass(frozen=True)
class SessionSnapshot:
    """Session state read at the start of a unit of work.

    ``roster`` is ordered by join time. ``cards`` is only populated when the
    unit asked for it.
    """

    session: GameSession | None
    roster: list[RosterEntry]
    cards: list[Card] = field(default_factory=list)

    def find_member(self, player_id: UUID) -> RosterEntry | None:
        for entry in self.roster:
            if entry.player_id == player_id:
                return entry
        return None

    def cards_at(self, position: CardPosition) -> list[Card]:
        return [card for card in self.cards if card.position == position]


@dataclass
class MutationBatch:
    """Row writes committed together by the session store."""

    new_session: GameSession | None = None
    session_update: GameSession | None = None
    roster_inserts: list[RosterEntry] = field(default_factory=list)
    roster_updates: list[RosterEntry] = field(default_factory=list)
    roster_deletes: list[UUID] = field(default_factory=list)
    card_inserts: list[CardBlueprint] = field(default_factory=list)
    card_updates: list[Card] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (
            self.new_session
            or self.session_update
            or self.roster_inserts
            or self.roster_updates
            or self.roster_deletes
            or self.card_inserts
            or self.card_updates
        )
