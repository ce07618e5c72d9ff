"""Game session state machine: lifecycle commands and read queries."""

import random
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Generic, Protocol, TypeVar
from uuid import UUID, uuid4

from uno_server.domain.cards import DECK_SIZE, Card, CardPosition, generate_deck
from uno_server.domain.results import (
    CommandResult,
    DealInvariantError,
    ErrorKind,
    Failure,
    GameRuleError,
    StoreConflictError,
    Success,
)
from uno_server.domain.rules import can_join, can_start, validate_game_input
from uno_server.domain.sessions import (
    GameSession,
    MutationBatch,
    RosterEntry,
    SessionSnapshot,
    SessionState,
)
from uno_server.services.dealing import plan_deal

T = TypeVar("T")


@dataclass(frozen=True)
class Commit(Generic[T]):
    """Writes produced by a unit of work plus the value handed back to the caller."""

    batch: MutationBatch
    value: T


class SessionStore(Protocol):
    """Persistence interface for sessions, rosters and cards."""

    def get_session(self, session_id: UUID) -> GameSession | None:
        """Return a session by id, if present."""

    def get_roster(self, session_id: UUID) -> list[RosterEntry]:
        """Return roster entries ordered by join time."""

    def get_cards(
        self, session_id: UUID, position: CardPosition | None = None
    ) -> list[Card]:
        """Return session cards ordered by order index, optionally filtered."""

    def run_atomic(
        self,
        session_id: UUID,
        unit: Callable[[SessionSnapshot], Commit[T]],
        include_cards: bool = False,
    ) -> T:
        """Run ``unit`` on a fresh snapshot and commit its batch as one unit.

        Units on the same session never interleave. Exceptions raised by
        ``unit`` abort without writing. Raises ``StoreConflictError`` when the
        batch cannot be committed serializably.
        """


@dataclass(frozen=True)
class GameStateView:
    """Summary of a session for polling clients."""

    session: GameSession
    players_count: int
    top_card: Card | None


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class GameService:
    """Application service driving the session lifecycle."""

    store: SessionStore
    rng: random.Random | None = None
    clock: Callable[[], datetime] = field(default=_utcnow)

    def create_game(
        self, name: str | None, rules: str | None, creator_id: UUID
    ) -> CommandResult[GameSession]:
        """Create a waiting session with a full deck and seat its creator."""
        validation = validate_game_input(name)
        if not validation.ok:
            return Failure(ErrorKind.INVALID_INPUT, validation.message)
        session_id = uuid4()

        def unit(snapshot: SessionSnapshot) -> Commit[GameSession]:
            now = self.clock()
            session = GameSession(
                id=session_id,
                name=str(name).strip(),
                rules=rules,
                state=SessionState.WAITING,
                creator_id=creator_id,
                current_player_id=None,
                created_at=now,
            )
            deck = [
                replace(card, order_index=index)
                for index, card in enumerate(generate_deck())
            ]
            batch = MutationBatch(
                new_session=session,
                roster_inserts=[
                    RosterEntry(
                        session_id=session_id, player_id=creator_id, joined_at=now
                    )
                ],
                card_inserts=deck,
            )
            return Commit(batch, session)

        return self._execute(session_id, unit)

    def join_game(
        self, session_id: UUID, player_id: UUID
    ) -> CommandResult[RosterEntry]:
        """Seat a player in a waiting session."""

        def unit(snapshot: SessionSnapshot) -> Commit[RosterEntry]:
            session = _require_session(snapshot)
            if not can_join(session, snapshot.roster):
                raise GameRuleError(
                    ErrorKind.INVALID_STATE,
                    "Cannot join game - may be full or already started",
                )
            if snapshot.find_member(player_id) is not None:
                raise GameRuleError(ErrorKind.ALREADY_MEMBER, "User already in game")
            entry = RosterEntry(
                session_id=session_id, player_id=player_id, joined_at=self.clock()
            )
            return Commit(MutationBatch(roster_inserts=[entry]), entry)

        return self._execute(session_id, unit)

    def set_ready(
        self, session_id: UUID, player_id: UUID, is_ready: bool = True
    ) -> CommandResult[RosterEntry]:
        """Update a member's ready flag while the session is waiting."""

        def unit(snapshot: SessionSnapshot) -> Commit[RosterEntry]:
            session = _require_session(snapshot)
            entry = _require_member(snapshot, player_id)
            if session.state != SessionState.WAITING:
                raise GameRuleError(
                    ErrorKind.INVALID_STATE, "Game is not in waiting state"
                )
            updated = replace(entry, is_ready=is_ready)
            return Commit(MutationBatch(roster_updates=[updated]), updated)

        return self._execute(session_id, unit)

    def start_game(
        self, session_id: UUID, requester_id: UUID
    ) -> CommandResult[GameSession]:
        """Deal the cards and hand the first turn to the earliest joiner."""

        def unit(snapshot: SessionSnapshot) -> Commit[GameSession]:
            session = _require_session(snapshot)
            if session.creator_id != requester_id:
                raise GameRuleError(
                    ErrorKind.FORBIDDEN, "Only game creator can start the game"
                )
            if session.state != SessionState.WAITING:
                raise GameRuleError(
                    ErrorKind.INVALID_STATE, "Game is not in waiting state"
                )
            if not can_start(snapshot.roster):
                raise GameRuleError(
                    ErrorKind.ROSTER_NOT_READY,
                    "Not enough players or not all players are ready",
                )
            if len(snapshot.cards) != DECK_SIZE:
                raise DealInvariantError(
                    f"Game holds {len(snapshot.cards)} cards, expected {DECK_SIZE}"
                )
            plan = plan_deal(
                snapshot.cards_at(CardPosition.DECK), snapshot.roster, self.rng
            )
            started = replace(
                session,
                state=SessionState.IN_PROGRESS,
                current_player_id=snapshot.roster[0].player_id,
            )
            batch = MutationBatch(
                session_update=started, card_updates=plan.card_updates
            )
            return Commit(batch, started)

        return self._execute(session_id, unit, include_cards=True)

    def leave_game(
        self, session_id: UUID, player_id: UUID
    ) -> CommandResult[GameSession]:
        """Remove a player, passing the turn on or finishing an emptied game."""

        def unit(snapshot: SessionSnapshot) -> Commit[GameSession]:
            session = _require_session(snapshot)
            if session.state == SessionState.FINISHED:
                return Commit(MutationBatch(), session)
            _require_member(snapshot, player_id)
            batch = MutationBatch(roster_deletes=[player_id])
            if session.state == SessionState.WAITING:
                return Commit(batch, session)

            remaining = _players_after(snapshot.roster, player_id)
            if not remaining:
                updated = replace(
                    session, state=SessionState.FINISHED, current_player_id=None
                )
            elif session.current_player_id == player_id:
                updated = replace(session, current_player_id=remaining[0])
            else:
                return Commit(batch, session)
            batch.session_update = updated
            return Commit(batch, updated)

        return self._execute(session_id, unit)

    def end_game(
        self, session_id: UUID, requester_id: UUID
    ) -> CommandResult[GameSession]:
        """Finish a session on its creator's request."""

        def unit(snapshot: SessionSnapshot) -> Commit[GameSession]:
            session = _require_session(snapshot)
            if session.creator_id != requester_id:
                raise GameRuleError(
                    ErrorKind.FORBIDDEN, "Only game creator can end the game"
                )
            if session.state == SessionState.FINISHED:
                raise GameRuleError(
                    ErrorKind.ALREADY_FINISHED, "Game is already finished"
                )
            finished = replace(session, state=SessionState.FINISHED)
            return Commit(MutationBatch(session_update=finished), finished)

        return self._execute(session_id, unit)

    def get_game_state(self, session_id: UUID) -> CommandResult[GameStateView]:
        """Return the session summary with player count and top card."""
        session = self.store.get_session(session_id)
        if session is None:
            return _not_found()
        roster = self.store.get_roster(session_id)
        return Success(
            GameStateView(
                session=session,
                players_count=len(roster),
                top_card=self._top_card(session_id),
            )
        )

    def get_players(self, session_id: UUID) -> CommandResult[list[RosterEntry]]:
        """Return the roster in join order."""
        if self.store.get_session(session_id) is None:
            return _not_found()
        return Success(self.store.get_roster(session_id))

    def get_current_player(self, session_id: UUID) -> CommandResult[UUID | None]:
        """Return the player holding the turn, if any."""
        session = self.store.get_session(session_id)
        if session is None:
            return _not_found()
        if session.current_player_id is None:
            return Success(None)
        roster = self.store.get_roster(session_id)
        if any(entry.player_id == session.current_player_id for entry in roster):
            return Success(session.current_player_id)
        return Failure(
            ErrorKind.INVARIANT,
            f"Current player {session.current_player_id} is not seated in the game",
        )

    def get_top_card(self, session_id: UUID) -> CommandResult[Card | None]:
        """Return the top of the discard pile."""
        if self.store.get_session(session_id) is None:
            return _not_found()
        return Success(self._top_card(session_id))

    def get_player_scores(self, session_id: UUID) -> CommandResult[dict[UUID, int]]:
        """Return each rostered player's score."""
        if self.store.get_session(session_id) is None:
            return _not_found()
        roster = self.store.get_roster(session_id)
        return Success({entry.player_id: entry.score for entry in roster})

    def get_player_hand(
        self, session_id: UUID, player_id: UUID
    ) -> CommandResult[list[Card]]:
        """Return a member's hand in deal order."""
        if self.store.get_session(session_id) is None:
            return _not_found()
        roster = self.store.get_roster(session_id)
        if not any(entry.player_id == player_id for entry in roster):
            return Failure(ErrorKind.NOT_MEMBER, "Player not in game")
        hand = self.store.get_cards(session_id, CardPosition.HAND)
        return Success([card for card in hand if card.player_id == player_id])

    def _top_card(self, session_id: UUID) -> Card | None:
        discard = self.store.get_cards(session_id, CardPosition.DISCARD)
        if not discard:
            return None
        return max(discard, key=lambda card: card.order_index)

    def _execute(
        self,
        session_id: UUID,
        unit: Callable[[SessionSnapshot], Commit[T]],
        include_cards: bool = False,
    ) -> CommandResult[T]:
        try:
            value = self.store.run_atomic(session_id, unit, include_cards)
        except GameRuleError as exc:
            return Failure(exc.kind, exc.message)
        except StoreConflictError as exc:
            return Failure(ErrorKind.CONFLICT, str(exc) or "Transaction conflict")
        except DealInvariantError as exc:
            return Failure(ErrorKind.INVARIANT, str(exc))
        return Success(value)


def _require_session(snapshot: SessionSnapshot) -> GameSession:
    if snapshot.session is None:
        raise GameRuleError(ErrorKind.NOT_FOUND, "Game not found")
    return snapshot.session


def _require_member(snapshot: SessionSnapshot, player_id: UUID) -> RosterEntry:
    entry = snapshot.find_member(player_id)
    if entry is None:
        raise GameRuleError(ErrorKind.NOT_MEMBER, "Player not in game")
    return entry


def _players_after(roster: list[RosterEntry], player_id: UUID) -> list[UUID]:
    """Other players in join order, starting right after ``player_id`` and wrapping."""
    ids = [entry.player_id for entry in roster]
    index = ids.index(player_id)
    return ids[index + 1 :] + ids[:index]


def _not_found() -> Failure:
    return Failure(ErrorKind.NOT_FOUND, "Game not found")
