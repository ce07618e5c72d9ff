"""Tests for roster policy and creation validation."""

from datetime import UTC, datetime
from uuid import uuid4

from uno_server.domain.rules import (
    MAX_PLAYERS,
    can_join,
    can_start,
    validate_game_input,
)
from uno_server.domain.sessions import GameSession, RosterEntry, SessionState

_NOW = datetime(2024, 1, 1, tzinfo=UTC)


def _session(state: SessionState) -> GameSession:
    return GameSession(
        id=uuid4(),
        name="Table",
        rules=None,
        state=state,
        creator_id=uuid4(),
        current_player_id=None,
        created_at=_NOW,
    )


def _roster(size: int, ready: bool = False) -> list[RosterEntry]:
    session_id = uuid4()
    return [
        RosterEntry(
            session_id=session_id, player_id=uuid4(), joined_at=_NOW, is_ready=ready
        )
        for _ in range(size)
    ]


def test_can_join_only_waiting_sessions_with_free_seats() -> None:
    assert can_join(_session(SessionState.WAITING), _roster(3))
    assert not can_join(_session(SessionState.WAITING), _roster(MAX_PLAYERS))
    assert not can_join(_session(SessionState.IN_PROGRESS), _roster(1))
    assert not can_join(_session(SessionState.FINISHED), _roster(0))


def test_can_join_respects_custom_capacity() -> None:
    assert not can_join(_session(SessionState.WAITING), _roster(2), max_players=2)


def test_can_start_requires_size_bounds_and_everyone_ready() -> None:
    assert can_start(_roster(2, ready=True))
    assert can_start(_roster(4, ready=True))
    assert not can_start(_roster(1, ready=True))
    assert not can_start(_roster(5, ready=True))
    assert not can_start(_roster(3, ready=False))

    mixed = _roster(3, ready=True)
    mixed[1] = RosterEntry(
        session_id=mixed[1].session_id,
        player_id=mixed[1].player_id,
        joined_at=_NOW,
        is_ready=False,
    )
    assert not can_start(mixed)


def test_validate_game_input_accepts_trimmed_names_in_bounds() -> None:
    assert validate_game_input("abc").ok
    assert validate_game_input("  Friends Night  ").ok
    assert validate_game_input("x" * 50).ok


def test_validate_game_input_reports_violation_codes() -> None:
    missing = validate_game_input(None)
    assert not missing.ok
    assert missing.codes == ["name_required", "name_length"]

    blank = validate_game_input("   ")
    assert blank.codes == ["name_required", "name_length"]

    short = validate_game_input(" ab ")
    assert short.codes == ["name_length"]
    assert short.message == "Game name must be between 3-50 characters"

    assert validate_game_input("x" * 51).codes == ["name_length"]
