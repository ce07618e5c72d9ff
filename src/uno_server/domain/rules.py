"""Roster policy and input validation rules for game sessions."""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from uno_server.domain.sessions import GameSession, RosterEntry, SessionState

MIN_PLAYERS = 2
MAX_PLAYERS = 4
HAND_SIZE = 7
NAME_MIN_LENGTH = 3
NAME_MAX_LENGTH = 50


def can_join(
    session: GameSession,
    roster: Sequence[RosterEntry],
    max_players: int = MAX_PLAYERS,
) -> bool:
    """Return True when the session still accepts players."""
    return session.state == SessionState.WAITING and len(roster) < max_players


def can_start(
    roster: Sequence[RosterEntry],
    min_players: int = MIN_PLAYERS,
    max_players: int = MAX_PLAYERS,
) -> bool:
    """Return True when the roster size is in range and everyone is ready."""
    return min_players <= len(roster) <= max_players and all(
        entry.is_ready for entry in roster
    )


@dataclass(frozen=True)
class ValidationRule:
    """A single named check over creation input."""

    code: str
    message: str
    check: Callable[[str | None], bool]


@dataclass(frozen=True)
class ValidationOutcome:
    """Result of applying validation rules; empty violations means ok."""

    violations: list[ValidationRule] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.violations

    @property
    def codes(self) -> list[str]:
        return [rule.code for rule in self.violations]

    @property
    def message(self) -> str:
        return ", ".join(rule.message for rule in self.violations)


def _name_present(name: str | None) -> bool:
    return bool(name and name.strip())


def _name_length(name: str | None) -> bool:
    if not name:
        return False
    return NAME_MIN_LENGTH <= len(name.strip()) <= NAME_MAX_LENGTH


GAME_CREATION_RULES: tuple[ValidationRule, ...] = (
    ValidationRule("name_required", "Game name is required", _name_present),
    ValidationRule(
        "name_length",
        f"Game name must be between {NAME_MIN_LENGTH}-{NAME_MAX_LENGTH} characters",
        _name_length,
    ),
)


def validate_game_input(
    name: str | None,
    rules: Sequence[ValidationRule] = GAME_CREATION_RULES,
) -> ValidationOutcome:
    """Apply every rule in order and collect the failing ones."""
    return ValidationOutcome([rule for rule in rules if not rule.check(name)])
