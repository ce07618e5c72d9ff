"""Typed command results and error kinds for the game engine."""

from dataclasses import dataclass
from enum import StrEnum
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorKind(StrEnum):
    """Reasons a command can fail."""

    NOT_FOUND = "not_found"
    NOT_MEMBER = "not_member"
    ALREADY_MEMBER = "already_member"
    INVALID_STATE = "invalid_state"
    FORBIDDEN = "forbidden"
    ROSTER_NOT_READY = "roster_not_ready"
    ALREADY_FINISHED = "already_finished"
    INVALID_INPUT = "invalid_input"
    CONFLICT = "conflict"
    INVARIANT = "invariant"


RETRYABLE_KINDS = frozenset({ErrorKind.CONFLICT})


@dataclass(frozen=True)
class Success(Generic[T]):
    """Successful command outcome carrying its payload."""

    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    """Failed command outcome."""

    kind: ErrorKind
    message: str

    @property
    def ok(self) -> bool:
        return False

    @property
    def retryable(self) -> bool:
        return self.kind in RETRYABLE_KINDS


CommandResult = Success[T] | Failure


class GameRuleError(Exception):
    """Raised inside a unit of work to abort it without writing."""

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message


class StoreConflictError(Exception):
    """The store could not commit a unit of work serializably."""


class DealInvariantError(Exception):
    """Session cards are inconsistent with the roster at deal time."""
