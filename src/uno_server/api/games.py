"""Game lifecycle and query endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from uno_server.api.models import CreateGameRequest, GameRequest, ReadyRequest
from uno_server.domain.cards import Card, describe_card
from uno_server.domain.results import CommandResult, ErrorKind, Failure
from uno_server.domain.sessions import GameSession, RosterEntry
from uno_server.services.games import GameService  # noqa: TC001

if TYPE_CHECKING:
    from uno_server.containers import AppContainer

T = TypeVar("T")

router = APIRouter(prefix="/games", tags=["games"])

ERROR_STATUS: dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.NOT_MEMBER: status.HTTP_400_BAD_REQUEST,
    ErrorKind.ALREADY_MEMBER: status.HTTP_409_CONFLICT,
    ErrorKind.INVALID_STATE: status.HTTP_400_BAD_REQUEST,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.ROSTER_NOT_READY: status.HTTP_400_BAD_REQUEST,
    ErrorKind.ALREADY_FINISHED: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.CONFLICT: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorKind.INVARIANT: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class GameApiError(Exception):
    """A failed command that should be rendered as an error response."""

    def __init__(self, failure: Failure) -> None:
        super().__init__(failure.message)
        self.failure = failure

    @property
    def status_code(self) -> int:
        return ERROR_STATUS.get(
            self.failure.kind, status.HTTP_500_INTERNAL_SERVER_ERROR
        )


def _game_service(request: Request) -> GameService:
    container: AppContainer = request.app.state.container
    return container.game_service


def require_player(x_player_id: str | None = Header(default=None)) -> UUID:
    """Return the acting player's id from the identity header."""
    if not x_player_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Player id required"
        )
    try:
        return UUID(x_player_id)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid player id"
        ) from exc


def _unwrap(result: CommandResult[T]) -> T:
    if isinstance(result, Failure):
        raise GameApiError(result)
    return result.value


@router.post("/create", status_code=status.HTTP_201_CREATED)
def create_game(
    payload: CreateGameRequest,
    player_id: UUID = Depends(require_player),
    service: GameService = Depends(_game_service),
) -> dict[str, object]:
    """Create a game and seat its creator."""
    session = _unwrap(service.create_game(payload.name, payload.rules, player_id))
    return {
        "message": "Game created successfully",
        "game_id": str(session.id),
        "game": _format_session(session),
    }


@router.post("/join")
def join_game(
    payload: GameRequest,
    player_id: UUID = Depends(require_player),
    service: GameService = Depends(_game_service),
) -> dict[str, object]:
    """Join a waiting game."""
    _unwrap(service.join_game(payload.game_id, player_id))
    return {"message": "User joined the game successfully"}


@router.post("/ready")
def set_ready(
    payload: ReadyRequest,
    player_id: UUID = Depends(require_player),
    service: GameService = Depends(_game_service),
) -> dict[str, object]:
    """Update the acting player's ready flag."""
    entry = _unwrap(service.set_ready(payload.game_id, player_id, payload.is_ready))
    return {"message": f"Player ready status updated to {entry.is_ready}"}


@router.post("/start")
def start_game(
    payload: GameRequest,
    player_id: UUID = Depends(require_player),
    service: GameService = Depends(_game_service),
) -> dict[str, object]:
    """Deal cards and start the game."""
    _unwrap(service.start_game(payload.game_id, player_id))
    return {"message": "Game started successfully"}


@router.post("/leave")
def leave_game(
    payload: GameRequest,
    player_id: UUID = Depends(require_player),
    service: GameService = Depends(_game_service),
) -> dict[str, object]:
    """Leave a game."""
    _unwrap(service.leave_game(payload.game_id, player_id))
    return {"message": "User left the game successfully"}


@router.post("/end")
def end_game(
    payload: GameRequest,
    player_id: UUID = Depends(require_player),
    service: GameService = Depends(_game_service),
) -> dict[str, object]:
    """Finish a game."""
    _unwrap(service.end_game(payload.game_id, player_id))
    return {"message": "Game ended successfully"}


@router.post("/state")
def game_state(
    payload: GameRequest, service: GameService = Depends(_game_service)
) -> dict[str, object]:
    """Return the game summary."""
    view = _unwrap(service.get_game_state(payload.game_id))
    session = view.session
    return {
        "game_id": str(session.id),
        "state": session.state.value,
        "name": session.name,
        "creator_id": str(session.creator_id),
        "current_player_id": _optional_id(session.current_player_id),
        "players_count": view.players_count,
        "top_card": _format_card(view.top_card) if view.top_card else None,
    }


@router.post("/players")
def game_players(
    payload: GameRequest, service: GameService = Depends(_game_service)
) -> dict[str, object]:
    """Return the roster in join order."""
    roster = _unwrap(service.get_players(payload.game_id))
    return {
        "game_id": str(payload.game_id),
        "players": [_format_entry(entry) for entry in roster],
    }


@router.post("/current-player")
def current_player(
    payload: GameRequest, service: GameService = Depends(_game_service)
) -> dict[str, object]:
    """Return the player holding the turn."""
    player_id = _unwrap(service.get_current_player(payload.game_id))
    return {
        "game_id": str(payload.game_id),
        "current_player": _optional_id(player_id),
    }


@router.post("/top-card")
def top_card(
    payload: GameRequest, service: GameService = Depends(_game_service)
) -> dict[str, object]:
    """Return the top discard card."""
    card = _unwrap(service.get_top_card(payload.game_id))
    return {
        "game_id": str(payload.game_id),
        "top_card": describe_card(card) if card else None,
    }


@router.post("/scores")
def player_scores(
    payload: GameRequest, service: GameService = Depends(_game_service)
) -> dict[str, object]:
    """Return scores keyed by player id."""
    scores = _unwrap(service.get_player_scores(payload.game_id))
    return {
        "game_id": str(payload.game_id),
        "scores": {str(player_id): score for player_id, score in scores.items()},
    }


@router.post("/hand")
def player_hand(
    payload: GameRequest,
    player_id: UUID = Depends(require_player),
    service: GameService = Depends(_game_service),
) -> dict[str, object]:
    """Return the acting player's hand in deal order."""
    cards = _unwrap(service.get_player_hand(payload.game_id, player_id))
    return {
        "game_id": str(payload.game_id),
        "cards": [_format_card(card) for card in cards],
    }


def _optional_id(value: UUID | None) -> str | None:
    return str(value) if value else None


def _format_session(session: GameSession) -> dict[str, object]:
    return {
        "id": str(session.id),
        "name": session.name,
        "rules": session.rules,
        "state": session.state.value,
        "creator_id": str(session.creator_id),
        "current_player_id": _optional_id(session.current_player_id),
        "created_at": session.created_at.isoformat(),
    }


def _format_entry(entry: RosterEntry) -> dict[str, object]:
    return {
        "player_id": str(entry.player_id),
        "score": entry.score,
        "is_ready": entry.is_ready,
        "joined_at": entry.joined_at.isoformat(),
    }


def _format_card(card: Card) -> dict[str, object]:
    return {
        "id": str(card.id),
        "type": card.card_type.value,
        "value": card.value,
        "color": card.color.value if card.color else None,
    }
