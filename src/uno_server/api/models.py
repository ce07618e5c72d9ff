"""Pydantic models for game API request payloads."""

from uuid import UUID

from pydantic import BaseModel, Field


class CreateGameRequest(BaseModel):
    """Payload for creating a game."""

    name: str | None = None
    rules: str | None = None


class GameRequest(BaseModel):
    """Payload addressing a single game."""

    game_id: UUID


class ReadyRequest(GameRequest):
    """Payload for toggling the ready flag."""

    is_ready: bool = Field(default=True)
