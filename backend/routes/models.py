"""Pydantic request bodies for API endpoints."""

from pydantic import BaseModel, Field

from quest_narrator.models import GameSettings


class CreateGame(BaseModel):
    settings: GameSettings | None = None


class ActionBody(BaseModel):
    action: str = Field(min_length=1)
