"""Health check and per-game settings endpoints."""

from fastapi import APIRouter, HTTPException
from pydantic import ValidationError

from backend import games
from quest_narrator.models import GameSettings

router = APIRouter()


@router.get("/health")
async def health():
    """Health check."""
    return {"status": "ok"}


@router.get("/games/{game_id}/settings")
async def get_settings(game_id: str):
    """Get a game's settings (verbosity, difficulty, dice display)."""
    game = games.get_game(game_id)
    if game is None:
        raise HTTPException(404, "Game not found")
    return game.settings.model_dump(by_alias=True)


@router.patch("/games/{game_id}/settings")
async def update_settings(game_id: str, body: dict):
    """Update a game's settings (partial merge). Applies from the next turn."""
    game = games.get_game(game_id)
    if game is None:
        raise HTTPException(404, "Game not found")
    # accept field names or camelCase aliases; anything else is an error
    names = {f.alias or name: name for name, f in GameSettings.model_fields.items()}
    names.update({name: name for name in GameSettings.model_fields})
    unknown = sorted(k for k in body if k not in names)
    if unknown:
        raise HTTPException(422, f"Unknown settings: {', '.join(unknown)}")
    merged = {**game.settings.model_dump(), **{names[k]: v for k, v in body.items()}}
    try:
        settings = GameSettings.model_validate(merged)
    except ValidationError as e:
        raise HTTPException(422, e.errors(include_url=False))
    return game.update_settings(settings).model_dump(by_alias=True)
