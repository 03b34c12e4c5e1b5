"""Game lifecycle endpoints: create, start, act, restart, delete."""

from fastapi import APIRouter, HTTPException

from backend import games
from quest_narrator.controller import SessionStartError
from quest_narrator.game import ActionRejectedError, Game
from quest_narrator.models import Character

from .models import ActionBody, CreateGame

router = APIRouter()


def _require_game(game_id: str) -> Game:
    game = games.get_game(game_id)
    if game is None:
        raise HTTPException(404, "Game not found")
    return game


@router.post("/games", status_code=201)
async def create_game(body: CreateGame | None = None):
    """Create an empty game. Returns its id and initial view."""
    settings = body.settings if body else None
    game_id, game = games.create_game(settings)
    return {"id": game_id, **game.view()}


@router.get("/games/{game_id}")
async def get_game(game_id: str):
    """Current view: game state, messages, suggestions, effect, settings, gate."""
    return {"id": game_id, **_require_game(game_id).view()}


@router.delete("/games/{game_id}")
async def delete_game(game_id: str):
    """Drop a game and its narrator session."""
    if not games.delete_game(game_id):
        raise HTTPException(404, "Game not found")
    return {"ok": True}


@router.post("/games/{game_id}/start")
async def start_game(game_id: str, body: Character):
    """Open the narrator session for a new character."""
    game = _require_game(game_id)
    try:
        await game.start_game(body)
    except ActionRejectedError as e:
        raise HTTPException(409, str(e))
    except SessionStartError:
        raise HTTPException(
            502,
            "Failed to contact the narrator. Please check your connection or API key.",
        )
    return {"id": game_id, **game.view()}


@router.post("/games/{game_id}/actions")
async def submit_action(game_id: str, body: ActionBody):
    """Send a player action. A narrator failure still returns 200 with a notice."""
    game = _require_game(game_id)
    try:
        await game.submit_action(body.action)
    except ActionRejectedError as e:
        raise HTTPException(409, str(e))
    return {"id": game_id, **game.view()}


@router.post("/games/{game_id}/restart")
async def restart_game(game_id: str):
    """Discard the session and reset to the initial state."""
    game = _require_game(game_id)
    try:
        game.restart()
    except ActionRejectedError as e:
        raise HTTPException(409, str(e))
    return {"id": game_id, **game.view()}
