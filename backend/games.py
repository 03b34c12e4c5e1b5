"""In-memory game registry.

Each browser tab gets its own Game, keyed by a random id. Nothing is
persisted; restarting the server drops every game.

Call init_games() before use (create_app() does this; tests re-init it
with a stub narrator).
"""

import logging
import uuid
from collections.abc import Callable

from quest_narrator.controller import DEFAULT_TURN_TIMEOUT
from quest_narrator.game import Game
from quest_narrator.llm import LLM
from quest_narrator.models import GameSettings

logger = logging.getLogger(__name__)

_games: dict[str, Game] = {}
_llm_factory: Callable[[], LLM] | None = None
_timeout: float | None = DEFAULT_TURN_TIMEOUT


def init_games(llm_factory: Callable[[], LLM], timeout: float | None = DEFAULT_TURN_TIMEOUT) -> None:
    global _llm_factory, _timeout
    _games.clear()
    _llm_factory = llm_factory
    _timeout = timeout


def create_game(settings: GameSettings | None = None) -> tuple[str, Game]:
    assert _llm_factory is not None, "Call init_games() before creating games"
    game_id = uuid.uuid4().hex[:12]
    game = Game(_llm_factory(), settings, timeout=_timeout)
    _games[game_id] = game
    logger.info("created game %s (%d active)", game_id, len(_games))
    return game_id, game


def get_game(game_id: str) -> Game | None:
    return _games.get(game_id)


def delete_game(game_id: str) -> bool:
    game = _games.pop(game_id, None)
    if game is None:
        return False
    game.controller.close_session()
    return True


def list_games() -> list[str]:
    return list(_games)
