"""Game — one play-through seen from the UI boundary.

Wires a TurnController to the presentation reducer and owns the settings
and the is-processing gate. The UI (or the HTTP layer standing in for it)
only ever calls:

    start_game(character)   update_settings(settings)
    submit_action(text)     restart()
    view()

At most one exchange is in flight per game. While one is outstanding,
further start/submit/restart calls raise ActionRejectedError and nothing
is sent or reset.
The gate always reopens, whatever the outcome.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

from quest_narrator import reducer
from quest_narrator.controller import (
    DEFAULT_TURN_TIMEOUT,
    TurnController,
    TurnExchangeError,
)
from quest_narrator.llm import LLM
from quest_narrator.models import Character, GameSettings
from quest_narrator.reducer import PresentationState

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


class ActionRejectedError(RuntimeError):
    """Raised when the UI submits input the game cannot accept right now."""


class Game:
    def __init__(
        self,
        llm: LLM,
        settings: GameSettings | None = None,
        *,
        timeout: float | None = DEFAULT_TURN_TIMEOUT,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.controller = TurnController(llm, timeout=timeout)
        self.settings = settings or GameSettings()
        self.state = PresentationState()
        self._clock = clock

    @property
    def is_processing(self) -> bool:
        return self.state.is_processing

    async def start_game(self, character: Character) -> PresentationState:
        """Open a session for ``character`` and seed the state from the opening turn.

        SessionStartError propagates; the state and any session already in
        play are left as they were.
        """
        if self.state.is_processing:
            raise ActionRejectedError("The narrator is still busy")

        self.state = self.state.model_copy(update={"is_processing": True})
        try:
            response = await self.controller.open_session(character, self.settings)
            self.state = reducer.apply_opening(self.state, response, self._clock())
        finally:
            self.state = reducer.finish_processing(self.state)
        return self.state

    async def submit_action(self, action_text: str) -> PresentationState:
        """Send one action. A mid-game failure becomes a narrator notice."""
        if self.state.is_processing:
            raise ActionRejectedError("The narrator is still busy")
        if not self.state.is_playing or not self.controller.has_session:
            raise ActionRejectedError("No adventure in progress")
        if self.state.game_state.game_over:
            raise ActionRejectedError("The adventure is over")
        if not action_text.strip():
            raise ActionRejectedError("Action text is empty")

        self.state = reducer.begin_action(self.state, action_text, self._clock())
        try:
            response = await self.controller.submit_action(action_text, self.settings)
        except TurnExchangeError:
            logger.exception("Error sending action")
            self.state = reducer.apply_failure(self.state, self._clock())
        else:
            self.state = reducer.apply_turn(self.state, response, self._clock())
        finally:
            self.state = reducer.finish_processing(self.state)
        return self.state

    def restart(self) -> PresentationState:
        """Drop the session and reset to the initial state. Refused while busy."""
        if self.state.is_processing:
            raise ActionRejectedError("The narrator is still busy")
        self.controller.close_session()
        self.state = reducer.restart(self.state)
        logger.info("game restarted")
        return self.state

    def update_settings(self, settings: GameSettings) -> GameSettings:
        """Replace the settings; the next outgoing turn carries them."""
        self.settings = settings
        return self.settings

    def view(self) -> dict[str, Any]:
        """Everything the UI renders, in wire (camelCase) form."""
        now = self._clock()
        self.state = reducer.expire_effect(self.state, now)
        return {
            "gameState": self.state.game_state.model_dump(by_alias=True),
            "messages": [
                m.model_dump(by_alias=True, exclude_none=True) for m in self.state.messages
            ],
            "suggestedActions": list(self.state.suggested_actions),
            "visualEffect": reducer.active_effect(self.state, now),
            "settings": self.settings.model_dump(by_alias=True),
            "isProcessing": self.state.is_processing,
            "isPlaying": self.state.is_playing,
            "warnings": list(self.controller.last_issues),
        }
