"""Turn controller — one narrator session per game.

Opens a structured chat session from a character and settings, forwards each
player action with the current settings re-asserted, and parses every reply
into a TurnResponse. Nothing is retried here: failures are raised to the
caller, which decides how to surface them.

Exceptions:
  SessionStartError     — the opening exchange failed (transport, timeout,
                          empty reply, invalid JSON or schema mismatch).
  NoActiveSessionError  — an action was submitted with no open session.
  GameOverError         — an action was submitted after the narrator ended
                          the game; a restart is required.
  TurnExchangeError     — a mid-game exchange failed; the session survives
                          and the same action may be resubmitted.
"""

from __future__ import annotations

import asyncio
import logging

from pydantic import ValidationError

from quest_narrator.llm import LLM, LLMError
from quest_narrator.models import Character, GameSettings, TurnResponse, contract_issues
from quest_narrator.prompts import (
    KICKOFF_MESSAGE,
    build_system_instruction,
    build_turn_message,
)
from quest_narrator.schema import TURN_RESPONSE_SCHEMA
from quest_narrator.session import ChatSession

logger = logging.getLogger(__name__)

DEFAULT_TURN_TIMEOUT = 120.0


class TurnControllerError(RuntimeError):
    """Base class for turn controller failures."""


class SessionStartError(TurnControllerError):
    pass


class NoActiveSessionError(TurnControllerError):
    pass


class GameOverError(TurnControllerError):
    pass


class TurnExchangeError(TurnControllerError):
    pass


class ReplyError(ValueError):
    """Raised by parse_reply for an empty or non-conforming reply."""


def parse_reply(text: str | None) -> TurnResponse:
    if not text or not text.strip():
        raise ReplyError("No response from the narrator")
    try:
        return TurnResponse.model_validate_json(text)
    except ValidationError as e:
        raise ReplyError(f"Narrator reply does not match the turn schema: {e}") from e


class TurnController:
    """Owns the narrator session for a single game.

    Args:
        llm:     The LLM callable used for every exchange.
        timeout: Seconds to wait for one exchange before giving up, or None
                 to wait indefinitely. Defaults to 120.
    """

    def __init__(self, llm: LLM, timeout: float | None = DEFAULT_TURN_TIMEOUT) -> None:
        self._llm = llm
        self._timeout = timeout
        self.session: ChatSession | None = None
        self.game_over = False
        self.last_issues: list[str] = []

    @property
    def has_session(self) -> bool:
        return self.session is not None

    async def open_session(self, character: Character, settings: GameSettings) -> TurnResponse:
        """Start a new session and return the opening turn.

        Replaces any session that was already open, but only once the
        opening exchange succeeds; on failure the old session stays usable.
        """
        session = ChatSession(
            self._llm,
            build_system_instruction(character, settings),
            TURN_RESPONSE_SCHEMA,
        )
        logger.info(
            "opening session for %s the %s (difficulty=%s verbosity=%d)",
            character.name, character.character_class,
            settings.difficulty, settings.verbosity_level,
        )
        try:
            response = await self._exchange(session, KICKOFF_MESSAGE, "opening")
        except (LLMError, ReplyError, asyncio.TimeoutError) as e:
            logger.error("Failed to start game: %s", e)
            raise SessionStartError(f"Could not start the adventure: {e}") from e

        self.close_session()
        self.session = session
        self._accept(response)
        return response

    async def submit_action(self, action_text: str, settings: GameSettings) -> TurnResponse:
        """Send one player action and return the narrator's turn."""
        if self.session is None:
            raise NoActiveSessionError("Game not started")
        if self.game_over:
            raise GameOverError("The adventure is over; restart to play again")

        message = build_turn_message(action_text, settings)
        try:
            response = await self._exchange(self.session, message, "turn")
        except (LLMError, ReplyError, asyncio.TimeoutError) as e:
            logger.error("Failed to send action: %s", e)
            raise TurnExchangeError(f"Turn failed: {e}") from e

        self._accept(response)
        return response

    def close_session(self) -> None:
        if self.session is not None:
            logger.info("closing session after %d turns", len(self.session.history) // 2)
        self.session = None
        self.game_over = False
        self.last_issues = []

    async def _exchange(self, session: ChatSession, message: str, stage: str) -> TurnResponse:
        if self._timeout is None:
            reply = await session.send(message, stage)
        else:
            reply = await asyncio.wait_for(session.send(message, stage), self._timeout)
        try:
            return parse_reply(reply)
        except ReplyError:
            session.discard_last_exchange()
            raise

    def _accept(self, response: TurnResponse) -> None:
        self.last_issues = contract_issues(response)
        for issue in self.last_issues:
            logger.warning("narrator broke the rules: %s", issue)
        if response.game_state.game_over:
            logger.info("narrator ended the game at %s", response.game_state.location)
            self.game_over = True
