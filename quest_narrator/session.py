"""Chat session — the conversational context held for one game.

The remote services are stateless, so the session keeps the system
instruction, the response schema and the turn history locally and replays
them on every call. Only successful exchanges are recorded.
"""

from __future__ import annotations

import logging
from typing import Any

from quest_narrator.llm import LLM, ChatRequest, ChatTurn

logger = logging.getLogger(__name__)


class ChatSession:
    def __init__(
        self,
        llm: LLM,
        system_instruction: str,
        response_schema: dict[str, Any],
    ) -> None:
        self._llm = llm
        self.system_instruction = system_instruction
        self.response_schema = response_schema
        self.history: list[ChatTurn] = []

    async def send(self, message: str, stage: str = "turn") -> str:
        """Send one user message and return the raw reply.

        The user message and the reply are appended to the history only
        after the call returns.
        """
        request = ChatRequest(
            system_instruction=self.system_instruction,
            response_schema=self.response_schema,
            turns=[*self.history, ChatTurn(role="user", text=message)],
        )
        reply = await self._llm(stage, request)
        self.history.append(ChatTurn(role="user", text=message))
        self.history.append(ChatTurn(role="model", text=reply))
        return reply

    def discard_last_exchange(self) -> None:
        """Forget the most recent user/model pair (used when a reply is rejected)."""
        if len(self.history) >= 2:
            del self.history[-2:]
            logger.debug("discarded last exchange, %d turns remain", len(self.history))
