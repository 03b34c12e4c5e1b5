"""Shared test helpers: a scripted LLM and TurnResponse payload builders."""

import asyncio
import json
from typing import Any

from quest_narrator.llm import ChatRequest


HANG = object()


class StubLLM:
    """Replays queued replies in order and records every call.

    A queued exception instance is raised instead of returned; a queued
    HANG sleeps long enough to trip any test timeout.
    """

    def __init__(self, *replies) -> None:
        self.replies: list = list(replies)
        self.calls: list[tuple[str, ChatRequest]] = []

    def queue(self, *replies) -> None:
        self.replies.extend(replies)

    async def __call__(self, stage: str, request: ChatRequest) -> str:
        self.calls.append((stage, request))
        if not self.replies:
            raise AssertionError("StubLLM called with no replies queued")
        reply = self.replies.pop(0)
        if reply is HANG:
            await asyncio.sleep(60)
        if isinstance(reply, BaseException):
            raise reply
        return reply


class HangingLLM:
    """Never answers within any reasonable timeout."""

    def __init__(self) -> None:
        self.calls = 0

    async def __call__(self, stage: str, request: ChatRequest) -> str:
        self.calls += 1
        await asyncio.sleep(60)
        return ""


class GatedLLM:
    """Blocks until release() is called, then returns ``reply``. hold() re-arms it."""

    def __init__(self, reply: str) -> None:
        self.reply = reply
        self.calls = 0
        self._event = asyncio.Event()

    def release(self) -> None:
        self._event.set()

    def hold(self) -> None:
        self._event.clear()

    async def __call__(self, stage: str, request: ChatRequest) -> str:
        self.calls += 1
        await self._event.wait()
        return self.reply


def game_state_payload(**fields: Any) -> dict[str, Any]:
    state: dict[str, Any] = {
        "hp": 24,
        "maxHp": 24,
        "stats": {
            "str": 16, "dex": 12, "con": 14, "int": 8, "wis": 10, "cha": 11,
            "level": 1, "xp": 0, "nextLevelXp": 100,
        },
        "inventory": [
            {"name": "Longsword", "rarity": "Common", "type": "Weapon",
             "description": "A soldier's blade.", "quantity": 1},
        ],
        "gold": 10,
        "location": "Blackmoor Gate",
        "statusEffects": [],
        "isInCombat": False,
        "gameOver": False,
    }
    state.update(fields)
    return state


def turn_payload(
    narrative: str = "You stand before the gate of Blackmoor.",
    state: dict[str, Any] | None = None,
    **fields: Any,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "narrative": narrative,
        "gameState": state if state is not None else game_state_payload(),
        "suggestedActions": ["Knock on the gate", "Circle the wall", "Make camp"],
    }
    payload.update(fields)
    return payload


def turn_json(
    narrative: str = "You stand before the gate of Blackmoor.",
    state: dict[str, Any] | None = None,
    **fields: Any,
) -> str:
    return json.dumps(turn_payload(narrative, state, **fields))


def skill_check_payload(**fields: Any) -> dict[str, Any]:
    check: dict[str, Any] = {
        "skill": "Athletics (STR)",
        "roll": 17,
        "baseRoll": 14,
        "modifier": 3,
        "difficultyClass": 15,
        "result": "SUCCESS",
    }
    check.update(fields)
    return check
