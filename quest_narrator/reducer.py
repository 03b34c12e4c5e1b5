"""Presentation state reducer.

Pure functions that apply a narrator turn, a failure, a restart or the
passage of time to the state the UI renders. No I/O and no clock reads:
every function takes ``now`` (epoch milliseconds) explicitly and returns a
new PresentationState.

Rules:
  - game_state is replaced wholesale by each reply, never merged.
  - The user message is appended before the exchange resolves; the model
    message only after a successful reply. A failed exchange appends one
    synthetic model message and changes nothing else.
  - Suggested actions are cleared the moment an action is submitted.
  - A non-NONE visual effect expires EFFECT_DURATION_MS after it arrives,
    whether or not further turns happen.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from quest_narrator.models import (
    INITIAL_GAME_STATE,
    GameState,
    Message,
    TurnResponse,
    VisualEffect,
)

EFFECT_DURATION_MS = 1000
NARRATOR_SILENT = "The narrator is silent... (Network Error, please try again)"


class ActiveEffect(BaseModel):
    effect: VisualEffect
    expires_at: int


class PresentationState(BaseModel):
    messages: list[Message] = Field(default_factory=list)
    game_state: GameState = Field(default_factory=lambda: INITIAL_GAME_STATE.model_copy(deep=True))
    suggested_actions: list[str] = Field(default_factory=list)
    visual_effect: ActiveEffect | None = None
    is_processing: bool = False
    is_playing: bool = False


def _model_message(response: TurnResponse, now: int) -> Message:
    return Message(
        role="model",
        content=response.narrative,
        timestamp=now,
        skill_check=response.skill_check,
    )


def _effect_from(response: TurnResponse, current: ActiveEffect | None, now: int) -> ActiveEffect | None:
    if response.visual_effect is None:
        return current
    if response.visual_effect == "NONE":
        return None
    return ActiveEffect(effect=response.visual_effect, expires_at=now + EFFECT_DURATION_MS)


def apply_opening(state: PresentationState, response: TurnResponse, now: int) -> PresentationState:
    """Seed the log and game state from the first turn of a session."""
    return state.model_copy(update={
        "messages": [_model_message(response, now)],
        "game_state": response.game_state.model_copy(deep=True),
        "suggested_actions": list(response.suggested_actions),
        "visual_effect": _effect_from(response, None, now),
        "is_playing": True,
    })


def begin_action(state: PresentationState, action_text: str, now: int) -> PresentationState:
    """Record the player's action and close the gate until the reply lands."""
    user_msg = Message(role="user", content=action_text, timestamp=now)
    return state.model_copy(update={
        "messages": [*state.messages, user_msg],
        "suggested_actions": [],
        "is_processing": True,
    })


def apply_turn(state: PresentationState, response: TurnResponse, now: int) -> PresentationState:
    return state.model_copy(update={
        "messages": [*state.messages, _model_message(response, now)],
        "game_state": response.game_state.model_copy(deep=True),
        "suggested_actions": list(response.suggested_actions),
        "visual_effect": _effect_from(response, state.visual_effect, now),
    })


def apply_failure(state: PresentationState, now: int) -> PresentationState:
    notice = Message(role="model", content=NARRATOR_SILENT, timestamp=now)
    return state.model_copy(update={"messages": [*state.messages, notice]})


def finish_processing(state: PresentationState) -> PresentationState:
    return state.model_copy(update={"is_processing": False})


def active_effect(state: PresentationState, now: int) -> VisualEffect | None:
    """The effect to render at ``now``, or None once it has expired."""
    effect = state.visual_effect
    if effect is None or now >= effect.expires_at:
        return None
    return effect.effect


def expire_effect(state: PresentationState, now: int) -> PresentationState:
    if state.visual_effect is not None and active_effect(state, now) is None:
        return state.model_copy(update={"visual_effect": None})
    return state


def restart(state: PresentationState) -> PresentationState:
    return PresentationState()
