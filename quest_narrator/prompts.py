"""Handlebars prompts for the narrator.

Two templates are rendered:
  SYSTEM_TEMPLATE  — sent once when the session opens: character sheet,
                     difficulty, the rulebook and the style directive.
  TURN_TEMPLATE    — wrapped around every player action: re-asserts the
                     current style, difficulty, modifier formula and the
                     skill-check rule, since the model drifts over long
                     sessions.

Triple-stache ({{{ }}}) is used for player text so it is not HTML-escaped.
"""

from collections.abc import Callable
from typing import Any

import pybars

from quest_narrator.models import RARITIES, Character, GameSettings

_compiler = pybars.Compiler()
_cache: dict[str, Callable] = {}

KICKOFF_MESSAGE = "Begin the adventure. Generate my starting stats and gear."

STYLE_DIRECTIVES: dict[int, str] = {
    1: "Provide extremely short, telegraphic responses. One sentence maximum. No fluff.",
    2: "Provide concise responses. 2-3 sentences. Focus on action.",
    3: "Provide balanced descriptions. One paragraph. Standard RPG detail.",
    4: "Provide detailed descriptions. Two paragraphs. Focus on atmosphere.",
    5: "Provide very rich, evocative, and lengthy descriptions. 3+ paragraphs. Novel-like quality.",
}

DIFFICULTY_NOTES: dict[str, str] = {
    "Story": "Easy. Enemies are weaker, DCs lower, resources plentiful.",
    "Normal": "Standard RPG challenge.",
    "Hardcore": "Deadly. Brutal enemies, high DCs, scarce resources.",
}

SYSTEM_TEMPLATE = """\
You are an expert Dungeon Master running a text-based RPG with deep mechanics.
The setting is a dark fantasy world.

The player character is:
Name: {{{character.name}}}
Class: {{{character.class}}}
Background: {{{character.background}}}

Game Settings:
Difficulty: {{settings.difficulty}} ({{{difficulty_note}}} Adjust enemy HP, DC checks, and resource scarcity accordingly.)

Core Mechanics:
1. **Stats**: Generate D&D-style stats (STR, DEX, CON, INT, WIS, CHA) ranging from 8 to 18 for a level 1 character based on their class. Start with hp equal to maxHp.
2. **Combat**: When enemies appear, set 'isInCombat' to true. Manage initiative invisibly. While 'isInCombat' is true, interpret player actions as combat moves. Calculate damage based on stats.
3. **Skill Checks**:
   - WHEN TO ROLL: Only simulate a D20 roll when the outcome is UNCERTAIN or RISKY (e.g. attacking, climbing a wet wall, lying to a guard, deciphering runes).
   - WHEN NOT TO ROLL: Never attach a skill check to mundane actions (e.g. looking at the room, walking down the hall, asking a question, picking up an item).
   - CALCULATION:
     - The 'modifier' MUST be derived from the relevant stat: floor((Stat - 10) / 2).
     - Example: STR 16 gives +3. DEX 10 gives +0. INT 8 gives -1.
     - Pick the most appropriate stat (STR for Athletics, DEX for Stealth, CHA for Persuasion).
     - 'baseRoll' is a fresh random number from 1 to 20.
     - 'roll' must strictly equal baseRoll + modifier.
     - DC by task: {{{dc_bands}}}. Shift it for the difficulty setting.
   - Fill the 'skillCheck' object with these exact values if a roll occurred; the 'narrative' reflects its outcome.
4. **Inventory**: Assign a rarity ({{{rarities}}}) to every item.
5. **Visuals**: Use the 'visualEffect' field to highlight key moments.

Rules:
- Manage HP strictly.
- If HP <= 0, gameOver = true and visualEffect = DEFEAT on that same turn.
- Always return valid JSON matching the schema. Never reply with partial or free-form text.

Style Guide: {{{style}}}
"""

TURN_TEMPLATE = """\
{{{action}}}
[System Note: Narrative Style: {{{style}}} Difficulty: {{settings.difficulty}}. \
Only include a 'skillCheck' if the action has a chance of failure. Otherwise omit it. \
USE CHARACTER STATS FOR MODIFIERS: floor((Stat-10)/2), and roll = baseRoll + modifier. \
Update combat state/stats.]"""

DC_BANDS: dict[str, int] = {"Easy": 10, "Medium": 15, "Hard": 20}


class PromptError(Exception):
    """Raised when a Handlebars template fails to compile or render."""


def render_prompt(template_str: str, context: dict[str, Any]) -> str:
    """Compile and render a Handlebars template with the given context.

    Templates are cached by source string to avoid recompilation.
    """
    try:
        compiled = _cache.get(template_str)
        if compiled is None:
            compiled = _compiler.compile(template_str)
            _cache[template_str] = compiled
        return str(compiled(context))
    except Exception as e:
        raise PromptError(f"Template error: {e}") from e


def style_directive(verbosity_level: int) -> str:
    return STYLE_DIRECTIVES.get(verbosity_level, "Provide balanced descriptions.")


def build_system_instruction(character: Character, settings: GameSettings) -> str:
    return render_prompt(SYSTEM_TEMPLATE, {
        "character": character.model_dump(by_alias=True),
        "settings": settings.model_dump(by_alias=True),
        "difficulty_note": DIFFICULTY_NOTES[settings.difficulty],
        "dc_bands": ", ".join(f"{name}={dc}" for name, dc in DC_BANDS.items()),
        "rarities": ", ".join(RARITIES),
        "style": style_directive(settings.verbosity_level),
    })


def build_turn_message(action: str, settings: GameSettings) -> str:
    return render_prompt(TURN_TEMPLATE, {
        "action": action,
        "settings": settings.model_dump(by_alias=True),
        "style": style_directive(settings.verbosity_level),
    })
