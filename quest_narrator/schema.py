"""Response schema the narrator must satisfy on every turn.

Written in the OpenAPI subset Gemini accepts for ``responseSchema``. Field
names and enum values must stay in sync with quest_narrator.models; the
remote model is instructed against these exact strings.
"""

from __future__ import annotations

from typing import Any

from quest_narrator.models import RARITIES

_STATS_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "str": {"type": "INTEGER"},
        "dex": {"type": "INTEGER"},
        "con": {"type": "INTEGER"},
        "int": {"type": "INTEGER"},
        "wis": {"type": "INTEGER"},
        "cha": {"type": "INTEGER"},
        "level": {"type": "INTEGER"},
        "xp": {"type": "INTEGER"},
        "nextLevelXp": {"type": "INTEGER"},
    },
    "required": ["str", "dex", "con", "int", "wis", "cha", "level", "xp", "nextLevelXp"],
}

_ITEM_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "name": {"type": "STRING"},
        "rarity": {"type": "STRING", "enum": list(RARITIES)},
        "type": {"type": "STRING", "enum": ["Weapon", "Armor", "Potion", "Quest", "Misc"]},
        "description": {"type": "STRING"},
        "quantity": {"type": "INTEGER"},
    },
    "required": ["name", "rarity", "type", "description", "quantity"],
}

_GAME_STATE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "hp": {"type": "INTEGER", "description": "Current hit points"},
        "maxHp": {"type": "INTEGER", "description": "Maximum hit points"},
        "stats": _STATS_SCHEMA,
        "inventory": {
            "type": "ARRAY",
            "items": _ITEM_SCHEMA,
            "description": "List of items currently held",
        },
        "gold": {"type": "INTEGER", "description": "Current gold amount"},
        "location": {"type": "STRING", "description": "Current location name"},
        "statusEffects": {
            "type": "ARRAY",
            "items": {"type": "STRING"},
            "description": "Active status effects like 'Poisoned', 'Blessed'",
        },
        "isInCombat": {"type": "BOOLEAN", "description": "Whether the player is currently in a fight"},
        "gameOver": {"type": "BOOLEAN", "description": "True if the character has died or won"},
    },
    "required": ["hp", "maxHp", "stats", "inventory", "gold", "location", "isInCombat", "gameOver"],
}

_SKILL_CHECK_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "description": (
        "OPTIONAL. Only include this if the action SPECIFICALLY required a dice roll "
        "for a risky action. Do NOT include for normal narrative flow."
    ),
    "properties": {
        "skill": {
            "type": "STRING",
            "description": "Skill combined with the stat, e.g. 'Athletics (STR)' or 'Persuasion (CHA)'",
        },
        "roll": {"type": "INTEGER", "description": "The final total (baseRoll + modifier)"},
        "baseRoll": {"type": "INTEGER", "description": "The natural die roll (1-20)"},
        "modifier": {"type": "INTEGER", "description": "The stat modifier floor((Score - 10) / 2)"},
        "difficultyClass": {"type": "INTEGER", "description": "The target number (DC) to beat"},
        "result": {
            "type": "STRING",
            "enum": ["SUCCESS", "FAILURE", "CRITICAL_SUCCESS", "CRITICAL_FAILURE"],
        },
    },
    "required": ["skill", "roll", "baseRoll", "modifier", "difficultyClass", "result"],
}

TURN_RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "narrative": {
            "type": "STRING",
            "description": "The story description. Follow the length/style instructions provided.",
        },
        "gameState": _GAME_STATE_SCHEMA,
        "suggestedActions": {
            "type": "ARRAY",
            "items": {"type": "STRING"},
            "description": (
                "3-4 short, context-relevant action options. If in combat, suggest "
                "moves like 'Attack', 'Defend', 'Cast Spell'."
            ),
        },
        "visualEffect": {
            "type": "STRING",
            "enum": ["NONE", "DAMAGE", "HEAL", "TREASURE", "DANGER", "VICTORY", "DEFEAT"],
            "description": (
                "DAMAGE: player took damage. HEAL: player healed. TREASURE: found loot. "
                "DANGER: combat starts or boss appears. VICTORY/DEFEAT: game ends."
            ),
        },
        "skillCheck": _SKILL_CHECK_SCHEMA,
    },
    "required": ["narrative", "gameState", "suggestedActions"],
}


def to_json_schema(schema: dict[str, Any]) -> dict[str, Any]:
    """Convert the Gemini-style schema to standard JSON Schema.

    Type names are lowercased; everything else passes through.
    """
    converted: dict[str, Any] = {}
    for key, value in schema.items():
        if key == "type" and isinstance(value, str):
            converted[key] = value.lower()
        elif key == "properties":
            converted[key] = {name: to_json_schema(sub) for name, sub in value.items()}
        elif key == "items":
            converted[key] = to_json_schema(value)
        else:
            converted[key] = value
    return converted
