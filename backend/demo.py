"""Offline demo narrator for development without an API key.

Implements the LLM protocol and answers with well-formed TurnResponse JSON.
It follows the same rulebook the real narrator gets: class-based starting
stats, skill checks only for risky-sounding actions, and a modifier of
floor((stat - 10) / 2).
"""

import json
import random
import re

from quest_narrator.llm import ChatRequest
from quest_narrator.models import ability_modifier

CLASS_STATS = {
    "Warrior": {"str": 16, "dex": 12, "con": 15, "int": 8, "wis": 10, "cha": 11},
    "Mage":    {"str": 8,  "dex": 13, "con": 11, "int": 17, "wis": 14, "cha": 10},
    "Rogue":   {"str": 10, "dex": 17, "con": 12, "int": 13, "wis": 11, "cha": 14},
    "Cleric":  {"str": 12, "dex": 10, "con": 14, "int": 10, "wis": 17, "cha": 13},
}

STARTING_GEAR = {
    "Warrior": ("Notched Longsword", "Weapon"),
    "Mage": ("Ashwood Staff", "Weapon"),
    "Rogue": ("Pair of Daggers", "Weapon"),
    "Cleric": ("Iron Mace", "Weapon"),
}

# keyword -> (skill label, stat)
RISKY_ACTIONS = {
    "attack": ("Athletics (STR)", "str"),
    "climb": ("Athletics (STR)", "str"),
    "sneak": ("Stealth (DEX)", "dex"),
    "pick the lock": ("Sleight of Hand (DEX)", "dex"),
    "pickpocket": ("Sleight of Hand (DEX)", "dex"),
    "persuade": ("Persuasion (CHA)", "cha"),
    "lie to": ("Deception (CHA)", "cha"),
    "decipher": ("Arcana (INT)", "int"),
}

DC_BY_DIFFICULTY = {"Story": 10, "Normal": 13, "Hardcore": 16}

_CLASS_RE = re.compile(r"^Class: (\w+)", re.MULTILINE)
_DIFFICULTY_RE = re.compile(r"Difficulty: (Story|Normal|Hardcore)")


class DemoNarrator:
    def __init__(self, seed: int | None = None) -> None:
        self._rng = random.Random(seed)
        self._state: dict | None = None

    async def __call__(self, stage: str, request: ChatRequest) -> str:
        if stage == "opening" or self._state is None:
            return json.dumps(self._opening(request.system_instruction))

        message = request.turns[-1].text
        action = message.split("\n[System Note", 1)[0].strip()
        match = _DIFFICULTY_RE.search(message)
        difficulty = match.group(1) if match else "Normal"
        return json.dumps(self._turn(action, difficulty))

    def _opening(self, system_instruction: str) -> dict:
        match = _CLASS_RE.search(system_instruction)
        char_class = match.group(1) if match and match.group(1) in CLASS_STATS else "Warrior"
        stats = CLASS_STATS[char_class]
        weapon, item_type = STARTING_GEAR[char_class]
        max_hp = 10 + 2 * stats["con"]
        self._state = {
            "hp": max_hp,
            "maxHp": max_hp,
            "stats": {**stats, "level": 1, "xp": 0, "nextLevelXp": 100},
            "inventory": [
                {"name": weapon, "rarity": "Common", "type": item_type,
                 "description": "Serviceable, if unremarkable.", "quantity": 1},
                {"name": "Healing Draught", "rarity": "Uncommon", "type": "Potion",
                 "description": "Bitter red liquid that knits flesh.", "quantity": 2},
            ],
            "gold": 15,
            "location": "The Ashen Crossroads",
            "statusEffects": [],
            "isInCombat": False,
            "gameOver": False,
        }
        return {
            "narrative": (
                "Rain hisses on the cobbles of the Ashen Crossroads. A gallows creaks "
                "in the wind, and somewhere beyond the tree line a bell tolls once."
            ),
            "gameState": self._state,
            "suggestedActions": ["Approach the gallows", "Follow the bell", "Search the ditch"],
            "visualEffect": "NONE",
        }

    def _turn(self, action: str, difficulty: str) -> dict:
        state = json.loads(json.dumps(self._state))
        reply: dict = {"gameState": state}

        risky = next((v for k, v in RISKY_ACTIONS.items() if k in action.lower()), None)
        if risky is None:
            reply["narrative"] = f"You {action.lower().rstrip('.')}. Nothing stirs but the rain."
            reply["visualEffect"] = "NONE"
        else:
            skill, stat = risky
            base_roll = self._rng.randint(1, 20)
            modifier = ability_modifier(state["stats"][stat])
            dc = DC_BY_DIFFICULTY[difficulty]
            roll = base_roll + modifier
            if base_roll == 20:
                result = "CRITICAL_SUCCESS"
            elif base_roll == 1:
                result = "CRITICAL_FAILURE"
            else:
                result = "SUCCESS" if roll >= dc else "FAILURE"
            reply["skillCheck"] = {
                "skill": skill, "roll": roll, "baseRoll": base_roll,
                "modifier": modifier, "difficultyClass": dc, "result": result,
            }
            if result.endswith("SUCCESS"):
                state["stats"]["xp"] += 10
                reply["narrative"] = f"You {action.lower().rstrip('.')}, and it works."
                reply["visualEffect"] = "NONE"
            else:
                state["hp"] -= self._rng.randint(2, 6)
                reply["narrative"] = f"You try to {action.lower().rstrip('.')}, but it goes badly."
                reply["visualEffect"] = "DAMAGE"

        if state["hp"] <= 0:
            state["gameOver"] = True
            reply["visualEffect"] = "DEFEAT"
            reply["narrative"] += " The world goes dark."
            reply["suggestedActions"] = []
        else:
            reply["suggestedActions"] = ["Look around", "Press onward", "Climb the old wall"]
        self._state = state
        return reply
