"""Core domain models.

Every value that crosses the model-service boundary or the HTTP API is one of
these types. Pydantic validates at both boundaries. Python attributes are
snake_case; the wire names are the camelCase names the remote model is
instructed against (see quest_narrator.schema), so always dump with
``by_alias=True``.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel

CharacterClass = Literal["Warrior", "Mage", "Rogue", "Cleric"]
Difficulty = Literal["Story", "Normal", "Hardcore"]
Rarity = Literal["Common", "Uncommon", "Rare", "Epic", "Legendary"]
ItemType = Literal["Weapon", "Armor", "Potion", "Quest", "Misc"]
VisualEffect = Literal["NONE", "DAMAGE", "HEAL", "TREASURE", "DANGER", "VICTORY", "DEFEAT"]
CheckOutcome = Literal["SUCCESS", "FAILURE", "CRITICAL_SUCCESS", "CRITICAL_FAILURE"]
Role = Literal["user", "model"]

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

CHARACTER_CLASSES: tuple[str, ...] = ("Warrior", "Mage", "Rogue", "Cleric")
RARITIES: tuple[str, ...] = ("Common", "Uncommon", "Rare", "Epic", "Legendary")


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Character(WireModel):
    """The player character. Fixed for the lifetime of a session."""

    model_config = ConfigDict(frozen=True)

    name: NonEmptyStr
    character_class: CharacterClass = Field(alias="class")
    background: NonEmptyStr


class GameSettings(WireModel):
    """Player-adjustable settings, re-sent to the model on every turn."""

    model_config = ConfigDict(validate_assignment=True)

    verbosity_level: int = Field(default=3, ge=1, le=5)
    difficulty: Difficulty = "Normal"
    show_dice_rolls: bool = True


class CharacterStats(WireModel):
    strength: int = Field(alias="str")
    dexterity: int = Field(alias="dex")
    constitution: int = Field(alias="con")
    intelligence: int = Field(alias="int")
    wisdom: int = Field(alias="wis")
    charisma: int = Field(alias="cha")
    level: int
    xp: int
    next_level_xp: int


class InventoryItem(WireModel):
    name: str
    rarity: Rarity
    type: ItemType
    description: str
    quantity: int


class GameState(WireModel):
    """Authoritative snapshot. Replaced wholesale on every turn, never merged."""

    hp: int  # may drop to 0 or below on death
    max_hp: int
    stats: CharacterStats
    inventory: list[InventoryItem] = Field(default_factory=list)
    gold: int
    location: str
    status_effects: list[str] = Field(default_factory=list)
    is_in_combat: bool
    game_over: bool


class SkillCheckResult(WireModel):
    """A single die roll attached to one turn. Never stored in GameState."""

    skill: str
    roll: int
    base_roll: int
    modifier: int
    difficulty_class: int
    result: CheckOutcome

    @property
    def roll_matches(self) -> bool:
        return self.roll == self.base_roll + self.modifier


class TurnResponse(WireModel):
    """Envelope returned by the narrator for every turn.

    ``visual_effect`` and ``skill_check`` are None when the reply omits them.
    """

    narrative: str
    game_state: GameState
    suggested_actions: list[str] = Field(default_factory=list)
    visual_effect: VisualEffect | None = None
    skill_check: SkillCheckResult | None = None


class Message(WireModel):
    """One entry in the append-only chat log shown to the player."""

    role: Role
    content: str
    timestamp: int  # epoch milliseconds
    skill_check: SkillCheckResult | None = None


INITIAL_GAME_STATE = GameState(
    hp=100,
    max_hp=100,
    stats=CharacterStats(
        strength=10, dexterity=10, constitution=10,
        intelligence=10, wisdom=10, charisma=10,
        level=1, xp=0, next_level_xp=100,
    ),
    inventory=[],
    gold=0,
    location="Unknown",
    status_effects=[],
    is_in_combat=False,
    game_over=False,
)


def ability_modifier(score: int) -> int:
    """floor((score - 10) / 2): STR 16 → +3, DEX 10 → +0, INT 8 → -1."""
    return (score - 10) // 2


def contract_issues(response: TurnResponse) -> list[str]:
    """List the ways a reply breaks the narrator rulebook.

    Nothing is corrected here; callers log or display the result.
    """
    issues: list[str] = []
    check = response.skill_check
    if check is not None:
        if not check.roll_matches:
            issues.append(
                f"skill check roll {check.roll} != baseRoll {check.base_roll} "
                f"+ modifier {check.modifier}"
            )
        if not 1 <= check.base_roll <= 20:
            issues.append(f"skill check baseRoll {check.base_roll} outside 1-20")

    state = response.game_state
    if state.hp <= 0 and not state.game_over:
        issues.append(f"hp is {state.hp} but gameOver is false")
    for item in state.inventory:
        if item.quantity < 1:
            issues.append(f"item {item.name!r} has quantity {item.quantity}")

    count = len(response.suggested_actions)
    if not state.game_over and not 3 <= count <= 4:
        issues.append(f"expected 3-4 suggested actions, got {count}")
    return issues
