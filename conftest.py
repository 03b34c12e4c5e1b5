import pytest

from backend import games
from quest_narrator.models import Character, GameSettings
from tests.helpers import StubLLM


@pytest.fixture(autouse=True)
def clean_games():
    """Empty the game registry before every test; games get a fresh StubLLM."""
    games.init_games(StubLLM, timeout=5)
    yield


@pytest.fixture
def rex() -> Character:
    return Character(name="Rex", character_class="Warrior", background="soldier")


@pytest.fixture
def settings() -> GameSettings:
    return GameSettings(verbosity_level=3, difficulty="Normal", show_dice_rolls=True)
