"""HTTP API tests through FastAPI's TestClient with a scripted narrator."""

import pytest
from fastapi.testclient import TestClient

from backend import games
from backend.app import create_app
from backend.config import LLMConfig
from quest_narrator.llm import LLMError
from quest_narrator.prompts import STYLE_DIRECTIVES
from quest_narrator.reducer import NARRATOR_SILENT
from tests.helpers import StubLLM, game_state_payload, turn_json

REX = {"name": "Rex", "class": "Warrior", "background": "soldier"}


@pytest.fixture
def stub() -> StubLLM:
    return StubLLM()


@pytest.fixture
def client(stub):
    app = create_app(LLMConfig(demo=True))
    games.init_games(lambda: stub, timeout=5)
    with TestClient(app) as c:
        yield c


def _new_game(client) -> str:
    res = client.post("/api/games")
    assert res.status_code == 201
    return res.json()["id"]


def _started_game(client, stub) -> str:
    game_id = _new_game(client)
    stub.queue(turn_json("Rain falls on Blackmoor."))
    assert client.post(f"/api/games/{game_id}/start", json=REX).status_code == 200
    return game_id


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok"}


# ── game lifecycle ───────────────────────────────────────────


def test_create_game_returns_initial_view(client):
    res = client.post("/api/games")
    body = res.json()
    assert res.status_code == 201
    assert body["id"] in games.list_games()
    assert body["messages"] == []
    assert body["isPlaying"] is False
    assert body["gameState"]["location"] == "Unknown"
    assert body["settings"] == {"verbosityLevel": 3, "difficulty": "Normal", "showDiceRolls": True}


def test_create_game_with_settings(client):
    res = client.post("/api/games", json={"settings": {"verbosityLevel": 5, "difficulty": "Story"}})
    assert res.json()["settings"]["verbosityLevel"] == 5
    assert res.json()["settings"]["difficulty"] == "Story"


def test_unknown_game_is_404(client):
    assert client.get("/api/games/nope").status_code == 404
    assert client.post("/api/games/nope/start", json=REX).status_code == 404
    assert client.post("/api/games/nope/actions", json={"action": "hi"}).status_code == 404
    assert client.post("/api/games/nope/restart").status_code == 404
    assert client.delete("/api/games/nope").status_code == 404
    assert client.get("/api/games/nope/settings").status_code == 404


def test_start_game(client, stub):
    game_id = _started_game(client, stub)
    body = client.get(f"/api/games/{game_id}").json()
    assert body["isPlaying"] is True
    assert [m["content"] for m in body["messages"]] == ["Rain falls on Blackmoor."]
    assert len(body["suggestedActions"]) == 3


def test_start_game_rejects_bad_character(client):
    game_id = _new_game(client)
    res = client.post(f"/api/games/{game_id}/start", json={**REX, "class": "Bard"})
    assert res.status_code == 422
    res = client.post(f"/api/games/{game_id}/start", json={**REX, "name": "  "})
    assert res.status_code == 422


def test_start_game_narrator_down_is_502(client, stub):
    game_id = _new_game(client)
    stub.queue(LLMError("Cannot connect to LLM backend"))
    res = client.post(f"/api/games/{game_id}/start", json=REX)
    assert res.status_code == 502
    assert "check your connection or API key" in res.json()["detail"]
    assert client.get(f"/api/games/{game_id}").json()["isPlaying"] is False


def test_submit_action(client, stub):
    game_id = _started_game(client, stub)
    stub.queue(turn_json("The gate creaks open."))
    res = client.post(f"/api/games/{game_id}/actions", json={"action": "I knock"})
    assert res.status_code == 200
    contents = [m["content"] for m in res.json()["messages"]]
    assert contents[-2:] == ["I knock", "The gate creaks open."]


def test_submit_action_failure_is_still_200(client, stub):
    game_id = _started_game(client, stub)
    stub.queue(LLMError("LLM backend returned HTTP 503"))
    res = client.post(f"/api/games/{game_id}/actions", json={"action": "I knock"})
    assert res.status_code == 200
    assert res.json()["messages"][-1]["content"] == NARRATOR_SILENT


def test_submit_before_start_is_409(client):
    game_id = _new_game(client)
    res = client.post(f"/api/games/{game_id}/actions", json={"action": "I knock"})
    assert res.status_code == 409


def test_empty_action_is_422(client, stub):
    game_id = _started_game(client, stub)
    res = client.post(f"/api/games/{game_id}/actions", json={"action": ""})
    assert res.status_code == 422


def test_submit_after_game_over_is_409(client, stub):
    game_id = _started_game(client, stub)
    stub.queue(turn_json("You fall.", state=game_state_payload(hp=0, gameOver=True),
                         visualEffect="DEFEAT", suggestedActions=[]))
    body = client.post(f"/api/games/{game_id}/actions", json={"action": "I charge"}).json()
    assert body["gameState"]["gameOver"] is True
    res = client.post(f"/api/games/{game_id}/actions", json={"action": "I get up"})
    assert res.status_code == 409
    assert len(stub.calls) == 2


def test_restart(client, stub):
    game_id = _started_game(client, stub)
    body = client.post(f"/api/games/{game_id}/restart").json()
    assert body["messages"] == []
    assert body["isPlaying"] is False
    assert body["gameState"]["hp"] == 100


def test_delete_game(client):
    game_id = _new_game(client)
    assert client.delete(f"/api/games/{game_id}").json() == {"ok": True}
    assert client.get(f"/api/games/{game_id}").status_code == 404


# ── settings ─────────────────────────────────────────────────


def test_get_settings(client):
    game_id = _new_game(client)
    res = client.get(f"/api/games/{game_id}/settings")
    assert res.json() == {"verbosityLevel": 3, "difficulty": "Normal", "showDiceRolls": True}


def test_patch_settings_merges(client):
    game_id = _new_game(client)
    res = client.patch(f"/api/games/{game_id}/settings", json={"difficulty": "Hardcore"})
    assert res.status_code == 200
    assert res.json() == {"verbosityLevel": 3, "difficulty": "Hardcore", "showDiceRolls": True}


def test_patch_settings_applies_to_next_turn(client, stub):
    game_id = _started_game(client, stub)
    client.patch(f"/api/games/{game_id}/settings", json={"verbosityLevel": 1})
    stub.queue(turn_json())
    client.post(f"/api/games/{game_id}/actions", json={"action": "I look around"})
    sent = stub.calls[-1][1].turns[-1].text
    assert STYLE_DIRECTIVES[1] in sent


@pytest.mark.parametrize("patch", [{"verbosityLevel": 0}, {"verbosityLevel": 6}, {"difficulty": "Brutal"}])
def test_patch_settings_rejects_invalid(client, patch):
    game_id = _new_game(client)
    res = client.patch(f"/api/games/{game_id}/settings", json=patch)
    assert res.status_code == 422
    assert client.get(f"/api/games/{game_id}/settings").json()["verbosityLevel"] == 3


def test_patch_settings_accepts_field_names(client):
    game_id = _new_game(client)
    res = client.patch(f"/api/games/{game_id}/settings", json={"verbosity_level": 1})
    assert res.status_code == 200
    assert res.json()["verbosityLevel"] == 1


def test_patch_settings_rejects_unknown_keys(client):
    game_id = _new_game(client)
    res = client.patch(f"/api/games/{game_id}/settings", json={"verbosity": 1})
    assert res.status_code == 422
    assert "verbosity" in res.json()["detail"]


# ── busy and failed re-start ─────────────────────────────────


def test_restart_while_processing_is_409(client, stub):
    game_id = _started_game(client, stub)
    game = games.get_game(game_id)
    game.state = game.state.model_copy(update={"is_processing": True})
    res = client.post(f"/api/games/{game_id}/restart")
    assert res.status_code == 409
    game.state = game.state.model_copy(update={"is_processing": False})
    body = client.get(f"/api/games/{game_id}").json()
    assert [m["content"] for m in body["messages"]] == ["Rain falls on Blackmoor."]
    assert body["isPlaying"] is True


def test_actions_after_failed_restart_continue_old_adventure(client, stub):
    game_id = _started_game(client, stub)
    stub.queue(LLMError("Cannot connect to LLM backend"))
    assert client.post(f"/api/games/{game_id}/start", json=REX).status_code == 502
    stub.queue(turn_json("The gate creaks open."))
    res = client.post(f"/api/games/{game_id}/actions", json={"action": "I knock"})
    assert res.status_code == 200
    contents = [m["content"] for m in res.json()["messages"]]
    assert contents == ["Rain falls on Blackmoor.", "I knock", "The gate creaks open."]


def test_actions_without_session_is_409(client, stub):
    game_id = _started_game(client, stub)
    games.get_game(game_id).controller.close_session()
    res = client.post(f"/api/games/{game_id}/actions", json={"action": "I knock"})
    assert res.status_code == 409
    body = client.get(f"/api/games/{game_id}").json()
    assert [m["role"] for m in body["messages"]] == ["model"]
    assert len(stub.calls) == 1
