"""API tests for the /motus endpoints."""
import pytest

from wiowa_api.services.motus.word_game import MAX_ATTEMPTS


@pytest.fixture
async def headers(user_factory, auth_headers):
    return auth_headers(await user_factory())


async def _start(client, headers, difficulty=5) -> dict:
    response = await client.post("/motus/game", json={"difficulty": difficulty}, headers=headers)
    assert response.status_code == 201
    return response.json()


def _wrong_guess(game: dict) -> str:
    # Same first letter and length as the hidden word, but never the word itself
    return game["first_letter"] + "Z" * (game["difficulty"] - 1)


@pytest.mark.asyncio
async def test_new_game_hides_the_word(client, headers):
    game = await _start(client, headers, difficulty=7)

    assert game["difficulty"] == 7
    assert game["target"] is None
    assert game["attempts_left"] == MAX_ATTEMPTS
    assert game["guesses"] == []
    assert len(game["first_letter"]) == 1


@pytest.mark.asyncio
async def test_default_difficulty(client, headers):
    response = await client.post("/motus/game", json={}, headers=headers)
    assert response.json()["difficulty"] == 8


@pytest.mark.asyncio
async def test_invalid_difficulty(client, headers):
    response = await client.post("/motus/game", json={"difficulty": 9}, headers=headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_guess_is_scored_and_saved(client, headers):
    game = await _start(client, headers)

    response = await client.post("/motus/game/guess", json={"guess": _wrong_guess(game)}, headers=headers)

    assert response.status_code == 200
    data = response.json()
    assert data["attempts_left"] == MAX_ATTEMPTS - 1
    assert len(data["guesses"]) == 1
    assert data["guesses"][0][0] == {"char": game["first_letter"], "state": "correct"}

    current = (await client.get("/motus/game", headers=headers)).json()
    assert current["guesses"] == data["guesses"]


@pytest.mark.asyncio
async def test_lost_game_reveals_the_word(client, headers):
    game = await _start(client, headers)

    for _ in range(MAX_ATTEMPTS):
        response = await client.post("/motus/game/guess", json={"guess": _wrong_guess(game)}, headers=headers)

    data = response.json()
    assert data["game_over"] is True
    assert data["game_won"] is False
    assert data["target"] is not None
    assert data["target"][0] == game["first_letter"]

    response = await client.post("/motus/game/guess", json={"guess": _wrong_guess(game)}, headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Game is over"


@pytest.mark.asyncio
async def test_rule_violations(client, headers):
    game = await _start(client, headers)

    response = await client.post("/motus/game/guess", json={"guess": "ABC"}, headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Guess must be 5 letters long"

    wrong_start = ("B" if game["first_letter"] != "B" else "C") + "ZZZZ"
    response = await client.post("/motus/game/guess", json={"guess": wrong_start}, headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"] == f"Guess must start with {game['first_letter']}"


@pytest.mark.asyncio
async def test_no_game(client, headers):
    assert (await client.get("/motus/game", headers=headers)).status_code == 404

    response = await client.post("/motus/game/guess", json={"guess": "ABORD"}, headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "No game in progress"


@pytest.mark.asyncio
async def test_abandon_game(client, headers):
    await _start(client, headers)

    response = await client.delete("/motus/game", headers=headers)
    assert response.status_code == 204
    assert (await client.get("/motus/game", headers=headers)).status_code == 404
