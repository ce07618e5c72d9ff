"""Tests for the game HTTP endpoints."""

from uuid import UUID, uuid4

from fastapi.testclient import TestClient

from uno_server.api.app import create_app
from uno_server.containers import AppContainer


def _headers(player_id: UUID) -> dict[str, str]:
    return {"X-Player-Id": str(player_id)}


def _create(client: TestClient, creator: UUID, name: str = "Friends Night") -> str:
    response = client.post(
        "/games/create",
        json={"name": name, "rules": "House rules"},
        headers=_headers(creator),
    )
    assert response.status_code == 201
    return response.json()["game_id"]


def test_health(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    assert client.get("/health").json() == {"status": "ok"}


def test_full_game_flow(container: AppContainer) -> None:
    client = TestClient(create_app(container))
    alice, bob = uuid4(), uuid4()

    game_id = _create(client, alice)
    assert client.post(
        "/games/join", json={"game_id": game_id}, headers=_headers(bob)
    ).json() == {"message": "User joined the game successfully"}
    for player in (alice, bob):
        response = client.post(
            "/games/ready", json={"game_id": game_id}, headers=_headers(player)
        )
        assert response.status_code == 200
        assert response.json()["message"] == "Player ready status updated to True"

    response = client.post(
        "/games/start", json={"game_id": game_id}, headers=_headers(alice)
    )
    assert response.status_code == 200

    state = client.post("/games/state", json={"game_id": game_id}).json()
    assert state["state"] == "in_progress"
    assert state["players_count"] == 2
    assert state["current_player_id"] == str(alice)
    assert state["top_card"]["type"]

    current = client.post("/games/current-player", json={"game_id": game_id}).json()
    assert current["current_player"] == str(alice)

    top = client.post("/games/top-card", json={"game_id": game_id}).json()
    assert isinstance(top["top_card"], str)

    players = client.post("/games/players", json={"game_id": game_id}).json()
    assert [entry["player_id"] for entry in players["players"]] == [
        str(alice),
        str(bob),
    ]

    scores = client.post("/games/scores", json={"game_id": game_id}).json()
    assert scores["scores"] == {str(alice): 0, str(bob): 0}

    hand = client.post(
        "/games/hand", json={"game_id": game_id}, headers=_headers(bob)
    ).json()
    assert len(hand["cards"]) == 7

    response = client.post(
        "/games/end", json={"game_id": game_id}, headers=_headers(alice)
    )
    assert response.json() == {"message": "Game ended successfully"}


def test_create_rejects_short_name(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    response = client.post(
        "/games/create", json={"name": "ab"}, headers=_headers(uuid4())
    )

    assert response.status_code == 400
    assert response.json() == {
        "detail": "Game name must be between 3-50 characters",
        "error": "invalid_input",
    }


def test_commands_require_player_header(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    missing = client.post("/games/create", json={"name": "Table"})
    malformed = client.post(
        "/games/create", json={"name": "Table"}, headers={"X-Player-Id": "nope"}
    )

    assert missing.status_code == 401
    assert malformed.status_code == 401


def test_error_status_mapping(container: AppContainer) -> None:
    client = TestClient(create_app(container))
    creator = uuid4()
    game_id = _create(client, creator)

    not_found = client.post("/games/state", json={"game_id": str(uuid4())})
    assert not_found.status_code == 404
    assert not_found.json()["error"] == "not_found"

    duplicate = client.post(
        "/games/join", json={"game_id": game_id}, headers=_headers(creator)
    )
    assert duplicate.status_code == 409

    forbidden = client.post(
        "/games/start", json={"game_id": game_id}, headers=_headers(uuid4())
    )
    assert forbidden.status_code == 403

    not_ready = client.post(
        "/games/start", json={"game_id": game_id}, headers=_headers(creator)
    )
    assert not_ready.status_code == 400
    assert not_ready.json()["error"] == "roster_not_ready"

    stranger = client.post(
        "/games/leave", json={"game_id": game_id}, headers=_headers(uuid4())
    )
    assert stranger.status_code == 400
    assert stranger.json()["error"] == "not_member"


def test_invalid_game_id_is_rejected_by_validation(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    response = client.post("/games/state", json={"game_id": "not-a-uuid"})

    assert response.status_code == 422


def test_corrupted_deck_reports_invariant(container: AppContainer) -> None:
    client = TestClient(create_app(container))
    alice, bob = uuid4(), uuid4()
    game_id = _create(client, alice)
    client.post("/games/join", json={"game_id": game_id}, headers=_headers(bob))
    for player in (alice, bob):
        client.post("/games/ready", json={"game_id": game_id}, headers=_headers(player))
    container.session_store.cards[UUID(game_id)].clear()

    response = client.post(
        "/games/start", json={"game_id": game_id}, headers=_headers(alice)
    )

    assert response.status_code == 500
    assert response.json()["error"] == "invariant"
