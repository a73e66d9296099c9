"""HTTP contract for /api/users/modle/status and /api/users/modle/result."""

import jwt
import pytest

from backend.core.config import settings

STATUS = "/api/users/modle/status"
RESULT = "/api/users/modle/result"


def _as(user_id):
    return {"X-User-Id": user_id}


@pytest.fixture
def player(user_store):
    user_store.ensure_user("player-1")
    return "player-1"


def test_requires_authentication(client):
    resp = client.get(STATUS)
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "unauthorized"

    resp = client.post(RESULT, json={"correct": True})
    assert resp.status_code == 401


def test_bearer_token_identifies_user(client, player, monkeypatch):
    monkeypatch.setattr(settings, "JWT_SECRET", "test-secret")
    token = jwt.encode({"id": player}, "test-secret", algorithm="HS256")

    resp = client.post(RESULT, json={"correct": True}, headers={"Authorization": f"Bearer {token}"})

    assert resp.status_code == 200
    assert resp.json()["language"]["streak"] == 1


def test_invalid_bearer_token_rejected(client, player, monkeypatch):
    monkeypatch.setattr(settings, "JWT_SECRET", "test-secret")
    token = jwt.encode({"id": player}, "another-secret", algorithm="HS256")

    resp = client.get(STATUS, headers={"Authorization": f"Bearer {token}", "X-User-Id": player})

    assert resp.status_code == 401


def test_end_to_end_over_http(client, player, clock):
    clock.set("2024-06-10")
    resp = client.post(RESULT, json={"language": "English", "correct": True, "guesses": ["AVATAR"]}, headers=_as(player))
    assert resp.status_code == 200
    body = resp.json()
    assert body["language"]["streak"] == 1
    assert body["language"]["history"]["2024-06-10"] == {"date": "2024-06-10", "correct": True, "guesses": ["AVATAR"]}
    assert body["global"]["streak"] == 1

    resp = client.post(RESULT, json={"language": "English", "correct": True, "guesses": ["TITANIC"]}, headers=_as(player))
    assert resp.status_code == 409
    conflict = resp.json()
    assert conflict["msg"]
    assert conflict["error"]["code"] == "already_solved"
    assert conflict["language"] == body["language"]
    assert conflict["global"] == body["global"]

    clock.set("2024-06-11")
    resp = client.post(RESULT, json={"language": "Hindi", "correct": True}, headers=_as(player))
    assert resp.status_code == 200
    body = resp.json()
    assert body["language"]["streak"] == 1
    assert body["global"]["streak"] == 2
    assert body["global"]["lastPlayed"] == "2024-06-11"


def test_result_defaults(client, player):
    resp = client.post(RESULT, json={}, headers=_as(player))

    assert resp.status_code == 200
    entry = resp.json()["language"]["history"]["2024-06-10"]
    assert entry == {"date": "2024-06-10", "correct": False, "guesses": []}

    status = client.get(STATUS, headers=_as(player)).json()
    assert "2024-06-10" in status["history"]


def test_client_supplied_date_is_ignored(client, player):
    resp = client.post(
        RESULT,
        json={"language": "English", "correct": True, "date": "2020-01-01"},
        headers=_as(player),
    )

    assert resp.status_code == 200
    assert list(resp.json()["language"]["history"]) == ["2024-06-10"]


def test_status_shape_and_global_alias(client, player):
    client.post(RESULT, json={"language": "Tamil", "correct": True, "guesses": ["KAITHI"]}, headers=_as(player))

    english = client.get(STATUS, headers=_as(player)).json()
    assert english == {
        "lastPlayed": None,
        "streak": 0,
        "history": {},
        "canPlay": True,
        "playedToday": False,
        "completedToday": False,
    }

    tamil = client.get(STATUS, params={"language": "tamil"}, headers=_as(player)).json()
    assert tamil["streak"] == 1
    assert tamil["lastPlayed"] == "2024-06-10"

    global_state = client.get(STATUS, params={"language": "Global"}, headers=_as(player)).json()
    assert global_state["streak"] == 1
    assert global_state["history"]["2024-06-10"]["played"] is True
    assert global_state["canPlay"] is False
    assert global_state["playedToday"] is True
    assert global_state["completedToday"] is True


def test_status_zeroes_missed_day(client, player, clock, user_store):
    client.post(RESULT, json={"correct": True}, headers=_as(player))
    clock.set("2024-06-12")

    body = client.get(STATUS, headers=_as(player)).json()

    assert body["streak"] == 0
    assert body["lastPlayed"] == "2024-06-10"
    assert user_store.get_user(player).modle["English"]["streak"] == 1


def test_unknown_language_is_bad_request(client, player):
    resp = client.get(STATUS, params={"language": "Klingon"}, headers=_as(player))
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "validation_error"

    resp = client.post(RESULT, json={"language": "global", "correct": True}, headers=_as(player))
    assert resp.status_code == 400


def test_unknown_user_is_not_found_without_provisioning(client, monkeypatch):
    monkeypatch.setattr(settings, "MODLE_AUTO_PROVISION_USERS", False)
    resp = client.post(RESULT, json={"correct": True}, headers=_as("nobody"))
    assert resp.status_code == 404
    assert resp.json()["msg"] == "User not found"

    resp = client.get(STATUS, headers=_as("nobody"))
    assert resp.status_code == 404


def test_malformed_body_is_rejected(client, player):
    resp = client.post(RESULT, json={"guesses": "AVATAR"}, headers=_as(player))
    assert resp.status_code == 422


def test_storage_failure_is_server_error(client, player, service, monkeypatch):
    from sqlalchemy.exc import OperationalError

    def broken(*args, **kwargs):
        raise OperationalError("UPDATE app_users", {}, Exception("db down"))

    monkeypatch.setattr(service.store, "compare_and_swap", broken)

    resp = client.post(RESULT, json={"correct": True}, headers=_as(player))

    assert resp.status_code == 500
    assert resp.json()["error"]["code"] == "storage_error"
    assert resp.headers.get("x-request-id")


def test_user_id_header_ignored_in_production(client, player, monkeypatch):
    monkeypatch.setattr(settings, "ENV", "production")

    resp = client.get(STATUS, headers=_as(player))

    assert resp.status_code == 401


def test_new_user_can_play_without_setup():
    from fastapi.testclient import TestClient
    from backend.main import app

    client = TestClient(app)
    headers = _as("alice")

    before = client.get(STATUS, headers=headers)
    assert before.status_code == 200
    assert before.json()["canPlay"] is True

    resp = client.post(RESULT, json={"language": "English", "correct": True}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["language"]["streak"] == 1
    assert resp.json()["global"]["streak"] == 1

    after = client.get(STATUS, params={"language": "English"}, headers=headers).json()
    assert after["streak"] == 1
    assert after["canPlay"] is False
    assert after["completedToday"] is True
