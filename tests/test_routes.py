import random

import pytest

pytest.importorskip("httpx", reason="httpx is required by the FastAPI test client")

from fastapi import FastAPI
from fastapi.testclient import TestClient

from madlibs.config.settings import settings
from madlibs.main import app, game_error_handler
from madlibs.routes.dev import router as dev_router
from madlibs.services.errors import GameError
from madlibs.services.game_service import GameService, get_game_service
from madlibs.services.game_store import GameStore, MemoryBackend
from madlibs.services.story_renderer import render_story

STORY = "A [[BLANK:b1:Noun]] day"


def _auth_headers() -> dict:
    return {"Authorization": f"Bearer {settings.ADMIN_PASSWORD}"}


@pytest.fixture
def game_service():
    return GameService(GameStore(MemoryBackend()), rng=random.Random(42), max_players=3)


@pytest.fixture
def client(game_service):
    app.dependency_overrides[get_game_service] = lambda: game_service
    yield TestClient(app)
    app.dependency_overrides.clear()


def _create(client, story=STORY, title="Picnic") -> str:
    response = client.post("/games", json={"title": title, "story": story}, headers=_auth_headers())
    assert response.status_code == 200
    return response.json()["code"]


def test_health_and_root(client):
    assert client.get("/").json()["ok"] is True
    health = client.get("/health").json()
    assert health["ok"] is True
    assert health["games"] == 0


def test_host_routes_require_admin(client):
    assert client.get("/games").status_code == 401
    wrong = client.get("/games", headers={"Authorization": "Bearer nope"})
    assert wrong.status_code == 403
    assert client.get("/games", headers=_auth_headers()).status_code == 200


def test_cookie_login_logout(client):
    bad = client.post("/auth/admin/login", json={"password": "wrong"})
    assert bad.status_code == 401

    ok = client.post("/auth/admin/login", json={"password": settings.ADMIN_PASSWORD})
    assert ok.status_code == 200
    assert "admin_session" in ok.cookies
    assert client.get("/auth/admin/session").json()["authenticated"] is True
    assert client.get("/games").status_code == 200

    client.post("/auth/admin/logout")
    assert client.get("/auth/admin/session").json()["authenticated"] is False
    assert client.get("/games").status_code == 401


def test_create_rejects_incomplete_draft(client):
    response = client.post("/games", json={"title": " ", "story": STORY}, headers=_auth_headers())
    assert response.status_code == 422
    body = response.json()
    assert body == {"ok": False, "error": "validation_error", "detail": "Please enter a game title"}


def test_full_party_over_http(client):
    code = _create(client)

    draft_poll = client.get(f"/play/{code}")
    assert draft_poll.json()["status"] == "draft"
    early = client.post(f"/play/{code}/join", json={"name": "Early"})
    assert early.status_code == 409
    assert early.json()["error"] == "game_not_active"

    assert client.post(f"/games/{code}/start", headers=_auth_headers()).json()["game"]["status"] == "active"

    joined = client.post(f"/play/{code.lower()}/join", json={"name": "Alice"})
    assert joined.status_code == 200
    player_id = joined.json()["player_id"]
    assert joined.json()["blanks"][0]["hint"]

    missing = client.post(f"/play/{code}/submit", json={"player_id": player_id, "answers": {"b1": "  "}})
    assert missing.status_code == 422
    assert missing.json()["unanswered"] == 1

    submitted = client.post(f"/play/{code}/submit", json={"player_id": player_id, "answers": {"b1": "banana"}})
    assert submitted.status_code == 200
    assert submitted.json()["has_submitted"] is True

    again = client.post(f"/play/{code}/submit", json={"player_id": player_id, "answers": {"b1": "pear"}})
    assert again.status_code == 409
    assert again.json()["error"] == "already_submitted"

    ended = client.post(f"/games/{code}/end", headers=_auth_headers()).json()
    assert ended["story"] == "A banana day"
    assert ended["answer_key"][0]["player_name"] == "Alice"

    hidden = client.get(f"/play/{code}", params={"player_id": player_id}).json()
    assert hidden["results_visible"] is False
    assert "story" not in hidden

    client.post(f"/games/{code}/reveal", headers=_auth_headers())
    shown = client.get(f"/play/{code}", params={"player_id": player_id}).json()
    assert shown["results_visible"] is True
    assert shown["story"] == "A banana day"
    assert shown["player"] == {"player_id": player_id, "name": "Alice"}


def test_unknown_code_is_not_found(client):
    response = client.get("/play/ZZZZZZ")
    assert response.status_code == 404
    assert response.json()["detail"] == "Game not found. Check your code!"


def test_edit_only_in_draft(client):
    code = _create(client)
    edited = client.put(
        f"/games/{code}",
        json={"title": "Renamed", "story": "[[BLANK:x:Verb]] now"},
        headers=_auth_headers(),
    )
    assert edited.status_code == 200
    assert edited.json()["game"]["blanks"] == [{"id": "x", "type": "Verb", "index": 1}]

    client.post(f"/games/{code}/start", headers=_auth_headers())
    locked = client.put(f"/games/{code}", json={"title": "X", "story": STORY}, headers=_auth_headers())
    assert locked.status_code == 409
    assert locked.json()["error"] == "invalid_transition"


def test_game_full(client):
    code = _create(client)
    client.post(f"/games/{code}/start", headers=_auth_headers())
    for name in ("A", "B", "C"):
        assert client.post(f"/play/{code}/join", json={"name": name}).status_code == 200
    full = client.post(f"/play/{code}/join", json={"name": "D"})
    assert full.status_code == 409
    assert full.json() == {
        "ok": False,
        "error": "game_full",
        "detail": "Game is full! Maximum players reached.",
        "max_players": 3,
    }


def test_exports(client):
    code = _create(client, title="Office <Party>")
    early = client.get(f"/games/{code}/export", headers=_auth_headers())
    assert early.status_code == 422

    client.post(f"/games/{code}/start", headers=_auth_headers())
    client.post(f"/games/{code}/end", headers=_auth_headers())

    text = client.get(f"/games/{code}/export", params={"format": "txt"}, headers=_auth_headers())
    assert text.status_code == 200
    assert f"madlibs-{code}.txt" in text.headers["content-disposition"]
    assert "A [Noun] day" in text.text
    assert "1. Noun: [Not filled] - Unknown" in text.text

    pdf = client.get(f"/games/{code}/export", params={"format": "pdf"}, headers=_auth_headers())
    assert pdf.status_code == 200
    assert pdf.headers["content-type"] == "application/pdf"
    assert pdf.content.startswith(b"%PDF")


def test_listing_stats_and_delete(client):
    first = _create(client, title="One")
    _create(client, title="Two")
    client.post(f"/games/{first}/start", headers=_auth_headers())

    listing = client.get("/games", headers=_auth_headers()).json()
    assert len(listing["games"]) == 2
    assert listing["counts"]["active"] == 1

    assert client.delete(f"/games/{first}", headers=_auth_headers()).json()["deleted"] == first
    assert client.delete(f"/games/{first}", headers=_auth_headers()).status_code == 404
    assert client.get("/games/stats", headers=_auth_headers()).json()["counts"]["total"] == 1


def test_story_helpers(client):
    types = client.get("/story/blank-types").json()
    assert any(t["type"] == "Noun" for t in types["types"])
    parsed = client.post("/story/parse", json={"story": "[[BLANK:a:Noun]] [[BLANK:a:Noun]] [[BLANK:b:Verb]]"}).json()
    assert [b["id"] for b in parsed["blanks"]] == ["a", "b"]
    assert parsed["marker_count"] == 3


def test_editor_inserts_and_removes_blanks(client):
    inserted = client.post(
        "/story/insert-blank",
        json={"story": "Hello world", "blanks": [], "blank_type": "Noun", "start": 6, "end": 11},
    )
    assert inserted.status_code == 200
    body = inserted.json()
    blank = body["blanks"][0]
    assert body["story"] == f"Hello [[BLANK:{blank['id']}:Noun]]"
    assert blank["index"] == 1

    second = client.post(
        "/story/insert-blank",
        json={"story": body["story"], "blanks": body["blanks"], "blank_type": "Verb", "start": 0, "end": 5},
    ).json()
    assert [b["index"] for b in second["blanks"]] == [1, 2]

    removed = client.post(
        "/story/remove-blank",
        json={"story": second["story"], "blanks": second["blanks"], "blank_id": blank["id"]},
    ).json()
    assert blank["id"] not in removed["story"]
    assert [(b["type"], b["index"]) for b in removed["blanks"]] == [("Verb", 1)]

    bad = client.post(
        "/story/insert-blank",
        json={"story": "Hi", "blanks": [], "blank_type": "a:b", "start": 0},
    )
    assert bad.status_code == 422
    assert bad.json()["error"] == "validation_error"


def test_dev_routes(game_service):
    dev_app = FastAPI()
    dev_app.add_exception_handler(GameError, game_error_handler)
    dev_app.include_router(dev_router)
    dev_app.dependency_overrides[get_game_service] = lambda: game_service
    dev_client = TestClient(dev_app)

    assert dev_client.get("/dev/sample-story").status_code == 401

    sample = dev_client.get("/dev/sample-story", headers=_auth_headers()).json()
    game = game_service.create_game(sample["title"], sample["story"])
    game_service.start_game(game.code)

    added = dev_client.post(
        f"/dev/games/{game.code}/fake-players", params={"count": 5}, headers=_auth_headers()
    ).json()
    assert added["added"] == 3
    assert added["player_count"] == 3

    stats = dev_client.post(f"/dev/games/{game.code}/simulate-submissions", headers=_auth_headers()).json()
    assert stats["unique_submitters"] == 3

    preview = dev_client.get(f"/dev/games/{game.code}/preview-selection", headers=_auth_headers()).json()
    assert "[[BLANK:" not in preview["story"]
    assert game_service.get_game(game.code).status == "active"

    ended = game_service.end_game(game.code)
    frozen = dev_client.get(f"/dev/games/{game.code}/preview-selection", headers=_auth_headers()).json()
    assert frozen["frozen"] is True
    assert frozen["story"] == render_story(ended, ended.selected_answers)

    cleared = dev_client.delete("/dev/games", headers=_auth_headers()).json()
    assert cleared["deleted"] == [game.code]
    assert game_service.list_games() == []
