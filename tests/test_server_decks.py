"""Tests for deck and card authoring endpoints."""

import sys
import tempfile
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import pytest
from fastapi.testclient import TestClient
from server.app import app
from server.config import Settings
from server.db.session import init_db, reset_engine
from server.dependencies import get_settings


# ============================================================================
# Helpers
# ============================================================================

@pytest.fixture
def settings():
    with tempfile.TemporaryDirectory() as tmp:
        reset_engine()
        settings = Settings(database_url=f"sqlite:///{Path(tmp) / 'test.db'}")
        init_db(settings)
        app.dependency_overrides[get_settings] = lambda: settings
        try:
            yield settings
        finally:
            app.dependency_overrides.clear()
            reset_engine()


def _login(email: str) -> TestClient:
    client = TestClient(app)
    r = client.post("/auth/register", json={"email": email, "password": "password123"})
    assert r.status_code == 200
    return client


def _make_deck(client: TestClient, title: str = "Cells", course_id: str = "bio-101") -> dict:
    r = client.post("/decks", json={"course_id": course_id, "title": title})
    assert r.status_code == 200
    return r.json()


# ============================================================================
# Decks
# ============================================================================

def test_create_deck_starts_as_draft(settings):
    author = _login("author@x.com")
    deck = _make_deck(author, title="  <b>Cells</b>  ")
    assert deck["status"] == "draft"
    assert deck["card_count"] == 0
    assert deck["title"] == "Cells"


def test_list_course_decks(settings):
    author = _login("author@x.com")
    _make_deck(author, title="A")
    _make_deck(author, title="B")
    _make_deck(author, title="Other", course_id="chem-1")
    r = author.get("/courses/bio-101/decks")
    assert r.status_code == 200
    assert sorted(d["title"] for d in r.json()["decks"]) == ["A", "B"]


def test_update_deck_publish(settings):
    author = _login("author@x.com")
    deck = _make_deck(author)
    r = author.patch(f"/decks/{deck['id']}", json={"status": "published", "description": "Intro"})
    assert r.status_code == 200
    assert r.json()["status"] == "published"
    assert r.json()["description"] == "Intro"


def test_update_deck_invalid_status(settings):
    author = _login("author@x.com")
    deck = _make_deck(author)
    r = author.patch(f"/decks/{deck['id']}", json={"status": "archived"})
    assert r.status_code == 422


def test_only_owner_can_modify_deck(settings):
    author = _login("author@x.com")
    deck = _make_deck(author)
    other = _login("someone@x.com")
    assert other.patch(f"/decks/{deck['id']}", json={"title": "Mine"}).status_code == 404
    assert other.delete(f"/decks/{deck['id']}").status_code == 404
    r = other.post(f"/decks/{deck['id']}/cards", json={"front_text": "Q", "back_text": "A"})
    assert r.status_code == 404


def test_deck_requires_login(settings):
    client = TestClient(app)
    r = client.post("/decks", json={"course_id": "bio-101", "title": "Cells"})
    assert r.status_code == 401


# ============================================================================
# Cards
# ============================================================================

def test_add_cards_appends_and_counts(settings):
    author = _login("author@x.com")
    deck = _make_deck(author)
    for i in range(3):
        r = author.post(f"/decks/{deck['id']}/cards",
                        json={"front_text": f"Q{i}", "back_text": f"A{i}"})
        assert r.status_code == 200
        assert r.json()["order_index"] == i

    cards = author.get(f"/decks/{deck['id']}/cards").json()["cards"]
    assert [c["front_text"] for c in cards] == ["Q0", "Q1", "Q2"]

    decks = author.get("/courses/bio-101/decks").json()["decks"]
    assert decks[0]["card_count"] == 3


def test_card_text_is_sanitized(settings):
    author = _login("author@x.com")
    deck = _make_deck(author)
    r = author.post(f"/decks/{deck['id']}/cards", json={
        "front_text": "<script>alert(1)</script>What   is   ATP?",
        "back_text": "Energy &amp; currency",
        "hint": "   ",
    })
    assert r.status_code == 200
    body = r.json()
    assert body["front_text"] == "alert(1)What is ATP?"
    assert body["back_text"] == "Energy & currency"
    assert body["hint"] is None


def test_card_with_only_markup_rejected(settings):
    author = _login("author@x.com")
    deck = _make_deck(author)
    r = author.post(f"/decks/{deck['id']}/cards", json={"front_text": "<br>", "back_text": "A"})
    assert r.status_code == 400


def test_card_validation_limits(settings):
    author = _login("author@x.com")
    deck = _make_deck(author)
    r = author.post(f"/decks/{deck['id']}/cards",
                    json={"front_text": "Q", "back_text": "A", "hint": "h" * 501})
    assert r.status_code == 422
    r = author.post(f"/decks/{deck['id']}/cards", json={"front_text": "", "back_text": "A"})
    assert r.status_code == 422


def test_update_card(settings):
    author = _login("author@x.com")
    deck = _make_deck(author)
    card = author.post(f"/decks/{deck['id']}/cards", json={"front_text": "Q", "back_text": "A"}).json()
    r = author.patch(f"/cards/{card['id']}", json={"back_text": "Better answer", "hint": "look closer"})
    assert r.status_code == 200
    assert r.json()["front_text"] == "Q"
    assert r.json()["back_text"] == "Better answer"
    assert r.json()["hint"] == "look closer"


def test_delete_card_recounts(settings):
    author = _login("author@x.com")
    deck = _make_deck(author)
    ids = [
        author.post(f"/decks/{deck['id']}/cards", json={"front_text": f"Q{i}", "back_text": "A"}).json()["id"]
        for i in range(2)
    ]
    assert author.delete(f"/cards/{ids[0]}").status_code == 200
    assert author.delete(f"/cards/{ids[0]}").status_code == 404
    decks = author.get("/courses/bio-101/decks").json()["decks"]
    assert decks[0]["card_count"] == 1


def test_delete_deck_removes_cards(settings):
    author = _login("author@x.com")
    deck = _make_deck(author)
    author.post(f"/decks/{deck['id']}/cards", json={"front_text": "Q", "back_text": "A"})
    assert author.delete(f"/decks/{deck['id']}").status_code == 200
    assert author.get(f"/decks/{deck['id']}/cards").json()["cards"] == []
    assert author.get("/courses/bio-101/decks").json()["decks"] == []
