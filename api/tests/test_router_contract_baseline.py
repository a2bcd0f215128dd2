"""
Baseline router contract checks.

Shape-focused (status + key response fields); service behavior is covered by the
service tests.
"""

from datetime import date

import pytest

pytest.importorskip("fastapi")
from fastapi.testclient import TestClient

import lovebirds.main as m
from lovebirds.deps import get_clock, get_repository

HEADERS = {"X-User-Id": "user-1"}


@pytest.fixture
def client(repo, clock):
    m.app.dependency_overrides[get_repository] = lambda: repo
    m.app.dependency_overrides[get_clock] = lambda: clock
    yield TestClient(m.app)
    m.app.dependency_overrides.clear()


def _seed_partner(repo):
    repo.onboarding["partner-1"] = {
        "user_id": "partner-1",
        "name": "Sam",
        "birthday": date(1990, 5, 1),
        "love_language_primary": "words",
        "preferences": {"gift_budget": "low"},
        "wants_needs": {"avoid": ["public_attention"]},
    }


def test_health_and_scaffold_routes(client):
    assert client.get("/health").json() == {"status": "ok"}
    for module in ("suggestions", "personalization", "profile", "frequency", "notifications", "helping_hand"):
        res = client.get(f"/_scaffold/{module}/health")
        assert res.status_code == 200
        assert res.json()["module"] == module


def test_user_header_is_required(client):
    res = client.get("/suggestions/gift")
    assert res.status_code == 400
    assert res.json()["detail"] == "X-User-Id header is required"
    assert client.get("/profile", headers={"X-User-Id": "   "}).status_code == 400


def test_generate_and_list_suggestions(client, repo):
    _seed_partner(repo)
    res = client.post("/suggestions/love_language/generate", json={"partner_id": "partner-1"}, headers=HEADERS)
    assert res.status_code == 200
    body = res.json()
    assert body["week_start_date"] == "2026-02-09"
    assert len(body["suggestions"]) == 3

    listed = client.get("/suggestions/love_language", headers=HEADERS).json()
    assert [s["id"] for s in listed["suggestions"]] == [s["id"] for s in body["suggestions"]]

    suggestion_id = body["suggestions"][0]["id"]
    updated = client.patch(f"/suggestions/{suggestion_id}", json={"saved": True}, headers=HEADERS)
    assert updated.json()["suggestion"]["saved"] is True
    other_user = client.patch(f"/suggestions/{suggestion_id}", json={"saved": False}, headers={"X-User-Id": "user-2"})
    assert other_user.status_code == 404
    assert client.patch("/suggestions/missing", json={"saved": True}, headers=HEADERS).status_code == 404


def test_precondition_and_store_errors_map_to_status_codes(client, repo):
    res = client.post("/suggestions/poems/generate", json={"partner_id": "partner-1"}, headers=HEADERS)
    assert res.status_code == 400

    _seed_partner(repo)
    repo.fail.add("insert_suggestions")
    res = client.post("/suggestions/gift/generate", json={"partner_id": "partner-1"}, headers=HEADERS)
    assert res.status_code == 503
    assert res.json()["detail"] == "Failed to insert suggestions. Please try again."


def test_personalization_summary(client, repo):
    _seed_partner(repo)
    res = client.get("/personalization/summary", params={"partner_id": "partner-1"}, headers=HEADERS)
    assert res.status_code == 200
    assert res.json()["tier"] == 2


def test_profile_lifecycle(client, repo):
    assert client.get("/profile", headers=HEADERS).json()["profile"] is None

    created = client.post(
        "/profile",
        json={"love_language_primary": "touch", "communication_style": "gentle", "engagement_score": 99},
        headers=HEADERS,
    )
    assert created.status_code == 200
    assert created.json()["profile"]["engagement_score"] == 50

    bad = client.patch("/profile", json={"love_language_primary": "telepathy"}, headers=HEADERS)
    assert bad.status_code == 400

    pref = client.post("/profile/preferences", json={"category": "stress", "rule": "Text first"}, headers=HEADERS)
    assert pref.status_code == 200
    assert client.post("/profile/preferences", json={"category": "moods", "rule": "x"}, headers=HEADERS).status_code == 422

    quiet = client.post("/profile/quiet-mode", json={"reason": "stress_detected", "duration_hours": 24}, headers=HEADERS)
    assert quiet.json()["quiet_mode"]["allow_emergency_messages"] is True
    decision = client.get("/frequency/should-send", params={"prompt_type": "nudge"}, headers=HEADERS).json()
    assert decision["should_send"] is False
    assert client.delete("/profile/quiet-mode", headers=HEADERS).status_code == 200


def test_frequency_prompt_actions(client):
    assert client.post("/frequency/prompts/nudge/sent", headers=HEADERS).json()["status"] == "ok"
    assert client.post("/frequency/prompts/nudge/ignored", headers=HEADERS).status_code == 404
    assert client.post("/frequency/prompts/fax/sent", headers=HEADERS).status_code == 400

    graduation = client.get("/frequency/graduation", params={"couple_id": "c1"}, headers=HEADERS).json()
    assert graduation["cadence_state"] == "bootstrapping"
    milestones = client.get("/frequency/graduation/milestones", headers=HEADERS).json()["milestones"]
    assert len(milestones) == 8
    assert milestones[0]["achieved"] is False
    eligibility = client.get("/frequency/graduation/eligibility", params={"couple_id": "c1"}, headers=HEADERS).json()
    assert eligibility["is_graduated"] is False
    assert client.post("/frequency/adjust", headers=HEADERS).json() == {"changed": False, "frequency_preference": None}


def test_notification_timing(client):
    res = client.post("/notifications/timing", json={"type": "celebration", "hour": 2, "partner_mood": 9})
    assert res.status_code == 200
    body = res.json()
    assert body["schedule"]["timing"] == "gentle"
    assert body["schedule"]["delay"] == 120
    assert body["appropriate_time"] is False
    assert client.post("/notifications/timing", json={"type": "celebration", "hour": 24}).status_code == 422
    assert client.post("/notifications/timing", json={"type": "fax", "hour": 10}).status_code == 400


def test_helping_hand_contracts(client, repo):
    repo.hh_categories = [{"id": "cat-quick", "name": "quick_wins", "display_name": "Quick Wins"}]

    assert client.get("/helping-hand/categories/nope").status_code == 404
    assert client.get("/helping-hand/status", headers=HEADERS).json()["status"] is None

    created = client.post(
        "/helping-hand/suggestions",
        json={
            "relationship_id": "rel-1",
            "category_id": "cat-quick",
            "title": "Make their coffee",
            "description": "Before they wake up.",
            "time_estimate_minutes": 75,
            "effort_level": "minimal",
        },
        headers=HEADERS,
    )
    assert created.status_code == 200
    suggestion = created.json()["suggestion"]
    assert suggestion["week_start_date"] == "2026-02-09"

    fetched = client.get(f"/helping-hand/suggestions/{suggestion['id']}", headers=HEADERS).json()
    assert fetched["time_estimate"] == "1 hr 15 min"

    counts = client.get("/helping-hand/categories/counts", headers=HEADERS).json()
    assert counts["total_suggestions"] == 1

    bad = client.post(
        "/helping-hand/reminders",
        json={
            "suggestion_id": suggestion["id"],
            "frequency": "weekly",
            "specific_days": [9],
            "preferred_time": "08:00",
            "start_date": "2026-02-09",
        },
        headers=HEADERS,
    )
    assert bad.status_code in (400, 422)
