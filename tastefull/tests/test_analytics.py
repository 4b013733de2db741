from __future__ import annotations

from fastapi.testclient import TestClient

from tastefull.analytics.aggregator import compute_analytics
from tastefull.analytics.store import clear_events, get_events, record_event
from tastefull.app import app
from tastefull.store.data_store import reset_store

client = TestClient(app)


def _login_user(c):
    c.post("/auth/login", json={"email": "alex@example.com", "password": "tastefull123"})


def _login_admin(c):
    c.post("/auth/login", json={"email": "james@example.com", "password": "tastefull123"})


def _logout(c):
    c.post("/auth/logout")


def test_analytics_returns_empty_initially():
    clear_events()
    _login_admin(client)
    resp = client.get("/analytics")
    assert resp.status_code == 200
    body = resp.json()
    assert body["total_feeds"] == 0
    assert body["avg_response_time_ms"] == 0.0
    assert body["empty_result_rate"] == 0.0


def test_analytics_tracks_feed():
    reset_store()
    clear_events()
    _logout(client)
    client.post("/feed", json={})
    _login_admin(client)
    body = client.get("/analytics").json()
    assert body["total_feeds"] == 1
    assert body["avg_response_time_ms"] >= 0
    assert body["social_filter_usage"] == [{"name": "everyone", "count": 1}]
    assert body["signed_in_rate"] == 0.0


def test_analytics_filter_usage():
    reset_store()
    clear_events()
    _logout(client)
    client.post("/feed", json={})
    client.post("/feed", json={"selected_categories": ["coffee"], "min_overall_rating": 5})
    # Anonymous viewers have nobody to follow, so this one comes back empty
    client.post("/feed", json={"social_filter": "following"})
    _login_admin(client)
    body = client.get("/analytics").json()
    assert body["total_feeds"] == 3
    assert body["filter_usage"]["category"] == 33.3
    assert body["filter_usage"]["rating"] == 33.3
    assert body["filter_usage"]["social"] == 33.3
    assert body["filter_usage"]["tag"] == 0.0
    assert body["top_categories"] == [{"name": "coffee", "count": 1}]
    assert body["empty_result_rate"] == 33.3
    assert body["filtered_rate"] == 66.7
    assert [e["filtered"] for e in get_events("feed")] == [False, True, True]


def test_signed_in_feeds_are_counted():
    reset_store()
    clear_events()
    _login_user(client)
    client.post("/feed", json={"social_filter": "stackone"})
    events = get_events("feed")
    assert len(events) == 1
    assert events[0]["signed_in"] is True
    assert events[0]["social_filter"] == "stackone"
    assert events[0]["results_returned"] == 3


def test_organisation_feed_records_slug():
    reset_store()
    clear_events()
    _login_user(client)
    client.post("/organisations/stackone/feed", json={})
    assert get_events("feed")[0]["organisation"] == "stackone"


def test_get_events_filters_by_type():
    clear_events()
    record_event("feed", {"social_filter": "everyone"})
    record_event("login", {})
    assert len(get_events()) == 2
    assert len(get_events("feed")) == 1


def test_compute_analytics_ignores_other_events():
    events = [
        {"type": "login"},
        {"type": "feed", "social_filter": "just_me", "signed_in": True,
         "results_returned": 2, "response_time_ms": 4.0},
        {"type": "feed", "social_filter": "just_me", "signed_in": True,
         "results_returned": 0, "response_time_ms": 2.0, "tags": ["tag-value"]},
    ]
    result = compute_analytics(events)
    assert result["total_feeds"] == 2
    assert result["avg_response_time_ms"] == 3.0
    assert result["social_filter_usage"] == [{"name": "just_me", "count": 2}]
    assert result["filter_usage"]["social"] == 100.0
    assert result["filter_usage"]["tag"] == 50.0
    assert result["empty_result_rate"] == 50.0
    assert result["signed_in_rate"] == 100.0


def test_analytics_requires_admin():
    _login_user(client)
    resp = client.get("/analytics")
    assert resp.status_code == 403
