from __future__ import annotations

from fastapi.testclient import TestClient

from tastefull.app import app
from tastefull.store.data_store import reset_store

client = TestClient(app)

PASSWORD = "tastefull123"


def _login_user(c):
    c.post("/auth/login", json={"email": "alex@example.com", "password": PASSWORD})


def _login_admin(c):
    c.post("/auth/login", json={"email": "james@example.com", "password": PASSWORD})


# ── Login / Logout ───────────────────────────────────────────────────────


def test_login_success_user():
    resp = client.post("/auth/login", json={"email": "alex@example.com", "password": PASSWORD})
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["user"]["id"] == "user-3"
    assert body["user"]["role"] == "user"


def test_login_success_admin():
    resp = client.post("/auth/login", json={"email": "James@Example.com", "password": PASSWORD})
    assert resp.status_code == 200
    assert resp.json()["user"]["role"] == "admin"


def test_login_wrong_password():
    resp = client.post("/auth/login", json={"email": "alex@example.com", "password": "wrong"})
    assert resp.status_code == 401


def test_login_unknown_user():
    resp = client.post("/auth/login", json={"email": "nobody@example.com", "password": PASSWORD})
    assert resp.status_code == 401


def test_login_validation():
    resp = client.post("/auth/login", json={"email": "alex@example.com"})
    assert resp.status_code == 422


def test_auth_me_when_logged_in():
    _login_user(client)
    resp = client.get("/auth/me")
    assert resp.status_code == 200
    assert resp.json()["email"] == "alex@example.com"


def test_auth_me_not_logged_in():
    c = TestClient(app)  # fresh client, no session
    resp = c.get("/auth/me")
    assert resp.status_code == 401


def test_logout():
    _login_user(client)
    resp = client.post("/auth/logout")
    assert resp.status_code == 200
    assert resp.json()["status"] == "logged_out"
    # Session should be cleared
    resp = client.get("/auth/me")
    assert resp.status_code == 401


# ── Route protection ─────────────────────────────────────────────────────


def test_follow_requires_login():
    c = TestClient(app)
    resp = c.post("/users/user-1/follow")
    assert resp.status_code == 401


def test_follow_requests_require_login():
    c = TestClient(app)
    assert c.get("/follow-requests").status_code == 401


def test_organisation_feed_requires_login():
    c = TestClient(app)
    resp = c.post("/organisations/stackone/feed", json={})
    assert resp.status_code == 401


def test_analytics_requires_admin():
    c = TestClient(app)
    _login_user(c)
    resp = c.get("/analytics")
    assert resp.status_code == 403


def test_analytics_allowed_for_admin():
    c = TestClient(app)
    _login_admin(c)
    resp = c.get("/analytics")
    assert resp.status_code == 200


# ── Public endpoints stay public ─────────────────────────────────────────


def test_health_is_public():
    c = TestClient(app)
    assert c.get("/health").status_code == 200


def test_metadata_is_public():
    c = TestClient(app)
    resp = c.get("/metadata")
    assert resp.status_code == 200
    body = resp.json()
    assert body["categories"] == ["lunch", "dinner", "coffee", "brunch", "pub"]
    assert "everyone" in body["social_filters"]
    assert "Italian" in body["cuisines"]


def test_feed_is_public():
    c = TestClient(app)
    assert c.post("/feed", json={}).status_code == 200


# ── Profile ──────────────────────────────────────────────────────────────


def test_auth_me_lists_organisations():
    reset_store()
    c = TestClient(app)
    _login_admin(c)
    body = c.get("/auth/me").json()
    assert body["is_private"] is False
    assert body["organisations"] == [{"id": "org-stackone", "name": "StackOne", "slug": "stackone"}]


# ── Credentials follow the loaded users ──────────────────────────────────


def test_login_uses_users_loaded_after_reset(tmp_path):
    (tmp_path / "users.csv").write_text(
        "id,email,display_name,is_private,avatar_url\nuser-9,zoe@example.com,Zoe,false,\n",
        encoding="utf-8",
    )
    reset_store(tmp_path)
    try:
        c = TestClient(app)
        resp = c.post("/auth/login", json={"email": "zoe@example.com", "password": PASSWORD})
        assert resp.status_code == 200
        assert resp.json()["user"]["id"] == "user-9"
        resp = c.post("/auth/login", json={"email": "alex@example.com", "password": PASSWORD})
        assert resp.status_code == 401
    finally:
        reset_store()
