import urllib.parse
from datetime import datetime

from sqlalchemy import func, select

from app.core.errors import StravaAPIError
from app.db.models.activity import Activity
from app.db.models.strava_token import StravaToken
from app.db.models.user import User
from app.strava import client as strava_client
from conftest import auth_headers, link_strava, strava_activity


def _add_activity(db, owner, strava_id, start, name="Run"):
    a = Activity(user_id=owner.id, strava_id=strava_id, name=name, type="Run", start_date=start, distance=5000.0, duration=1500)
    db.add(a)
    db.commit()
    db.refresh(a)
    return a


# --- auth ---

def test_login_creates_user_once(client, db):
    body = {"firebaseUid": "fb-new", "email": "new@example.com", "name": "New", "profilePicture": "https://x/y.png"}

    first = client.post("/api/auth/login", json=body)
    second = client.post("/api/auth/login", json={**body, "name": "Changed"})

    assert first.status_code == 200
    assert first.json()["user"]["firebaseUid"] == "fb-new"
    assert first.json()["user"]["profilePicture"] == "https://x/y.png"
    assert second.json()["user"]["id"] == first.json()["user"]["id"]
    assert second.json()["user"]["name"] == "New"
    assert db.execute(select(func.count()).select_from(User)).scalar_one() == 1


def test_login_malformed_body_is_400(client):
    resp = client.post("/api/auth/login", json={"email": "x@example.com"})
    assert resp.status_code == 400


def test_protected_route_requires_bearer_and_uid(client, user):
    assert client.get("/api/activities").status_code == 401
    assert client.get("/api/activities", headers={"Authorization": "Bearer t"}).status_code == 401
    assert client.get("/api/activities", headers={"X-Firebase-UID": user.firebase_uid}).status_code == 401


def test_unknown_uid_is_404(client):
    resp = client.get("/api/auth/me", headers={"Authorization": "Bearer t", "X-Firebase-UID": "nobody"})
    assert resp.status_code == 404


def test_me_returns_caller(client, user):
    resp = client.get("/api/auth/me", headers=auth_headers(user))
    assert resp.json()["user"]["email"] == "alice@example.com"


# --- strava connect flow ---

def test_status_reflects_link(client, db, user):
    assert client.get("/api/strava/status", headers=auth_headers(user)).json() == {"connected": False, "lastSyncedAt": None}

    link_strava(db, user)

    assert client.get("/api/strava/status", headers=auth_headers(user)).json()["connected"] is True


def test_connect_redirects_to_strava_with_state(client, user, fake_redis):
    resp = client.get("/api/strava/connect", headers=auth_headers(user), follow_redirects=False)

    assert resp.status_code == 302
    location = resp.headers["location"]
    assert location.startswith(strava_client.STRAVA_AUTHORIZE_URL)
    params = urllib.parse.parse_qs(urllib.parse.urlparse(location).query)
    assert params["redirect_uri"][0].endswith("/api/strava/callback")
    assert len(fake_redis.store) == 1


def _connect(client, user):
    resp = client.get("/api/strava/connect", headers=auth_headers(user), follow_redirects=False)
    query = urllib.parse.urlparse(resp.headers["location"]).query
    return urllib.parse.parse_qs(query)["state"][0]


def test_callback_stores_token_and_redirects(client, db, user, fake_redis, monkeypatch):
    state = _connect(client, user)
    monkeypatch.setattr(
        strava_client, "exchange_code_for_tokens",
        lambda code: {"access_token": "a1", "refresh_token": "r1", "expires_at": 1900000000, "athlete": {"id": 77}},
    )

    resp = client.get("/api/strava/callback", params={"code": "abc", "state": state}, follow_redirects=False)

    assert resp.status_code == 302
    assert resp.headers["location"].endswith("/dashboard?connected=true")
    token = db.execute(select(StravaToken)).scalar_one()
    assert token.user_id == user.id
    assert token.strava_user_id == "77"
    # state is single-use
    again = client.get("/api/strava/callback", params={"code": "abc", "state": state}, follow_redirects=False)
    assert again.status_code == 400


def test_callback_denied(client, fake_redis):
    resp = client.get("/api/strava/callback", params={"error": "access_denied"}, follow_redirects=False)

    assert resp.status_code == 302
    assert resp.headers["location"].endswith("/dashboard?error=strava_denied")


def test_callback_without_code_or_session(client, fake_redis):
    assert client.get("/api/strava/callback", follow_redirects=False).status_code == 400
    resp = client.get("/api/strava/callback", params={"code": "abc", "state": "forged"}, follow_redirects=False)
    assert resp.status_code == 400


def test_callback_exchange_failure_redirects_with_error(client, db, user, fake_redis, monkeypatch):
    state = _connect(client, user)

    def failing(code):
        raise StravaAPIError(400, "invalid code")

    monkeypatch.setattr(strava_client, "exchange_code_for_tokens", failing)

    resp = client.get("/api/strava/callback", params={"code": "abc", "state": state}, follow_redirects=False)

    assert resp.headers["location"].endswith("/dashboard?error=strava_error")
    assert db.execute(select(func.count()).select_from(StravaToken)).scalar_one() == 0


# --- activities ---

def test_list_is_newest_first_and_scoped_to_caller(client, db, user, other_user):
    _add_activity(db, user, "1", datetime(2024, 1, 1), name="old")
    _add_activity(db, user, "2", datetime(2024, 3, 1), name="new")
    _add_activity(db, other_user, "3", datetime(2024, 2, 1), name="bob")

    resp = client.get("/api/activities", headers=auth_headers(user))

    assert resp.status_code == 200
    assert [a["name"] for a in resp.json()["activities"]] == ["new", "old"]
    assert resp.json()["activities"][0]["stravaId"] == "2"


def test_sync_not_connected_is_400(client, user):
    resp = client.post("/api/activities/sync", headers=auth_headers(user), json={})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Strava not connected"


def test_sync_reports_counts(client, db, user, monkeypatch):
    link_strava(db, user)
    monkeypatch.setattr(
        strava_client, "list_athlete_activities",
        lambda token, page, per_page: [strava_activity(111), strava_activity(222)],
    )

    resp = client.post("/api/activities/sync", headers=auth_headers(user), json={})

    assert resp.status_code == 200
    assert resp.json() == {"message": "Synced 2 activities", "totalFetched": 2, "saved": 2}


def test_sync_remote_failure_is_500(client, db, user, monkeypatch):
    link_strava(db, user)

    def failing(token, page, per_page):
        raise StravaAPIError(503, "Strava down")

    monkeypatch.setattr(strava_client, "list_athlete_activities", failing)

    resp = client.post("/api/activities/sync", headers=auth_headers(user), json={})
    assert resp.status_code == 500


def test_patch_foreign_activity_is_404(client, db, user, other_user):
    theirs = _add_activity(db, other_user, "9", datetime(2024, 1, 1))

    resp = client.patch(f"/api/activities/{theirs.id}", headers=auth_headers(user), json={"name": "x"})
    missing = client.patch("/api/activities/424242", headers=auth_headers(user), json={"name": "x"})

    assert resp.status_code == 404
    assert missing.status_code == 404
    assert resp.json() == missing.json()


def test_patch_invalid_body_is_400(client, db, user):
    mine = _add_activity(db, user, "1", datetime(2024, 1, 1))
    headers = auth_headers(user)

    assert client.patch(f"/api/activities/{mine.id}", headers=headers, json={"distance": -5}).status_code == 400
    assert client.patch(f"/api/activities/{mine.id}", headers=headers, json={"name": None}).status_code == 400
    assert client.patch(f"/api/activities/{mine.id}", headers=headers, json={"stravaId": "2"}).status_code == 400


def test_patch_distance_succeeds_when_strava_rejects(client, db, user, monkeypatch):
    link_strava(db, user)
    mine = _add_activity(db, user, "1", datetime(2024, 1, 1), name="Before")
    calls = []

    def rejecting(token, strava_id, fields):
        calls.append(fields)
        raise StravaAPIError(422, "distance is read-only")

    monkeypatch.setattr(strava_client, "update_activity", rejecting)

    resp = client.patch(
        f"/api/activities/{mine.id}", headers=auth_headers(user), json={"distance": 8000, "name": "After"},
    )

    assert resp.status_code == 200
    body = resp.json()["activity"]
    assert body["distance"] == 8000
    assert body["name"] == "After"
    assert body["duration"] == 1500
    # the mirror ran as a background task and only carried Strava-editable fields
    assert calls == [{"name": "After"}]
    db.expire_all()
    assert db.get(Activity, mine.id).distance == 8000


def test_patch_distance_only_skips_mirror(client, db, user, monkeypatch):
    link_strava(db, user)
    mine = _add_activity(db, user, "1", datetime(2024, 1, 1))

    def should_not_run(*args, **kwargs):
        raise AssertionError("nothing to mirror")

    monkeypatch.setattr(strava_client, "update_activity", should_not_run)

    resp = client.patch(f"/api/activities/{mine.id}", headers=auth_headers(user), json={"distance": 42.0})

    assert resp.status_code == 200
    assert resp.json()["activity"]["distance"] == 42.0


def test_patch_start_date_with_offset_is_stored_as_utc(client, db, user):
    mine = _add_activity(db, user, "1", datetime(2024, 1, 1))

    resp = client.patch(
        f"/api/activities/{mine.id}", headers=auth_headers(user), json={"startDate": "2024-05-02T08:00:00+02:00"},
    )

    assert resp.status_code == 200
    db.expire_all()
    assert db.get(Activity, mine.id).start_date == datetime(2024, 5, 2, 6, 0)


def test_healthz(client):
    assert client.get("/healthz").json() == {"status": "ok"}
