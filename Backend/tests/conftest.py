"""Shared fixtures: in-memory database, API client, fake Redis and Strava responses."""

import json
from datetime import timedelta

import pytest
import requests
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import app.db.models  # noqa: F401
from app.core import redis_kv
from app.db import engine as db_engine
from app.db.base import Base
from app.db.crud.strava_token import upsert_token
from app.db.models.user import User
from app.dependencies import get_db
from app.main import app as api
from app.utils.clock import utcnow


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(eng, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine, monkeypatch):
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)
    # Background tasks open their own sessions through app.db.engine.SessionLocal.
    monkeypatch.setattr(db_engine, "SessionLocal", factory)
    return factory


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    api.dependency_overrides[get_db] = _get_db
    yield TestClient(api)
    api.dependency_overrides.clear()


@pytest.fixture
def user(db):
    u = User(firebase_uid="fb-alice", email="alice@example.com", name="Alice")
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


@pytest.fixture
def other_user(db):
    u = User(firebase_uid="fb-bob", email="bob@example.com", name="Bob")
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


def auth_headers(u: User) -> dict:
    return {"Authorization": "Bearer test-id-token", "X-Firebase-UID": u.firebase_uid}


def link_strava(db, u: User, *, expires_in: int = 3600, access: str = "access-1", refresh: str = "refresh-1"):
    return upsert_token(
        db,
        user_id=u.id,
        access_token=access,
        refresh_token=refresh,
        expires_at=utcnow() + timedelta(seconds=expires_in),
        strava_user_id="9001",
        scope="activity:read_all,activity:write",
    )


def strava_activity(strava_id, name="Morning Run", type_="Run", start="2024-05-02T06:12:44Z", **extra):
    raw = {
        "id": strava_id,
        "name": name,
        "type": type_,
        "start_date": start,
        "distance": 10012.5,
        "moving_time": 3120,
        "elapsed_time": 3300,
    }
    raw.update(extra)
    return raw


def make_response(status_code: int, payload=None, text: str | None = None) -> requests.Response:
    resp = requests.Response()
    resp.status_code = status_code
    if payload is not None:
        resp._content = json.dumps(payload).encode("utf-8")
        resp.headers["content-type"] = "application/json"
    else:
        resp._content = (text or "").encode("utf-8")
        resp.headers["content-type"] = "text/plain"
    return resp


class FakeRedis:
    def __init__(self):
        self.store = {}

    def set(self, key, value, ex=None, nx=False):
        if nx and key in self.store:
            return None
        self.store[key] = value
        return True

    def getdel(self, key):
        return self.store.pop(key, None)


@pytest.fixture
def fake_redis(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(redis_kv, "r", fake)
    return fake
