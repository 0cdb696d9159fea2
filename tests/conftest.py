from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from event_hub_api.app.core.config import settings
from event_hub_api.app.core.db import get_connection, init_db
from event_hub_api.app.core.security import create_access_token, hash_password
from event_hub_api.app.main import app

PASSWORD = "secret123"


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    # Every test gets its own database file.
    path = tmp_path / "event_hub_test.db"
    monkeypatch.setattr(settings, "database_url", str(path))
    init_db()
    return path


@pytest.fixture
def client(db_path):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_user(db_path):
    """Factory inserting a verified user and returning id, email and auth headers."""
    counter = {"n": 0}

    def _make_user(name="Test User", role="student", email=None, verified=True, institution=None):
        counter["n"] += 1
        email = email or f"user{counter['n']}@example.com"
        profile = '{"institution": "%s"}' % institution if institution else "{}"
        conn = get_connection()
        try:
            cursor = conn.execute(
                "INSERT INTO users (name, email, password, role, profile, is_email_verified) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (name, email, hash_password(PASSWORD), role, profile, int(verified)),
            )
            conn.commit()
            user_id = cursor.lastrowid
        finally:
            conn.close()
        token = create_access_token(user_id)
        return {
            "id": user_id,
            "name": name,
            "email": email,
            "token": token,
            "headers": {"Authorization": f"Bearer {token}"},
        }

    return _make_user


def event_payload(**overrides):
    now = datetime.now(timezone.utc)
    payload = {
        "title": "National AI Hackathon",
        "description": "Forty-eight hours of building with machine learning.",
        "category": "hackathon",
        "mode": "Online",
        "date_time": {
            "start": (now + timedelta(days=10)).isoformat(),
            "end": (now + timedelta(days=11)).isoformat(),
        },
        "registration": {"deadline": (now + timedelta(days=5)).isoformat()},
        "status": "published",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def make_event(client):
    """Factory creating an event through the API as ``organizer``."""

    def _make_event(organizer, **overrides):
        response = client.post("/api/v1/events/", json=event_payload(**overrides), headers=organizer["headers"])
        assert response.status_code == 201, response.json()
        return response.json()["data"]["event"]

    return _make_event


def fetch_one(query, params=()):
    conn = get_connection()
    try:
        return conn.execute(query, params).fetchone()
    finally:
        conn.close()
