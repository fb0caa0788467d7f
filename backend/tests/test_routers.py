import json

import pytest
from fastapi.testclient import TestClient

from app.core.database import get_db
from app.core.rate_limit import limiter
from app.core.redis import get_redis
from app.core.security import generate_unsubscribe_token
from app.main import app
from app.routers import health
from app.routers.deps import require_login
from app.services.subscription_service import get_daily_subscribers, subscribe_user_to_emails
from conftest import make_language, make_responses


@pytest.fixture
def client(db, learner):
    user = learner[0]

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[require_login] = lambda: user
    limiter.enabled = False
    yield TestClient(app)
    limiter.enabled = True
    app.dependency_overrides.clear()


def test_summary_read_is_empty_before_generation(client):
    res = client.get("/api/summary")

    assert res.status_code == 200
    body = res.json()
    assert body["responses"] == []
    assert body["created_at"] is None


def test_generate_then_read_returns_same_snapshot(client, db, learner):
    user, ja, deck, daily = learner
    make_responses(db, user, ja, rank=1, count=2, bookmarks=[deck])

    generated = client.post("/api/summary/generate", json={"force_refresh": True})
    read = client.get("/api/summary", params={"language": "ja"})

    assert generated.status_code == 200
    ids = sorted(item["id"] for item in generated.json()["responses"])
    assert len(ids) == 2
    assert sorted(item["id"] for item in read.json()["responses"]) == ids
    assert generated.json()["languages"][0]["status"] == "created"
    assert client.get("/api/summary/available").json() == {"available": True}


def test_summary_unknown_language_is_404(client):
    assert client.get("/api/summary", params={"language": "xx"}).status_code == 404


def test_generate_rejects_non_boolean(client):
    res = client.post("/api/summary/generate", json={"force_refresh": "maybe"})

    assert res.status_code == 422
    assert "force_refresh must be true or false" in res.json()["detail"]


def test_token_unsubscribe_single_language(client, db, learner):
    user, ja, deck, daily = learner
    make_language(db, "ko")
    subscribe_user_to_emails(db, user.id, "learner@example.com", "daily", "ja")
    subscribe_user_to_emails(db, user.id, "learner@example.com", "daily", "ko")

    res = client.post("/api/unsubscribe", json={"token": generate_unsubscribe_token(user.id, "ko")})

    assert res.status_code == 200
    assert res.json()["language_code"] == "ko"
    assert get_daily_subscribers(db, "daily") == {user.id: ["ja"]}


def test_token_unsubscribe_rejects_bad_token(client):
    res = client.post("/api/unsubscribe", json={"token": "garbage"})

    assert res.status_code == 400
    assert "30 days" in res.json()["detail"]


def test_community_share_failure_is_400(client, db, learner):
    user, ja, deck, daily = learner
    [response] = make_responses(db, user, ja, rank=1, count=1, bookmarks=[deck])

    # エイリアス未設定
    res = client.post(f"/api/community/share/{response.id}")

    assert res.status_code == 400
    assert "alias" in res.json()["detail"]


def test_community_share_unknown_response_is_404(client, db, learner):
    user = learner[0]
    user.alias = "sensei"
    db.commit()

    assert client.post("/api/community/share/missing").status_code == 404


def test_resend_bounce_marks_user_undeliverable(client, db, learner):
    user = learner[0]
    payload = {"type": "email.bounced", "data": {"to": ["learner@example.com"]}}

    res = client.post("/api/webhooks/resend", content=json.dumps(payload))

    assert res.json() == {"received": True, "processed": True, "users": 1}
    db.refresh(user)
    assert user.deliverable is False


def test_health_reports_db_outage(client, monkeypatch):
    async def redis_up():
        return True

    monkeypatch.setattr(health, "check_db_connection", lambda: False)
    monkeypatch.setattr(health, "check_redis_connection", redis_up)

    res = client.get("/health")

    assert res.status_code == 503
    assert res.json()["db"] == "disconnected"


class FakeSessionRedis:
    def __init__(self, sessions):
        self.sessions = sessions

    async def hget(self, key, field):
        return self.sessions.get(key, {}).get(field)

    async def expire(self, key, ttl):
        return True


def test_session_cookie_resolves_user(db, learner):
    user = learner[0]

    def override_get_db():
        yield db

    async def override_get_redis():
        return FakeSessionRedis({"session:abc": {"user_id": user.id}})

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    try:
        client = TestClient(app)
        assert client.get("/api/summary/available").status_code == 401
        client.cookies.set("session_id", "abc")
        assert client.get("/api/summary/available").json() == {"available": False}
    finally:
        app.dependency_overrides.clear()
