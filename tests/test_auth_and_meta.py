from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from app.Core.config import Settings
from app.DB.session import get_db
from app.main import app
from conftest import NOW


@pytest.fixture()
def raw_client(db):
    """Client with the real bearer-token dependency in place."""

    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _token(claims):
    return jwt.encode(claims, "test-secret", algorithm="HS256")


def _bearer(claims):
    return {"Authorization": f"Bearer {_token(claims)}"}


def test_me_resolves_token_and_touches_activity(raw_client, seed, db):
    district = seed.district(name="North")
    student = seed.student(district=district, last_active_at=NOW - timedelta(days=30))

    r = raw_client.get("/users/me", headers=_bearer({"sub": student.id}))
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["id"] == student.id
    assert body["email"] == student.email
    assert body["district"] == "North"
    assert body["role"] == "student"

    db.refresh(student)
    assert student.last_active_at.year >= 2025
    assert student.last_active_at.replace(tzinfo=None) > (NOW - timedelta(days=30)).replace(tzinfo=None)


@pytest.mark.parametrize(
    "headers",
    [
        {"Authorization": "Bearer not-a-jwt"},
        {"Authorization": f"Bearer {jwt.encode({'sub': 'x'}, 'other-secret', algorithm='HS256')}"},
        _bearer({"role": "student"}),
        _bearer({"sub": "no-such-user"}),
    ],
)
def test_bad_tokens_rejected(raw_client, headers):
    assert raw_client.get("/users/me", headers=headers).status_code == 401


def test_missing_token(raw_client):
    assert raw_client.get("/users/me").status_code in (401, 403)


def test_role_checks_with_real_token(raw_client, seed):
    student = seed.student()
    admin = seed.master_admin()
    assert raw_client.get("/master-admin/stats", headers=_bearer({"sub": student.id})).status_code == 403
    assert raw_client.get("/master-admin/stats", headers=_bearer({"sub": admin.id})).status_code == 200


def test_root_and_health(raw_client):
    root = raw_client.get("/")
    assert root.status_code == 200
    assert root.json()["health"] == "/healthz"

    r = raw_client.get("/healthz", headers={"X-Request-Id": "abc-123"})
    assert r.status_code == 200
    assert r.headers["X-Request-Id"] == "abc-123"
    body = r.json()
    assert body["status"] == "ok"
    assert body["components"]["database"]["status"] == "ok"


def test_server_settings_follow_environment(monkeypatch):
    for name in ("ENV", "HOST", "PORT"):
        monkeypatch.delenv(name, raising=False)
    dev = Settings()
    assert (dev.env, dev.host, dev.port) == ("dev", "127.0.0.1", 8000)

    monkeypatch.setenv("ENV", "production")
    monkeypatch.setenv("PORT", "9100")
    prod = Settings()
    assert (prod.env, prod.host, prod.port) == ("production", "0.0.0.0", 9100)
