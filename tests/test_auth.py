# File: tests/test_auth.py
# Project: civic-portal

import time
import jwt
from civic_portal.core.config import settings


def test_register_then_me(client):
    r = client.post("/auth/register", json={
        "full_name": "Ravi Kumar", "email": "ravi@example.com", "password": "longenough",
    })
    assert r.status_code == 200
    token = r.json()["access_token"]
    me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"}).json()
    assert me["full_name"] == "Ravi Kumar"
    assert me["role"] == "citizen"


def test_duplicate_email(client, citizen_headers):
    r = client.post("/auth/register", json={
        "full_name": "Asha Again", "email": "asha@example.com", "password": "longenough",
    })
    assert r.status_code == 400


def test_login(client, citizen_headers):
    ok = client.post("/auth/token", json={"email": "asha@example.com", "password": "password123"})
    assert ok.status_code == 200
    assert ok.json()["token_type"] == "bearer"
    bad = client.post("/auth/token", json={"email": "asha@example.com", "password": "wrong-password"})
    assert bad.status_code == 401


def test_me_without_token(client):
    r = client.get("/auth/me")
    assert r.status_code == 401
    assert r.json()["detail"] == "Not authenticated"


def test_expired_token_is_anonymous(client, citizen_headers):
    now = int(time.time())
    stale = jwt.encode(
        {"sub": "asha@example.com", "role": "citizen", "iat": now - 100, "exp": now - 10},
        settings.jwt_secret, algorithm="HS256",
    )
    r = client.get("/auth/me", headers={"Authorization": f"Bearer {stale}"})
    assert r.status_code == 401


def test_login_url(client):
    body = client.get("/auth/login", params={"next": "/report"}).json()
    assert body["login_url"] == "/login?next=%2Freport"


def test_logout(client, citizen_headers):
    assert client.post("/auth/logout", headers=citizen_headers).json() == {"ok": True}
