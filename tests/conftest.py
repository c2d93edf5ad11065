# File: tests/conftest.py
# Project: civic-portal

import os

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["ENTITY_BACKEND"] = "sql"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["WIZARD_ENFORCE_REQUIRED"] = "true"
for key in ("SUPABASE_URL", "SUPABASE_SERVICE_ROLE", "GATEWAY_URL", "GATEWAY_APP_ID", "GATEWAY_API_KEY"):
    os.environ.pop(key, None)

from datetime import datetime, timezone
import pytest
from fastapi import Depends
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from civic_portal.core.catalog import UserRole
from civic_portal.core.security import hash_password, make_tokens
from civic_portal.db.base import Base
from civic_portal.db.session import engine, SessionLocal, get_db
from civic_portal.gateway.session import get_gateway
from civic_portal.gateway.sql import SqlGateway
from civic_portal.main import app
from civic_portal.models import comment, issue, report_draft, user  # noqa: F401
from civic_portal.models.user import User
from civic_portal.schemas.issue import IssueOut


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    yield
    app.dependency_overrides.clear()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_issue(db):
    def _make(**overrides):
        payload = {
            "title": "Pothole on Main Street",
            "description": "Deep pothole near the bus stop",
            "category": "infrastructure",
            "priority": "medium",
            "status": "pending",
            "location": "Main Street, Springfield",
            "latitude": 12.97,
            "longitude": 77.59,
        }
        payload.update(overrides)
        return SqlGateway(db).issues.create(payload)
    return _make


def _user_headers(db, email: str, full_name: str, role: UserRole) -> dict:
    db.add(User(
        email=email,
        full_name=full_name,
        hashed_password=hash_password("password123"),
        role=role,
        is_active=True,
    ))
    db.commit()
    token = make_tokens(email, role.value)["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(db):
    return _user_headers(db, "admin@city.gov", "City Admin", UserRole.admin)


@pytest.fixture
def citizen_headers(db):
    return _user_headers(db, "asha@example.com", "Asha Rao", UserRole.citizen)


class CallLog:
    """Wraps a gateway collection and records each method called on it."""

    def __init__(self, inner, calls: list):
        self._inner = inner
        self._calls = calls

    def __getattr__(self, name):
        attr = getattr(self._inner, name)
        if not callable(attr):
            return attr

        def _recorded(*args, **kwargs):
            self._calls.append((name, args, kwargs))
            return attr(*args, **kwargs)
        return _recorded


@pytest.fixture
def gateway_calls():
    calls = {"issues": [], "comments": []}

    def _gateway(db: Session = Depends(get_db)):
        gw = SqlGateway(db)
        gw.issues = CallLog(gw.issues, calls["issues"])
        gw.comments = CallLog(gw.comments, calls["comments"])
        return gw

    app.dependency_overrides[get_gateway] = _gateway
    return calls


def named(calls: list, name: str) -> list:
    return [c for c in calls if c[0] == name]


def issue_out(**overrides) -> IssueOut:
    data = {
        "id": 1,
        "title": "Broken streetlight",
        "category": "utilities",
        "priority": "medium",
        "status": "pending",
        "location": "",
        "created_date": datetime(2026, 10, 1, tzinfo=timezone.utc),
    }
    data.update(overrides)
    return IssueOut(**data)
