# File: tests/test_hosted_gateway.py
# Project: civic-portal

import json
import pytest
import requests
from civic_portal.core.config import settings
from civic_portal.core.errors import (
    EntityNotFound,
    EntityValidationError,
    Forbidden,
    GatewayError,
    NotAuthenticated,
)
from civic_portal.gateway.hosted import HostedGateway
from civic_portal.gateway.session import build_gateway

ISSUE = {
    "id": "6650f1",
    "title": "Blocked drain",
    "category": "utilities",
    "status": "pending",
    "priority": "high",
    "location": "Lake View",
    "created_date": "2026-10-10T08:30:00Z",
}


class FakeResponse:
    def __init__(self, status_code=200, body=None, raw=None):
        self.status_code = status_code
        self._body = body
        if raw is not None:
            self.content = raw
        else:
            self.content = b"" if body is None else json.dumps(body).encode()
        self.text = self.content.decode()

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._body is None:
            raise ValueError("no body")
        return self._body


@pytest.fixture
def hosted(monkeypatch):
    monkeypatch.setattr(settings, "gateway_url", "https://hosted.test/")
    monkeypatch.setattr(settings, "gateway_app_id", "app1")
    monkeypatch.setattr(settings, "gateway_api_key", "key-123")
    sent = []
    replies = []

    def _request(self, method, url, **kwargs):
        sent.append({"method": method, "url": url, "headers": dict(self.headers), **kwargs})
        reply = replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    monkeypatch.setattr(requests.Session, "request", _request)
    return sent, replies


def test_list_sends_sort_and_limit(hosted):
    sent, replies = hosted
    replies.append(FakeResponse(body=[ISSUE]))
    issues = HostedGateway(token="tok").issues.list("-created_date", limit=3)
    assert issues[0].id == "6650f1"
    assert issues[0].priority == "high"
    call = sent[0]
    assert call["method"] == "GET"
    assert call["url"] == "https://hosted.test/api/apps/app1/entities/Issue"
    assert call["params"] == {"sort": "-created_date", "limit": 3}
    assert call["headers"]["api_key"] == "key-123"
    assert call["headers"]["Authorization"] == "Bearer tok"


def test_filter_encodes_query(hosted):
    sent, replies = hosted
    replies.append(FakeResponse(body=[]))
    HostedGateway().comments.filter({"issue_id": "6650f1"})
    assert json.loads(sent[0]["params"]["q"]) == {"issue_id": "6650f1"}
    assert sent[0]["url"].endswith("/entities/Comment")


def test_update_uses_put(hosted):
    sent, replies = hosted
    replies.append(FakeResponse(body={**ISSUE, "upvotes": 1}))
    issue = HostedGateway().issues.update("6650f1", {"upvotes": 1})
    assert issue.upvotes == 1
    assert sent[0]["method"] == "PUT"
    assert sent[0]["json"] == {"upvotes": 1}


def test_status_codes_map_to_errors(hosted):
    _, replies = hosted
    gw = HostedGateway()
    replies.append(FakeResponse(404, {"message": "gone"}))
    with pytest.raises(EntityNotFound):
        gw.issues.get("missing")
    replies.append(FakeResponse(422, {"message": "title is required"}))
    with pytest.raises(EntityValidationError) as exc:
        gw.issues.create({})
    assert exc.value.message == "title is required"
    replies.append(FakeResponse(401))
    with pytest.raises(NotAuthenticated):
        gw.users.me("tok")
    replies.append(FakeResponse(500, {"message": "boom"}))
    with pytest.raises(GatewayError) as exc:
        gw.issues.list()
    assert exc.value.status_code == 502


def test_network_failure(hosted):
    _, replies = hosted
    replies.append(requests.ConnectionError("down"))
    with pytest.raises(GatewayError):
        HostedGateway().issues.list()


def test_me_and_login_url(hosted):
    _, replies = hosted
    replies.append(FakeResponse(body={"id": "u1", "full_name": "Meera", "email": "m@x.org", "role": "admin"}))
    gw = HostedGateway()
    user = gw.users.me("tok")
    assert user.is_admin
    assert gw.users.login_url("/dashboard") == "https://hosted.test/login?from_url=%2Fdashboard"


def test_upload_returns_file_url(hosted):
    sent, replies = hosted
    replies.append(FakeResponse(body={"file_url": "https://cdn.test/p.jpg"}))
    url = HostedGateway().upload_file(b"img", "image/jpeg", "p.jpg")
    assert url == "https://cdn.test/p.jpg"
    assert sent[0]["url"].endswith("/integration-endpoints/Core/UploadFile")
    assert sent[0]["files"]["file"] == ("p.jpg", b"img", "image/jpeg")


def test_upload_without_url_fails(hosted):
    _, replies = hosted
    replies.append(FakeResponse(body={}))
    with pytest.raises(GatewayError):
        HostedGateway().upload_file(b"img", "image/jpeg", "p.jpg")


def test_unconfigured_backend(monkeypatch):
    monkeypatch.setattr(settings, "gateway_url", None)
    with pytest.raises(GatewayError) as exc:
        HostedGateway()
    assert exc.value.status_code == 503


def test_backend_selection(monkeypatch, db):
    monkeypatch.setattr(settings, "entity_backend", "carrier-pigeon")
    with pytest.raises(GatewayError) as exc:
        build_gateway(db)
    assert exc.value.status_code == 503


def test_forbidden_is_not_a_login_problem(hosted):
    _, replies = hosted
    replies.append(FakeResponse(403, {"message": "admins only"}))
    with pytest.raises(Forbidden) as exc:
        HostedGateway(token="tok").issues.update("6650f1", {"status": "closed"})
    assert exc.value.status_code == 403


def test_html_body_is_a_gateway_error(hosted):
    _, replies = hosted
    replies.append(FakeResponse(200, raw=b"<html><body>Maintenance</body></html>"))
    with pytest.raises(GatewayError) as exc:
        HostedGateway().issues.create({"title": "Blocked drain"})
    assert exc.value.status_code == 502


def test_malformed_record_is_a_gateway_error(hosted):
    _, replies = hosted
    replies.append(FakeResponse(body={"id": "6650f1", "title": "no date"}))
    with pytest.raises(GatewayError) as exc:
        HostedGateway().issues.get("6650f1")
    assert exc.value.status_code == 502
    replies.append(FakeResponse(body={"unexpected": "shape"}))
    with pytest.raises(GatewayError):
        HostedGateway().issues.list()


def test_portal_treats_forbidden_session_as_anonymous(hosted, client, monkeypatch):
    _, replies = hosted
    monkeypatch.setattr(settings, "entity_backend", "hosted")
    replies.append(FakeResponse(403))
    body = client.get("/portal/access", headers={"Authorization": "Bearer tok"}).json()
    assert body["state"] == "requires_login"
    assert body["login_url"] == "https://hosted.test/login?from_url=%2Fdashboard"
