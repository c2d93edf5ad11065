# File: civic_portal/gateway/hosted.py
# Project: civic-portal

import json
import logging
from typing import Any, Optional
from urllib.parse import quote

import requests
from pydantic import ValidationError

from civic_portal.core.config import settings
from civic_portal.core.errors import (
    GatewayError,
    EntityNotFound,
    EntityValidationError,
    Forbidden,
    NotAuthenticated,
)
from civic_portal.gateway.base import (
    DEFAULT_SORT,
    EntityCollection,
    EntityGateway,
    UserDirectory,
)
from civic_portal.schemas.issue import IssueOut, CommentOut
from civic_portal.schemas.user import UserOut

logger = logging.getLogger(__name__)


class HostedClient:
    """Thin requests wrapper for the hosted app API."""

    def __init__(self, base_url: str, app_id: str, api_key: Optional[str] = None,
                 token: Optional[str] = None, timeout: float = 30):
        self.base_url = base_url.rstrip("/")
        self.app_url = f"{self.base_url}/api/apps/{app_id}"
        self.timeout = timeout
        self.http = requests.Session()
        if api_key:
            self.http.headers["api_key"] = api_key
        if token:
            self.http.headers["Authorization"] = f"Bearer {token}"

    def request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.app_url}{path}"
        try:
            r = self.http.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error(f"Entity backend unreachable: {method} {path}: {e}", exc_info=True)
            raise GatewayError("Entity backend is unreachable. Please try again.")
        if r.status_code == 404:
            raise EntityNotFound("Not found")
        if r.status_code == 401:
            raise NotAuthenticated("Not authenticated")
        if r.status_code == 403:
            raise Forbidden("You do not have permission to do that")
        if r.status_code in (400, 422):
            raise EntityValidationError(_error_message(r) or "Rejected by entity backend")
        if not r.ok:
            logger.error(f"Entity backend error {r.status_code}: {method} {path}: {r.text[:300]}")
            raise GatewayError(f"Entity backend error ({r.status_code})")
        if not r.content:
            return None
        try:
            return r.json()
        except ValueError:
            logger.error(f"Entity backend sent a non-JSON body: {method} {path}: {r.text[:300]}")
            raise GatewayError("Entity backend returned an unreadable response")


def _error_message(r: requests.Response) -> Optional[str]:
    try:
        body = r.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        return body.get("message") or body.get("detail")
    return None


class HostedCollection(EntityCollection):
    def __init__(self, client: HostedClient, name: str, schema):
        self.client = client
        self.name = name
        self.schema = schema
        self.path = f"/entities/{name}"

    def _one(self, row):
        try:
            return self.schema.model_validate(row)
        except ValidationError as e:
            logger.error(f"Invalid {self.name} record from entity backend: {e}")
            raise GatewayError(f"Entity backend returned an invalid {self.name} record")

    def _many(self, rows) -> list:
        if not isinstance(rows or [], list):
            raise GatewayError(f"Entity backend returned an invalid {self.name} list")
        return [self._one(r) for r in (rows or [])]

    def list(self, sort: str = DEFAULT_SORT, limit: Optional[int] = None) -> list:
        params = {"sort": sort}
        if limit:
            params["limit"] = limit
        return self._many(self.client.request("GET", self.path, params=params))

    def filter(self, query: dict[str, Any], sort: str = DEFAULT_SORT) -> list:
        params = {"q": json.dumps(query, default=str), "sort": sort}
        return self._many(self.client.request("GET", self.path, params=params))

    def get(self, entity_id):
        return self._one(self.client.request("GET", f"{self.path}/{quote(str(entity_id))}"))

    def create(self, payload: dict[str, Any]):
        return self._one(self.client.request("POST", self.path, json=payload))

    def update(self, entity_id, payload: dict[str, Any]):
        row = self.client.request("PUT", f"{self.path}/{quote(str(entity_id))}", json=payload)
        return self._one(row)


class HostedUsers(UserDirectory):
    def __init__(self, client: HostedClient):
        self.client = client

    def me(self, token: Optional[str]) -> UserOut:
        if not token:
            raise NotAuthenticated("Not authenticated")
        row = self.client.request(
            "GET", "/entities/User/me", headers={"Authorization": f"Bearer {token}"}
        )
        if not row:
            raise NotAuthenticated("Not authenticated")
        try:
            return UserOut.model_validate(row)
        except ValidationError as e:
            logger.error(f"Invalid User record from entity backend: {e}")
            raise GatewayError("Entity backend returned an invalid User record")

    def login_url(self, next_url: str = "/") -> str:
        return f"{self.client.base_url}/login?from_url={quote(next_url, safe='')}"

    def logout(self, token: Optional[str]) -> None:
        if not token:
            return
        self.client.request("POST", "/auth/logout", headers={"Authorization": f"Bearer {token}"})


class HostedGateway(EntityGateway):
    def __init__(self, token: Optional[str] = None):
        if not (settings.gateway_url and settings.gateway_app_id):
            raise GatewayError("Hosted entity backend is not configured", status_code=503)
        self.client = HostedClient(
            settings.gateway_url,
            settings.gateway_app_id,
            api_key=settings.gateway_api_key,
            token=token,
            timeout=settings.gateway_timeout,
        )
        self.issues = HostedCollection(self.client, "Issue", IssueOut)
        self.comments = HostedCollection(self.client, "Comment", CommentOut)
        self.users = HostedUsers(self.client)

    def upload_file(self, data: bytes, content_type: str, filename: str) -> str:
        body = self.client.request(
            "POST",
            "/integration-endpoints/Core/UploadFile",
            files={"file": (filename, data, content_type)},
        )
        url = body.get("file_url") if isinstance(body, dict) else None
        if not url:
            raise GatewayError("Upload did not return a file URL")
        return url
