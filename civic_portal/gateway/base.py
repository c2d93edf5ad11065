# File: civic_portal/gateway/base.py
# Project: civic-portal
"""
Contract for the entity backend every view reads from and writes to.

Views only ever see these three collections plus the upload collaborator;
which backend answers (the hosted API or the local SQL tables) is decided
once per request in ``civic_portal.gateway.session``.
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Generic, Optional, TypeVar

from civic_portal.schemas.issue import IssueOut, CommentOut
from civic_portal.schemas.user import UserOut

Record = TypeVar("Record", IssueOut, CommentOut)

DEFAULT_SORT = "-created_date"


def parse_sort(sort: Optional[str]) -> tuple[str, bool]:
    """'-created_date' -> ('created_date', True)."""
    sort = (sort or DEFAULT_SORT).strip()
    if sort.startswith("-"):
        return sort[1:], True
    return sort.lstrip("+"), False


class EntityCollection(ABC, Generic[Record]):
    name: str

    @abstractmethod
    def list(self, sort: str = DEFAULT_SORT, limit: Optional[int] = None) -> list[Record]:
        ...

    @abstractmethod
    def filter(self, query: dict[str, Any], sort: str = DEFAULT_SORT) -> list[Record]:
        ...

    @abstractmethod
    def get(self, entity_id) -> Record:
        ...

    @abstractmethod
    def create(self, payload: dict[str, Any]) -> Record:
        ...

    @abstractmethod
    def update(self, entity_id, payload: dict[str, Any]) -> Record:
        ...


class UserDirectory(ABC):
    @abstractmethod
    def me(self, token: Optional[str]) -> UserOut:
        """Current session user; raises NotAuthenticated without one."""

    @abstractmethod
    def login_url(self, next_url: str = "/") -> str:
        ...

    @abstractmethod
    def logout(self, token: Optional[str]) -> None:
        ...


class EntityGateway(ABC):
    issues: EntityCollection[IssueOut]
    comments: EntityCollection[CommentOut]
    users: UserDirectory

    @abstractmethod
    def upload_file(self, data: bytes, content_type: str, filename: str) -> str:
        """Stores one binary and returns a durable URL for it."""
