# File: civic_portal/gateway/sql.py
# Project: civic-portal

import logging
from datetime import datetime, timezone
from enum import Enum as PyEnum
from typing import Any, Optional

from pydantic import ValidationError
from sqlalchemy import Integer
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from civic_portal.core.config import settings
from civic_portal.core.errors import (
    GatewayError,
    EntityNotFound,
    EntityValidationError,
    NotAuthenticated,
)
from civic_portal.gateway.base import (
    DEFAULT_SORT,
    EntityCollection,
    EntityGateway,
    UserDirectory,
    parse_sort,
)
from civic_portal.models.comment import Comment
from civic_portal.models.issue import Issue
from civic_portal.models.user import User
from civic_portal.schemas.issue import (
    IssueOut,
    IssueCreate,
    IssueUpdate,
    CommentOut,
    CommentCreate,
)
from civic_portal.schemas.user import UserOut
from civic_portal.services.storage import upload_image, make_object_key

logger = logging.getLogger(__name__)


def _plain(value):
    if isinstance(value, PyEnum):
        return value.value
    if isinstance(value, datetime) and value.tzinfo is None:
        # SQLite hands back naive datetimes; everything is stored as UTC
        return value.replace(tzinfo=timezone.utc)
    return value


def _validation_message(e: ValidationError) -> str:
    parts = []
    for err in e.errors():
        loc = ".".join(str(x) for x in err.get("loc", ()) if x != "__root__")
        parts.append(f"{loc}: {err.get('msg')}" if loc else err.get("msg", ""))
    return "; ".join(parts) or "Invalid payload"


class SqlCollection(EntityCollection):
    def __init__(self, db: Session, model, schema, create_schema, update_schema=None):
        self.db = db
        self.model = model
        self.name = model.__name__
        self.schema = schema
        self.create_schema = create_schema
        self.update_schema = update_schema

    def _record(self, obj):
        row = {c.name: _plain(getattr(obj, c.name)) for c in self.model.__table__.columns}
        return self.schema.model_validate(row)

    def _column(self, field: str):
        col = self.model.__table__.columns.get(field)
        if col is None:
            raise EntityValidationError(f"Unknown field '{field}' for {self.name}")
        return getattr(self.model, field)

    def _ordered(self, q, sort: str):
        field, descending = parse_sort(sort)
        col = self._column(field)
        # id breaks ties between rows written within the same instant
        if descending:
            return q.order_by(col.desc(), self.model.id.desc())
        return q.order_by(col.asc(), self.model.id.asc())

    def _pk(self, entity_id) -> int:
        try:
            return int(entity_id)
        except (TypeError, ValueError):
            raise EntityNotFound(f"{self.name} not found")

    def _load(self, entity_id):
        obj = self.db.get(self.model, self._pk(entity_id))
        if not obj:
            raise EntityNotFound(f"{self.name} not found")
        return obj

    def _commit(self):
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to write {self.name}: {e}", exc_info=True)
            raise GatewayError(f"Failed to save {self.name}")

    def list(self, sort: str = DEFAULT_SORT, limit: Optional[int] = None) -> list:
        q = self._ordered(self.db.query(self.model), sort)
        if limit:
            q = q.limit(limit)
        return [self._record(o) for o in q.all()]

    def filter(self, query: dict[str, Any], sort: str = DEFAULT_SORT) -> list:
        q = self.db.query(self.model)
        for field, value in (query or {}).items():
            col = self._column(field)
            if isinstance(self.model.__table__.columns[field].type, Integer) and isinstance(value, str):
                if not value.lstrip("-").isdigit():
                    return []
                value = int(value)
            q = q.filter(col == value)
        return [self._record(o) for o in self._ordered(q, sort).all()]

    def get(self, entity_id):
        return self._record(self._load(entity_id))

    def create(self, payload: dict[str, Any]):
        try:
            data = self.create_schema.model_validate(payload)
        except ValidationError as e:
            raise EntityValidationError(_validation_message(e))
        obj = self.model(**data.model_dump(exclude_none=True))
        self.db.add(obj)
        self._commit()
        self.db.refresh(obj)
        return self._record(obj)

    def update(self, entity_id, payload: dict[str, Any]):
        if self.update_schema is None:
            raise EntityValidationError(f"{self.name} records are read-only")
        obj = self._load(entity_id)
        try:
            data = self.update_schema.model_validate(payload)
        except ValidationError as e:
            raise EntityValidationError(_validation_message(e))
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(obj, field, value)
        if hasattr(obj, "updated_date"):
            obj.updated_date = datetime.now(timezone.utc)
        self._commit()
        self.db.refresh(obj)
        return self._record(obj)


class SqlComments(SqlCollection):
    def create(self, payload: dict[str, Any]):
        issue_id = payload.get("issue_id")
        if issue_id is None or not self.db.get(Issue, self._pk(issue_id)):
            raise EntityNotFound("Issue not found")
        return super().create({**payload, "issue_id": self._pk(issue_id)})


class SqlUsers(UserDirectory):
    def __init__(self, db: Session):
        self.db = db

    def me(self, token: Optional[str]) -> UserOut:
        from civic_portal.core.security import decode_token

        payload = decode_token(token)
        email = payload.get("sub")
        if not email:
            raise NotAuthenticated("Invalid token payload")
        user = self.db.query(User).filter(User.email == email).first()
        if not user or not user.is_active:
            raise NotAuthenticated("User not found")
        return UserOut(id=user.id, full_name=user.full_name, email=user.email, role=user.role.value)

    def login_url(self, next_url: str = "/") -> str:
        from urllib.parse import quote
        return f"{settings.frontend_base_url}/login?next={quote(next_url, safe='')}"

    def logout(self, token: Optional[str]) -> None:
        # bearer tokens are stateless; the client discards them
        return None


class SqlGateway(EntityGateway):
    def __init__(self, db: Session):
        self.db = db
        self.issues = SqlCollection(db, Issue, IssueOut, IssueCreate, IssueUpdate)
        self.comments = SqlComments(db, Comment, CommentOut, CommentCreate)
        self.users = SqlUsers(db)

    def upload_file(self, data: bytes, content_type: str, filename: str) -> str:
        try:
            return upload_image(data, content_type, make_object_key("uploads", filename))
        except Exception as e:
            logger.error(f"Photo upload failed: {e}", exc_info=True)
            raise GatewayError("Photo upload failed")
