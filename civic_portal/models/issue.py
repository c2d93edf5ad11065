# File: civic_portal/models/issue.py
from __future__ import annotations
from datetime import datetime, timezone
from sqlalchemy import String, Float, Enum, Integer, DateTime, Index
from sqlalchemy.orm import Mapped, mapped_column
from civic_portal.db.base import Base
from civic_portal.core.catalog import IssueCategory, IssuePriority, IssueStatus

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

class Issue(Base):
    __tablename__ = "issues"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(200), index=True)
    description: Mapped[str | None] = mapped_column(String(4000), nullable=True)
    category: Mapped[IssueCategory] = mapped_column(
        Enum(IssueCategory, native_enum=False, length=20), index=True
    )
    priority: Mapped[IssuePriority] = mapped_column(
        Enum(IssuePriority, native_enum=False, length=20), default=IssuePriority.medium
    )
    status: Mapped[IssueStatus] = mapped_column(
        Enum(IssueStatus, native_enum=False, length=20), default=IssueStatus.pending, index=True
    )

    location: Mapped[str] = mapped_column(String(300), default="")
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(2000), nullable=True)

    upvotes: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    comments_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0")

    department: Mapped[str | None] = mapped_column(String(120), index=True, nullable=True)
    resolution_note: Mapped[str | None] = mapped_column(String(4000), nullable=True)

    created_by: Mapped[str] = mapped_column(String(255), default="anonymous")
    created_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, index=True)
    updated_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

Index("ix_issues_lat_lng", Issue.latitude, Issue.longitude)
