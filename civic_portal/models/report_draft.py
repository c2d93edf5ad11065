# File: civic_portal/models/report_draft.py
# Project: civic-portal

# Wizard state between requests; always kept in the local database,
# whichever entity backend is configured.
from __future__ import annotations
from datetime import datetime, timezone
from sqlalchemy import String, Boolean, DateTime, Integer, JSON
from sqlalchemy.orm import Mapped, mapped_column
from civic_portal.db.base import Base

class ReportDraft(Base):
    __tablename__ = "report_drafts"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    step: Mapped[int] = mapped_column(Integer, default=1, server_default="1")
    data: Mapped[dict] = mapped_column(JSON, default=dict)
    submitted: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    issue_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    uploading: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    locating: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    submitting: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    last_error: Mapped[str | None] = mapped_column(String(500), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
