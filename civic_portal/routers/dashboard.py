# File: civic_portal/routers/dashboard.py
# Project: civic-portal

import csv
import io
import logging
from datetime import datetime, timezone
from typing import Optional
from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from civic_portal.core.catalog import ALL, UNASSIGNED_DEPARTMENT, priority_color, status_color, status_text
from civic_portal.core.config import settings
from civic_portal.core.errors import EntityNotFound
from civic_portal.core.security import require_role
from civic_portal.gateway.base import EntityGateway, DEFAULT_SORT
from civic_portal.gateway.session import get_gateway
from civic_portal.schemas.issue import IssueOut, StaffIssueUpdate
from civic_portal.services.aggregation import dashboard_stats, department_breakdown, filter_issues

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/dashboard",
    tags=["dashboard"],
    dependencies=[Depends(require_role("admin"))],
)

EXPORT_COLUMNS = [
    "id", "title", "category", "priority", "status", "department", "location",
    "latitude", "longitude", "upvotes", "comments_count", "created_by",
    "created_date", "updated_date", "resolution_note",
]


def _row(issue: IssueOut) -> dict:
    data = issue.model_dump()
    data["department_label"] = issue.department or UNASSIGNED_DEPARTMENT
    data["status_label"] = status_text(issue.status)
    data["status_color"] = status_color(issue.status)
    data["priority_color"] = priority_color(issue.priority)
    return data


def _find(issues, issue_id: str) -> IssueOut:
    for issue in issues:
        if str(issue.id) == str(issue_id):
            return issue
    raise EntityNotFound("Issue not found")


@router.get("")
def dashboard(
    status: Optional[str] = Query(default=ALL),
    category: Optional[str] = Query(default=ALL),
    priority: Optional[str] = Query(default=ALL),
    search: Optional[str] = Query(default=None, max_length=200),
    gateway: EntityGateway = Depends(get_gateway),
):
    issues = gateway.issues.list(DEFAULT_SORT)
    filtered = filter_issues(issues, status=status, category=category, priority=priority, search=search)
    return {
        "filters": {"status": status, "category": category, "priority": priority, "search": search or ""},
        "stats": dashboard_stats(issues, window_days=settings.recent_window_days),
        "departments": department_breakdown(issues),
        "total": len(issues),
        "showing": len(filtered),
        "issues": [_row(i) for i in filtered],
    }


@router.get("/export")
def export_issues(
    status: Optional[str] = Query(default=ALL),
    category: Optional[str] = Query(default=ALL),
    priority: Optional[str] = Query(default=ALL),
    search: Optional[str] = Query(default=None, max_length=200),
    gateway: EntityGateway = Depends(get_gateway),
):
    issues = filter_issues(
        gateway.issues.list(DEFAULT_SORT),
        status=status, category=category, priority=priority, search=search,
    )
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=EXPORT_COLUMNS, extrasaction="ignore")
    writer.writeheader()
    for issue in issues:
        row = issue.model_dump()
        for key in ("created_date", "updated_date"):
            row[key] = row[key].isoformat() if row[key] else ""
        writer.writerow(row)
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d")
    return Response(
        content=buf.getvalue(),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="issues-{stamp}.csv"'},
    )


@router.get("/issues/{issue_id}")
def issue_detail(issue_id: str, gateway: EntityGateway = Depends(get_gateway)):
    issue = gateway.issues.get(issue_id)
    return {
        "issue": _row(issue),
        "comments": gateway.comments.filter({"issue_id": issue.id}, DEFAULT_SORT),
        "update": {
            "status": issue.status,
            "department": issue.department or "",
            "resolution_note": issue.resolution_note or "",
        },
    }


@router.patch("/issues/{issue_id}")
def update_issue(issue_id: str, body: StaffIssueUpdate, gateway: EntityGateway = Depends(get_gateway)):
    changes = body.model_dump(exclude_unset=True, mode="json")
    for key in ("department", "resolution_note"):
        if key in changes and not (changes[key] or "").strip():
            changes[key] = None
    gateway.issues.update(issue_id, changes)
    logger.info(f"Issue {issue_id} updated: {sorted(changes)}")
    # mutate-then-refetch: the response reflects the reloaded list
    issue = _find(gateway.issues.list(DEFAULT_SORT), issue_id)
    return {"issue": _row(issue)}
