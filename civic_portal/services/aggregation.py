# File: civic_portal/services/aggregation.py
# Project: civic-portal
"""
In-memory filters and statistics over an already fetched issue list.

Nothing here talks to the gateway: routers fetch, these functions derive.
"""
from __future__ import annotations
from collections import Counter, OrderedDict
from datetime import datetime, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Sequence

from civic_portal.core.catalog import (
    ALL,
    UNASSIGNED_DEPARTMENT,
    IssuePriority,
    IssueStatus,
    chart_color,
    status_text,
)
from civic_portal.schemas.issue import IssueOut

TOP_LOCATIONS = 6
TREND_MONTHS = 6


def _round_half_up(value: float, places: int = 1) -> float:
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def _utc(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def range_to_dt(days: int, now: Optional[datetime] = None) -> datetime:
    return _utc(now or datetime.now(timezone.utc)) - timedelta(days=days)


# --- filtering ---

def matches_search(issue: IssueOut, term: Optional[str]) -> bool:
    if not term:
        return True
    needle = term.lower()
    return any(
        needle in (field or "").lower()
        for field in (issue.title, issue.description, issue.location)
    )


def search_issues(issues: Sequence[IssueOut], term: Optional[str]) -> list[IssueOut]:
    """Case-insensitive substring match over title, description and location."""
    return [i for i in issues if matches_search(i, term)]


def _wild(value: Optional[str]) -> bool:
    return value is None or value == "" or value == ALL


def filter_issues(issues: Sequence[IssueOut], status: Optional[str] = None,
                  category: Optional[str] = None, priority: Optional[str] = None,
                  search: Optional[str] = None) -> list[IssueOut]:
    out = []
    for issue in issues:
        if not _wild(status) and issue.status != status:
            continue
        if not _wild(category) and issue.category != category:
            continue
        if not _wild(priority) and issue.priority != priority:
            continue
        if not matches_search(issue, search):
            continue
        out.append(issue)
    return out


# --- counts ---

def count_by(issues: Iterable[IssueOut], attr: str, default: Optional[str] = None) -> dict[str, int]:
    counts: dict[str, int] = OrderedDict()
    for issue in issues:
        key = getattr(issue, attr) or default
        counts[key] = counts.get(key, 0) + 1
    return counts


def status_counts(issues: Sequence[IssueOut]) -> dict[str, int]:
    counts = {s.value: 0 for s in IssueStatus}
    for issue in issues:
        if issue.status in counts:
            counts[issue.status] += 1
    return counts


def resolution_rate(issues: Sequence[IssueOut]) -> float:
    """Percentage of resolved issues, one decimal, 0 for an empty list."""
    if not issues:
        return 0
    resolved = sum(1 for i in issues if i.status == IssueStatus.resolved.value)
    return _round_half_up(resolved / len(issues) * 100, 1)


def total_upvotes(issues: Sequence[IssueOut]) -> int:
    return sum(i.upvotes or 0 for i in issues)


def created_since(issues: Sequence[IssueOut], since: datetime) -> int:
    return sum(1 for i in issues if _utc(i.created_date) >= since)


def resolved_since(issues: Sequence[IssueOut], since: datetime) -> int:
    return sum(
        1 for i in issues
        if i.status == IssueStatus.resolved.value
        and _utc(i.updated_date or i.created_date) >= since
    )


def department_breakdown(issues: Sequence[IssueOut]) -> list[dict]:
    rows: dict[str, dict] = {}
    for issue in issues:
        dept = issue.department or UNASSIGNED_DEPARTMENT
        row = rows.setdefault(dept, {"department": dept, "total": 0, "resolved": 0, "in_progress": 0, "pending": 0})
        row["total"] += 1
        if issue.status in ("resolved", "in_progress", "pending"):
            row[issue.status] += 1
    return sorted(rows.values(), key=lambda r: r["total"], reverse=True)


def dashboard_stats(issues: Sequence[IssueOut], now: Optional[datetime] = None,
                    window_days: int = 7) -> dict:
    since = range_to_dt(window_days, now)
    by_status = status_counts(issues)
    priorities = count_by(issues, "priority")
    return {
        "total": len(issues),
        "by_status": by_status,
        "pending": by_status["pending"],
        "verified": by_status["verified"],
        "in_progress": by_status["in_progress"],
        "resolved": by_status["resolved"],
        "closed": by_status["closed"],
        "critical": priorities.get(IssuePriority.critical.value, 0),
        "high": priorities.get(IssuePriority.high.value, 0),
        "total_upvotes": total_upvotes(issues),
        "resolution_rate": resolution_rate(issues),
        "by_category": dict(count_by(issues, "category", "other")),
        "by_department": dict(count_by(issues, "department", UNASSIGNED_DEPARTMENT)),
        "recent_window_days": window_days,
        "recent": created_since(issues, since),
        "resolved_recent": resolved_since(issues, since),
    }


# --- analytics ---

def _month_key(dt: datetime) -> str:
    return f"{dt.year:04d}-{dt.month:02d}"


def _previous_months(now: datetime, count: int) -> list[datetime]:
    months = []
    year, month = now.year, now.month
    for _ in range(count):
        months.append(datetime(year, month, 1, tzinfo=timezone.utc))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(months))


def monthly_trend(issues: Sequence[IssueOut], now: Optional[datetime] = None,
                  months: int = TREND_MONTHS) -> list[dict]:
    now = _utc(now or datetime.now(timezone.utc))
    reports: Counter = Counter()
    resolved: Counter = Counter()
    for issue in issues:
        reports[_month_key(_utc(issue.created_date))] += 1
        if issue.status == IssueStatus.resolved.value:
            resolved[_month_key(_utc(issue.updated_date or issue.created_date))] += 1
    return [
        {
            "month": m.strftime("%b"),
            "key": _month_key(m),
            "reports": reports.get(_month_key(m), 0),
            "resolved": resolved.get(_month_key(m), 0),
        }
        for m in _previous_months(now, months)
    ]


def top_locations(issues: Sequence[IssueOut], limit: int = TOP_LOCATIONS) -> list[dict]:
    counts: dict[str, int] = OrderedDict()
    for issue in issues:
        place = (issue.location or "").split(",")[0].strip()
        if not place:
            continue
        counts[place] = counts.get(place, 0) + 1
    if not counts:
        return []
    peak = max(counts.values())
    ranked = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)[:limit]
    return [
        {"rank": n + 1, "location": place, "count": count, "share": _round_half_up(count / peak * 100, 1)}
        for n, (place, count) in enumerate(ranked)
    ]


def analytics_summary(issues: Sequence[IssueOut], now: Optional[datetime] = None) -> dict:
    by_status = status_counts(issues)
    avg_upvotes = int(_round_half_up(total_upvotes(issues) / len(issues), 0)) if issues else 0
    categories = count_by(issues, "category", "other")
    statuses = count_by(issues, "status")
    return {
        "stats": {
            "total": len(issues),
            "resolved": by_status["resolved"],
            "pending": by_status["pending"],
            "in_progress": by_status["in_progress"],
            "avg_upvotes": avg_upvotes,
            "resolution_rate": resolution_rate(issues),
        },
        "categories": [
            {"name": name, "value": count, "color": chart_color(n)}
            for n, (name, count) in enumerate(categories.items())
        ],
        "statuses": [
            {"status": status_text(status), "key": status, "count": count}
            for status, count in statuses.items()
        ],
        "top_locations": top_locations(issues),
        "trend": monthly_trend(issues, now),
    }
