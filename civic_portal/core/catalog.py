# File: civic_portal/core/catalog.py
"""
Enumerations shared by every view, and the colour tables keyed by them.

Views never carry their own copies of these tables; they look values up
through the helpers below so unknown values always land on a defined
fallback instead of raising.
"""
from __future__ import annotations
from enum import Enum as PyEnum


class IssueCategory(str, PyEnum):
    infrastructure = "infrastructure"
    environment = "environment"
    safety = "safety"
    utilities = "utilities"
    governance = "governance"
    transportation = "transportation"
    healthcare = "healthcare"
    other = "other"


class IssuePriority(str, PyEnum):
    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"


class IssueStatus(str, PyEnum):
    pending = "pending"
    verified = "verified"
    in_progress = "in_progress"
    resolved = "resolved"
    closed = "closed"


class UserRole(str, PyEnum):
    admin = "admin"
    citizen = "citizen"


# Wildcard accepted by every filter dimension
ALL = "all"

UNASSIGNED_DEPARTMENT = "Unassigned"

STATUS_LABELS = {
    IssueStatus.pending: "Pending Review",
    IssueStatus.verified: "Verified",
    IssueStatus.in_progress: "In Progress",
    IssueStatus.resolved: "Resolved",
    IssueStatus.closed: "Closed",
}

# Map marker fill
CATEGORY_COLORS = {
    IssueCategory.infrastructure: "#fb923c",
    IssueCategory.environment: "#22c55e",
    IssueCategory.safety: "#ef4444",
    IssueCategory.utilities: "#3b82f6",
    IssueCategory.governance: "#a855f7",
    IssueCategory.transportation: "#06b6d4",
    IssueCategory.healthcare: "#ec4899",
    IssueCategory.other: "#6b7280",
}
DEFAULT_CATEGORY_COLOR = "#6b7280"

# Map marker border
STATUS_COLORS = {
    IssueStatus.pending: "#facc15",
    IssueStatus.verified: "#60a5fa",
    IssueStatus.in_progress: "#c084fc",
    IssueStatus.resolved: "#4ade80",
    IssueStatus.closed: "#9ca3af",
}
DEFAULT_STATUS_COLOR = "#facc15"

PRIORITY_COLORS = {
    IssuePriority.low: "#22c55e",
    IssuePriority.medium: "#eab308",
    IssuePriority.high: "#f97316",
    IssuePriority.critical: "#ef4444",
}
DEFAULT_PRIORITY_COLOR = "#64748b"

# Analytics pie slices, cycled by position
CHART_PALETTE = [
    "#06b6d4", "#10b981", "#f59e0b", "#ef4444",
    "#8b5cf6", "#f97316", "#ec4899", "#6b7280",
]


def _lookup(table: dict, value, default: str) -> str:
    for key, color in table.items():
        if key.value == value:
            return color
    return default


def category_color(category: str | None) -> str:
    return _lookup(CATEGORY_COLORS, category, DEFAULT_CATEGORY_COLOR)


def status_color(status: str | None) -> str:
    return _lookup(STATUS_COLORS, status, DEFAULT_STATUS_COLOR)


def priority_color(priority: str | None) -> str:
    return _lookup(PRIORITY_COLORS, priority, DEFAULT_PRIORITY_COLOR)


def chart_color(index: int) -> str:
    return CHART_PALETTE[index % len(CHART_PALETTE)]


def status_text(status: str | None) -> str:
    """Short form shown on bars, popups and table rows: 'in_progress' -> 'in progress'."""
    return (status or "").replace("_", " ", 1)


def status_label(status: str | None) -> str:
    for key, label in STATUS_LABELS.items():
        if key.value == status:
            return label
    return status_text(status)


def values(enum_cls) -> list[str]:
    return [m.value for m in enum_cls]


def legend() -> dict:
    return {
        "categories": [
            {"key": c.value, "label": c.value.capitalize(), "color": CATEGORY_COLORS[c]}
            for c in IssueCategory
        ],
        "statuses": [
            {"key": s.value, "label": status_label(s.value), "color": status_color(s.value)}
            for s in IssueStatus
        ],
    }
