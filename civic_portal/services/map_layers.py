#civic_portal/services/map_layers.py
from typing import Optional, Sequence
from civic_portal.core.catalog import ALL, category_color, status_color, status_text, legend
from civic_portal.core.config import settings
from civic_portal.schemas.issue import IssueOut

MARKER_SIZE = 20
RECENT_ON_MAP = 5
# The client re-runs map layout this long after mount; the container size
# is not final at first paint.
RELAYOUT_DELAY_MS = 100


def mappable(issues: Sequence[IssueOut], category: Optional[str] = None) -> list[IssueOut]:
    out = [i for i in issues if i.has_coordinates]
    if category and category != ALL:
        out = [i for i in out if i.category == category]
    return out


def marker_icon(issue: IssueOut) -> dict:
    return {
        "fill": category_color(issue.category),
        "border": status_color(issue.status),
        "size": [MARKER_SIZE, MARKER_SIZE],
        "anchor": [MARKER_SIZE // 2, MARKER_SIZE // 2],
    }


def marker(issue: IssueOut) -> dict:
    return {
        "id": issue.id,
        "position": [issue.latitude, issue.longitude],
        "icon": marker_icon(issue),
        "popup": {
            "title": issue.title,
            "category": issue.category,
            "status": status_text(issue.status),
            "priority": issue.priority,
            "location": issue.location,
            "upvotes": issue.upvotes,
            "image_url": issue.image_url,
        },
    }


def map_config() -> dict:
    return {
        "center": [settings.map_center_lat, settings.map_center_lng],
        "zoom": settings.map_zoom,
        "tile_url": settings.map_tile_url,
        "subdomains": ["mt0", "mt1", "mt2", "mt3"],
        "attribution": '&copy; <a href="https://www.google.com/maps">Google Maps</a>',
        "relayout_delay_ms": RELAYOUT_DELAY_MS,
    }


def map_view(issues: Sequence[IssueOut], category: Optional[str] = None) -> dict:
    visible = mappable(issues, category)
    return {
        "config": map_config(),
        "category": category or ALL,
        "markers": [marker(i) for i in visible],
        "stats": {
            "total": len(visible),
            "critical": sum(1 for i in visible if i.priority == "critical"),
            "in_progress": sum(1 for i in visible if i.status == "in_progress"),
            "resolved": sum(1 for i in visible if i.status == "resolved"),
        },
        "recent": [
            {"id": i.id, "title": i.title, "location": i.location, "color": category_color(i.category)}
            for i in visible[:RECENT_ON_MAP]
        ],
        "legend": legend(),
    }
