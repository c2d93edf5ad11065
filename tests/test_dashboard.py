# File: tests/test_dashboard.py
# Project: civic-portal

import csv
import io


def test_requires_sign_in(client):
    r = client.get("/dashboard")
    assert r.status_code == 401
    assert r.json()["notice"]["level"] == "error"


def test_citizens_forbidden(client, citizen_headers):
    assert client.get("/dashboard", headers=citizen_headers).status_code == 403


def test_stats_and_filters(client, make_issue, admin_headers):
    make_issue(title="a", status="resolved", priority="critical", department="Roads")
    make_issue(title="b", status="pending", priority="high", category="safety")
    make_issue(title="c", status="resolved", priority="low", department="Roads")

    body = client.get("/dashboard", headers=admin_headers).json()
    stats = body["stats"]
    assert stats["total"] == 3
    assert stats["resolved"] == 2
    assert stats["pending"] == 1
    assert stats["critical"] == 1
    assert stats["high"] == 1
    assert stats["resolution_rate"] == 66.7
    assert stats["recent"] == 3
    assert stats["by_department"] == {"Roads": 2, "Unassigned": 1}
    assert body["departments"][0]["department"] == "Roads"
    assert body["showing"] == 3

    filtered = client.get(
        "/dashboard",
        params={"status": "resolved", "category": "all", "priority": "all"},
        headers=admin_headers,
    ).json()
    assert sorted(i["title"] for i in filtered["issues"]) == ["a", "c"]
    assert filtered["total"] == 3

    both = client.get(
        "/dashboard", params={"status": "resolved", "priority": "critical"}, headers=admin_headers
    ).json()
    assert [i["title"] for i in both["issues"]] == ["a"]


def test_unassigned_label(client, make_issue, admin_headers):
    make_issue(status="in_progress")
    row = client.get("/dashboard", headers=admin_headers).json()["issues"][0]
    assert row["department"] is None
    assert row["department_label"] == "Unassigned"
    assert row["status_label"] == "in progress"


def test_issue_detail(client, make_issue, admin_headers):
    issue = make_issue()
    client.post(f"/community/issues/{issue.id}/comments", json={"content": "Still there"})
    body = client.get(f"/dashboard/issues/{issue.id}", headers=admin_headers).json()
    assert body["issue"]["title"] == issue.title
    assert [c["content"] for c in body["comments"]] == ["Still there"]
    assert body["update"] == {"status": "pending", "department": "", "resolution_note": ""}


def test_update_then_reload(client, make_issue, admin_headers):
    issue = make_issue()
    r = client.patch(
        f"/dashboard/issues/{issue.id}",
        json={"status": "resolved", "department": "Roads", "resolution_note": "Patched"},
        headers=admin_headers,
    )
    assert r.status_code == 200
    updated = r.json()["issue"]
    assert updated["status"] == "resolved"
    assert updated["department"] == "Roads"
    assert updated["resolution_note"] == "Patched"
    assert updated["updated_date"] is not None


def test_blank_department_clears_assignment(client, make_issue, admin_headers):
    issue = make_issue(department="Roads")
    r = client.patch(f"/dashboard/issues/{issue.id}", json={"department": "  "}, headers=admin_headers)
    assert r.json()["issue"]["department"] is None
    assert r.json()["issue"]["department_label"] == "Unassigned"


def test_update_rejects_unknown_status(client, make_issue, admin_headers):
    issue = make_issue()
    r = client.patch(f"/dashboard/issues/{issue.id}", json={"status": "archived"}, headers=admin_headers)
    assert r.status_code == 422


def test_update_unknown_issue(client, admin_headers):
    r = client.patch("/dashboard/issues/404", json={"status": "closed"}, headers=admin_headers)
    assert r.status_code == 404


def test_export_csv(client, make_issue, admin_headers):
    make_issue(title="exported", status="verified")
    make_issue(title="skipped", status="closed")
    r = client.get("/dashboard/export", params={"status": "verified"}, headers=admin_headers)
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/csv")
    rows = list(csv.DictReader(io.StringIO(r.text)))
    assert [row["title"] for row in rows] == ["exported"]
    assert rows[0]["upvotes"] == "0"
