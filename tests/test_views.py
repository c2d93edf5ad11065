# File: tests/test_views.py
# Project: civic-portal

def test_health(client):
    assert client.get("/health").json()["ok"] is True


def test_home_lists_three_recent(client, make_issue):
    for n in range(5):
        make_issue(title=f"issue {n}")
    body = client.get("/home").json()
    assert [i["title"] for i in body["recent_issues"]] == ["issue 4", "issue 3", "issue 2"]
    assert body["user"] is None
    assert body["login_url"].endswith("/login?next=%2F")


def test_home_signed_in(client, citizen_headers):
    body = client.get("/home", headers=citizen_headers).json()
    assert body["user"]["full_name"] == "Asha Rao"
    assert body["login_url"] is None


def test_map_excludes_issues_without_coordinates(client, make_issue):
    make_issue(title="placed", priority="critical")
    make_issue(title="nowhere", latitude=None, longitude=None)
    body = client.get("/map").json()
    assert [m["popup"]["title"] for m in body["markers"]] == ["placed"]
    assert body["stats"]["total"] == 1
    assert body["stats"]["critical"] == 1
    assert body["config"]["center"] == [20.5937, 78.9629]
    assert body["config"]["zoom"] == 5


def test_map_category_filter(client, make_issue):
    make_issue(title="road", category="transportation")
    make_issue(title="tree", category="environment")
    body = client.get("/map", params={"category": "environment"}).json()
    assert [m["popup"]["title"] for m in body["markers"]] == ["tree"]
    assert body["category"] == "environment"
    assert len(client.get("/map", params={"category": "all"}).json()["markers"]) == 2


def test_analytics(client, make_issue):
    make_issue(status="resolved", upvotes=3)
    make_issue(status="pending", upvotes=0)
    make_issue(status="resolved", upvotes=2)
    body = client.get("/analytics").json()
    assert body["stats"]["total"] == 3
    assert body["stats"]["resolved"] == 2
    assert body["stats"]["pending"] == 1
    assert body["stats"]["resolution_rate"] == 66.7
    assert body["stats"]["avg_upvotes"] == 2
    assert body["top_locations"][0] == {"rank": 1, "location": "Main Street", "count": 3, "share": 100.0}
    assert len(body["trend"]) == 6


def test_analytics_empty(client):
    body = client.get("/analytics").json()
    assert body["stats"]["total"] == 0
    assert body["stats"]["resolution_rate"] == 0
    assert body["categories"] == []
    assert body["top_locations"] == []


def test_portal_requires_login(client):
    body = client.get("/portal/access").json()
    assert body["state"] == "requires_login"
    assert "next=%2Fdashboard" in body["login_url"]


def test_portal_unauthorized_for_citizens(client, citizen_headers):
    body = client.get("/portal/access", headers=citizen_headers).json()
    assert body["state"] == "unauthorized"
    assert body["redirect"] is None


def test_portal_authorized_for_admins(client, admin_headers):
    body = client.get("/portal/access", headers=admin_headers).json()
    assert body == {"state": "authorized", "redirect": "/dashboard", "login_url": None}


def test_portal_with_stale_token(client):
    body = client.get("/portal/access", headers={"Authorization": "Bearer not-a-jwt"}).json()
    assert body["state"] == "requires_login"
