# File: tests/test_community.py
# Project: civic-portal

from conftest import named


def test_search_returns_matching_subset(client, make_issue):
    make_issue(title="Pothole on Main Street")
    make_issue(title="Broken bench", description="Seat missing", location="Central Park")
    make_issue(title="Streetlight out", description="Dark near the POTHOLE repair site")

    everything = client.get("/community/issues").json()
    found = client.get("/community/issues", params={"search": "pothole"}).json()

    assert everything["total"] == 3
    assert found["total"] == 3
    assert found["showing"] == 2
    all_ids = {i["id"] for i in everything["issues"]}
    for issue in found["issues"]:
        assert issue["id"] in all_ids
        text = " ".join([issue["title"], issue["description"] or "", issue["location"]]).lower()
        assert "pothole" in text


def test_search_matches_location(client, make_issue):
    make_issue(title="Bench", location="Central Park, Ward 2")
    make_issue(title="Bin", location="Station Road")
    found = client.get("/community/issues", params={"search": "central"}).json()
    assert [i["title"] for i in found["issues"]] == ["Bench"]


def test_newest_first(client, make_issue):
    make_issue(title="first")
    make_issue(title="second")
    titles = [i["title"] for i in client.get("/community/issues").json()["issues"]]
    assert titles == ["second", "first"]


def test_upvote_increments_by_one_and_reloads_once(client, make_issue, gateway_calls):
    issue = make_issue(upvotes=4)
    r = client.post(f"/community/issues/{issue.id}/upvote")
    assert r.status_code == 200
    assert r.json()["issues"][0]["upvotes"] == 5

    updates = named(gateway_calls["issues"], "update")
    assert len(updates) == 1
    assert updates[0][1][1] == {"upvotes": 5}
    assert len(named(gateway_calls["issues"], "list")) == 1


def test_upvote_unknown_issue(client):
    r = client.post("/community/issues/999/upvote")
    assert r.status_code == 404
    assert r.json()["notice"]["level"] == "error"


def test_comment_increments_counter(client, make_issue):
    issue = make_issue()
    r = client.post(f"/community/issues/{issue.id}/comments", json={"content": "  Same on my street  "})
    assert r.status_code == 201
    view = r.json()
    assert view["issues"][0]["comments_count"] == 1
    comments = view["comments"][str(issue.id)]
    assert len(comments) == 1
    assert comments[0]["content"] == "Same on my street"
    assert comments[0]["user_name"] == "Community Member"


def test_comment_uses_signed_in_name(client, make_issue, citizen_headers):
    issue = make_issue()
    client.post(f"/community/issues/{issue.id}/comments", json={"content": "Reported too"},
                headers=citizen_headers)
    comments = client.get(f"/community/issues/{issue.id}/comments").json()
    assert [c["user_name"] for c in comments] == ["Asha Rao"]


def test_blank_comment_rejected(client, make_issue):
    issue = make_issue()
    r = client.post(f"/community/issues/{issue.id}/comments", json={"content": "   "})
    assert r.status_code == 400
    assert client.get("/community/issues").json()["issues"][0]["comments_count"] == 0
