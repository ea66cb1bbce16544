from app import config
from tests.conftest import add_responses, survey_payload


async def create_survey(client, headers, **overrides):
    resp = await client.post(
        "/api/surveys", json=survey_payload(**overrides), headers=headers
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]["survey"]


async def test_requests_without_token_are_rejected(client):
    resp = await client.get("/api/surveys")
    assert resp.status_code == 401
    assert resp.json()["success"] is False

    resp = await client.get(
        "/api/surveys", headers={"Authorization": "Bearer not-a-real-token"}
    )
    assert resp.status_code == 401

    resp = await client.get("/api/surveys", headers={"Authorization": "Token abc"})
    assert resp.status_code == 401


async def test_create_survey_returns_detail(client, alice, alice_headers):
    resp = await client.post(
        "/api/surveys", json=survey_payload(), headers=alice_headers
    )

    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    assert body["message"] == "Survey created successfully"
    survey = body["data"]["survey"]
    assert survey["status"] == "draft"
    assert survey["question_count"] == 2
    assert survey["estimated_time"] == "5-10 minutes"
    assert survey["published_at"] is None
    assert survey["url"] == f"{config.FRONTEND_URL}/survey/{survey['id']}"
    assert survey["share_url"] == survey["url"] + "?ref=share"
    assert survey["creator"] == {
        "id": alice.id,
        "name": "Alice",
        "email": "alice@example.com",
    }
    assert survey["settings"]["anonymous_responses"] is True
    assert survey["questions"][1]["options"] == ["Basic", "Pro"]
    analytics = survey["analytics"]
    assert analytics["total_responses"] == 0
    assert analytics["completion_rate"] == 0
    assert analytics["nps_score"] is None
    assert analytics["last_updated"] is not None


async def test_create_survey_validation_errors(client, alice_headers):
    resp = await client.post(
        "/api/surveys", json=survey_payload(questions=[]), headers=alice_headers
    )
    assert resp.status_code == 422
    body = resp.json()
    assert body["success"] is False
    assert body["error"] == "VALIDATION_ERROR"
    assert "questions" in body["details"]["field_errors"]

    bad_type = survey_payload(questions=[{"type": "essay", "question": "Why?"}])
    resp = await client.post("/api/surveys", json=bad_type, headers=alice_headers)
    assert resp.status_code == 422

    resp = await client.post(
        "/api/surveys", json={"title": "No category"}, headers=alice_headers
    )
    assert resp.status_code == 422
    assert {"category", "questions"} <= set(resp.json()["details"]["field_errors"])


async def test_surveys_of_other_users_look_missing(
    client, alice_headers, bob_headers
):
    survey = await create_survey(client, alice_headers)
    url = f"/api/surveys/{survey['id']}"

    requests = [
        client.get(url, headers=bob_headers),
        client.put(url, json={"title": "Mine now"}, headers=bob_headers),
        client.delete(url, headers=bob_headers),
        client.post(f"{url}/publish", headers=bob_headers),
        client.post(f"{url}/close", headers=bob_headers),
        client.post(f"{url}/pause", headers=bob_headers),
        client.post(f"{url}/duplicate", headers=bob_headers),
    ]
    for request in requests:
        resp = await request
        assert resp.status_code == 404
        assert resp.json()["message"] == "Survey not found"

    resp = await client.get("/api/surveys", headers=bob_headers)
    assert resp.json()["data"]["total"] == 0

    resp = await client.get(url, headers=alice_headers)
    assert resp.json()["data"]["survey"]["title"] == "Customer Satisfaction Q1"


async def test_publish_lifecycle(client, alice_headers):
    survey = await create_survey(client, alice_headers)
    url = f"/api/surveys/{survey['id']}"

    resp = await client.post(f"{url}/publish", headers=alice_headers)
    assert resp.status_code == 200
    published = resp.json()["data"]["survey"]
    assert published["status"] == "published"
    assert published["published_at"] is not None
    assert published["share_url"].endswith(f"/survey/{survey['id']}?ref=share")

    resp = await client.post(f"{url}/publish", headers=alice_headers)
    assert resp.status_code == 422
    assert resp.json()["error"] == "ALREADY_PUBLISHED"
    assert resp.json()["message"] == "Survey is already published"

    resp = await client.get(url, headers=alice_headers)
    assert resp.json()["data"]["survey"]["published_at"] == published["published_at"]

    resp = await client.post(f"{url}/pause", headers=alice_headers)
    assert resp.json()["data"]["survey"]["status"] == "paused"

    resp = await client.post(f"{url}/close", headers=alice_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["survey"]["status"] == "closed"

    resp = await client.post(f"{url}/close", headers=alice_headers)
    assert resp.status_code == 422
    assert resp.json()["error"] == "ALREADY_CLOSED"

    resp = await client.post(f"{url}/pause", headers=alice_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["survey"]["status"] == "paused"

    await client.post(f"{url}/close", headers=alice_headers)
    resp = await client.post(f"{url}/publish", headers=alice_headers)
    assert resp.status_code == 200
    reopened = resp.json()["data"]["survey"]
    assert reopened["status"] == "published"
    assert reopened["published_at"] == published["published_at"]


async def test_published_survey_with_responses_cannot_change(
    client, db, alice_headers
):
    survey = await create_survey(client, alice_headers)
    url = f"/api/surveys/{survey['id']}"
    await client.post(f"{url}/publish", headers=alice_headers)
    await add_responses(db, survey["id"], [{"nps_score": 10, "completion_time": 42}])

    resp = await client.put(url, json={"title": "Changed"}, headers=alice_headers)
    assert resp.status_code == 422
    assert resp.json()["error"] == "PUBLISHED_WITH_RESPONSES"

    resp = await client.delete(url, headers=alice_headers)
    assert resp.status_code == 422
    assert "Consider closing it instead" in resp.json()["message"]

    resp = await client.get(url, headers=alice_headers)
    detail = resp.json()["data"]["survey"]
    assert detail["title"] == "Customer Satisfaction Q1"
    assert detail["analytics"]["total_responses"] == 1
    assert detail["analytics"]["nps_score"] == 100
    assert detail["analytics"]["average_time"] == 42

    resp = await client.post(f"{url}/close", headers=alice_headers)
    assert resp.status_code == 200


async def test_update_and_delete_draft(client, alice_headers):
    survey = await create_survey(client, alice_headers)
    url = f"/api/surveys/{survey['id']}"

    resp = await client.put(
        url,
        json={"title": "Renamed", "settings": {"collect_email": True}},
        headers=alice_headers,
    )
    assert resp.status_code == 200
    updated = resp.json()["data"]["survey"]
    assert updated["title"] == "Renamed"
    assert updated["category"] == "customer"
    assert updated["settings"]["collect_email"] is True
    assert updated["question_count"] == 2

    resp = await client.put(url, json={"questions": []}, headers=alice_headers)
    assert resp.status_code == 422

    resp = await client.put(url, json={"title": None}, headers=alice_headers)
    assert resp.status_code == 422

    resp = await client.delete(url, headers=alice_headers)
    assert resp.status_code == 200
    assert resp.json()["message"] == "Survey deleted successfully"

    resp = await client.get(url, headers=alice_headers)
    assert resp.status_code == 404


async def test_duplicate_survey(client, db, alice_headers):
    survey = await create_survey(client, alice_headers)
    url = f"/api/surveys/{survey['id']}"
    await client.post(f"{url}/publish", headers=alice_headers)
    await add_responses(db, survey["id"], [{"nps_score": 3}, {"nps_score": 9}])

    resp = await client.post(f"{url}/duplicate", headers=alice_headers)

    assert resp.status_code == 201
    copy = resp.json()["data"]["survey"]
    assert copy["id"] != survey["id"]
    assert copy["title"] == "Customer Satisfaction Q1 (Copy)"
    assert copy["status"] == "draft"
    assert copy["published_at"] is None
    assert copy["questions"] == survey["questions"]
    assert copy["settings"] == survey["settings"]
    assert copy["analytics"]["total_responses"] == 0


async def test_list_surveys(client, db, alice_headers, bob_headers):
    first = await create_survey(client, alice_headers, title="Website feedback")
    second = await create_survey(
        client, alice_headers, title="Team pulse", category="employee"
    )
    await create_survey(client, bob_headers, title="Bob's survey")
    await client.post(f"/api/surveys/{first['id']}/publish", headers=alice_headers)
    await add_responses(
        db,
        first["id"],
        [
            {"nps_score": 10, "sentiment": "positive"},
            {"nps_score": 2, "sentiment": "negative"},
        ],
    )

    resp = await client.get("/api/surveys", headers=alice_headers)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["total"] == 2
    assert data["page"] == 1
    assert data["per_page"] == 15
    assert data["last_page"] == 1
    assert [item["id"] for item in data["items"]] == [second["id"], first["id"]]
    listed_first = data["items"][1]
    assert "questions" not in listed_first
    assert listed_first["analytics"]["total_responses"] == 2
    assert listed_first["analytics"]["nps_score"] == 0
    assert listed_first["analytics"]["sentiment_breakdown"] == {
        "positive": 1,
        "neutral": 0,
        "negative": 1,
    }

    resp = await client.get(
        "/api/surveys",
        params={"status": "published", "search": "WEBSITE"},
        headers=alice_headers,
    )
    assert [item["id"] for item in resp.json()["data"]["items"]] == [first["id"]]

    resp = await client.get(
        "/api/surveys",
        params={"status": "all", "category": "employee"},
        headers=alice_headers,
    )
    assert [item["id"] for item in resp.json()["data"]["items"]] == [second["id"]]

    resp = await client.get(
        "/api/surveys",
        params={"sort_by": "title", "sort_order": "asc", "per_page": 1, "page": 2},
        headers=alice_headers,
    )
    data = resp.json()["data"]
    assert data["last_page"] == 2
    assert [item["title"] for item in data["items"]] == ["Website feedback"]


async def test_list_rejects_bad_parameters(client, alice_headers):
    resp = await client.get(
        "/api/surveys", params={"sort_by": "secret"}, headers=alice_headers
    )
    assert resp.status_code == 422
    assert "sort_by" in resp.json()["details"]["field_errors"]

    resp = await client.get(
        "/api/surveys", params={"status": "archived"}, headers=alice_headers
    )
    assert resp.status_code == 422

    resp = await client.get(
        "/api/surveys", params={"per_page": 0}, headers=alice_headers
    )
    assert resp.status_code == 422
    assert "per_page" in resp.json()["details"]["field_errors"]


async def test_health_check(client):
    resp = await client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["success"] is True
