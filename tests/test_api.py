"""HTTP tests for the submit and query endpoints."""

import pytest

from sprint_survey.core.exceptions import BackendUnavailable
from sprint_survey.services.repository import SubmissionRepository


async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


class TestSubmit:

    async def test_create(self, client, make_payload, now_iso):
        response = await client.post("/api/v1/submit", json=make_payload())

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert "updated" not in body
        assert body["message"] == "Sprint prioritization submitted successfully with priority data"
        assert body["data"]["email"] == "dev@example.com"
        assert body["data"]["timestamp"] == now_iso
        assert body["data"]["totalItems"] == 3
        assert body["data"]["totalHours"] == 20
        assert body["data"]["totalPoints"] == 80
        assert body["data"]["priorityProfile"] == "high-heavy"

    async def test_duplicate_updates(self, client, make_payload):
        await client.post("/api/v1/submit", json=make_payload())

        response = await client.post(
            "/api/v1/submit",
            json=make_payload(priorityBreakdown={"high": 0, "medium": 1, "low": 2})
        )

        assert response.status_code == 200
        body = response.json()
        assert body["updated"] is True
        assert body["message"] == "Sprint prioritization updated successfully with new priority data"
        assert body["data"]["totalPoints"] == 40

        query = await client.get("/api/v1/query")
        assert query.json()["count"] == 1

    async def test_server_assigns_timestamp(self, client):
        response = await client.post("/api/v1/submit", json={"email": "quick@example.com"})

        assert response.status_code == 200
        timestamp = response.json()["data"]["timestamp"]
        assert timestamp.endswith("Z")
        assert len(timestamp) == len("2025-03-10T12:00:00.000Z")

    async def test_missing_email(self, client, make_payload):
        payload = make_payload()
        del payload["email"]

        response = await client.post("/api/v1/submit", json=payload)

        assert response.status_code == 400
        assert response.json() == {"error": "Email is required"}

    async def test_body_must_be_object(self, client):
        response = await client.post("/api/v1/submit", json=["dev@example.com"])

        assert response.status_code == 400
        assert response.json() == {"error": "Request body must be a JSON object"}

    async def test_malformed_json(self, client):
        response = await client.post(
            "/api/v1/submit",
            content=b"{not json",
            headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request"

    async def test_store_failure(self, client, make_payload, monkeypatch):
        async def unavailable(self, record):
            raise BackendUnavailable("Failed to store submission", details="database is locked")

        monkeypatch.setattr(SubmissionRepository, "upsert", unavailable)

        response = await client.post("/api/v1/submit", json=make_payload())

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error", "details": "database is locked"}

    @pytest.mark.parametrize("path", ["/api/v1/submit", "/api/v1/query"])
    async def test_unsupported_method(self, client, path):
        response = await client.put(path, json={})

        assert response.status_code == 405
        assert response.json() == {"error": "Method not allowed"}


class TestPreflight:

    @pytest.mark.parametrize("path", ["/api/v1/submit", "/api/v1/query"])
    async def test_options(self, client, path):
        response = await client.options(path)

        assert response.status_code == 200
        assert response.json() == {"message": "CORS preflight successful"}

    async def test_cors_preflight(self, client):
        response = await client.options(
            "/api/v1/submit",
            headers={
                "Origin": "https://forms.example.com",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Content-Type",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"
        assert "POST" in response.headers["access-control-allow-methods"]

    async def test_cors_header_on_response(self, client):
        response = await client.get("/api/v1/query", headers={"Origin": "https://forms.example.com"})

        assert response.headers["access-control-allow-origin"] == "*"


class TestQuery:

    @pytest.fixture
    async def seeded(self, client, make_payload):
        await client.post("/api/v1/submit", json=make_payload(email="alice@example.com"))
        await client.post("/api/v1/submit", json=make_payload(
            email="bob@example.com",
            priorityBreakdown={"high": 0, "medium": 1, "low": 2},
        ))
        await client.post("/api/v1/submit", json=make_payload(
            email="carol@example.com",
            priorityBreakdown={"high": 7, "medium": 2, "low": 1},
            sprintNumber=24,
        ))
        return client

    async def test_all(self, seeded):
        response = await seeded.get("/api/v1/query")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["count"] == 3
        assert [item["email"] for item in body["data"]] == [
            "alice@example.com", "bob@example.com", "carol@example.com"
        ]
        assert body["stats"]["totalSubmissions"] == 3
        # (80 + 40 + 260) / 3 = 126.67
        assert body["stats"]["averageTotalPoints"] == 127
        assert body["stats"]["priorityDistribution"] == {"high": 9, "medium": 4, "low": 3}
        assert "lastEvaluatedKey" not in body

    async def test_item_shape(self, seeded):
        response = await seeded.get("/api/v1/query", params={"email": "alice@example.com"})

        item = response.json()["data"][0]
        assert item["formVersionSprintNumber"] == "v2.0-with-priority-sprint-23"
        assert item["totalPointsRange"] == "low"
        assert item["summary"]["averagePriorityScore"] == 27
        assert item["summary"]["remainingCapacity"] == 240
        assert item["metadata"]["processingVersion"] == "api-v2.0"
        assert isinstance(item["ttl"], int)

    async def test_filters(self, seeded):
        by_sprint = await seeded.get("/api/v1/query", params={"sprintNumber": 24})
        by_points = await seeded.get("/api/v1/query", params={"minPoints": 50})
        by_profile = await seeded.get("/api/v1/query", params={"priorityProfile": "low-focused"})

        assert [item["email"] for item in by_sprint.json()["data"]] == ["carol@example.com"]
        assert [item["email"] for item in by_points.json()["data"]] == ["alice@example.com", "carol@example.com"]
        assert [item["email"] for item in by_profile.json()["data"]] == ["bob@example.com"]

    async def test_pagination(self, seeded):
        first = (await seeded.get("/api/v1/query", params={"limit": 2})).json()

        assert first["count"] == 2
        start = first["lastEvaluatedKey"]
        assert start["email"] == "bob@example.com"

        second = (await seeded.get(
            "/api/v1/query",
            params={"limit": 2, "startEmail": start["email"], "startTimestamp": start["timestamp"]}
        )).json()

        assert [item["email"] for item in second["data"]] == ["carol@example.com"]
        assert "lastEvaluatedKey" not in second

    @pytest.mark.parametrize("params", [{"sprintNumber": "latest"}, {"limit": 0}, {"minPoints": "many"}])
    async def test_invalid_parameters(self, client, params):
        response = await client.get("/api/v1/query", params=params)

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request"


class TestPermissivePayloads:

    async def test_non_finite_hours(self, client):
        response = await client.post(
            "/api/v1/submit",
            content=b'{"email": "a@example.com", "selectedItems": [{"id": "q1", "estimatedHours": 1e999, "priority": "high"}]}',
            headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["totalHours"] == 0
        assert data["totalPoints"] == 30

    async def test_oversized_hours(self, client):
        response = await client.post("/api/v1/submit", json={
            "email": "big@example.com",
            "selectedItems": [{"id": "q1", "estimatedHours": 100000000000000000000000, "priority": "low"}],
        })

        assert response.status_code == 200
        assert response.json()["data"]["totalHours"] == 1_000_000
