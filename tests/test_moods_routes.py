"""
Tests for the /api/moods endpoints.

Covers:
- POST /api/moods: envelope, camelCase fields, per-field validation errors
- GET /api/moods: pagination and filtering
- POST /api/moods/detect: keyword detection and text requirement
- GET/PUT/DELETE /api/moods/{id}: 404 before 403
- GET /api/moods/frequency on an empty history
"""

from __future__ import annotations

from fastapi.testclient import TestClient


def _post_mood(client: TestClient, headers: dict, **overrides) -> dict:
    payload = {"mood": "happy", "intensity": 8, "detectionMethod": "text"}
    payload.update(overrides)
    response = client.post("/api/moods", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]["moodLog"]


class TestLogMoodEndpoint:
    def test_creates_mood_log(self, client: TestClient, headers: dict) -> None:
        response = client.post(
            "/api/moods",
            json={"mood": "calm", "intensity": 5, "detectionMethod": "manual", "triggers": ["nature"]},
            headers=headers,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Mood logged successfully"
        log = body["data"]["moodLog"]
        assert log["mood"] == "calm"
        assert log["detectionMethod"] == "manual"
        assert log["confidence"] == 1.0
        assert log["triggers"] == ["nature"]
        assert log["context"]["timeOfDay"] in {"morning", "afternoon", "evening", "night"}
        assert log["previousMood"] is None

    def test_second_log_links_previous(self, client: TestClient, headers: dict) -> None:
        _post_mood(client, headers, mood="sad", intensity=2)
        second = _post_mood(client, headers)
        assert second["previousMood"]["mood"] == "sad"
        assert second["previousMood"]["intensity"] == 2

    def test_every_invalid_field_is_reported(self, client: TestClient, headers: dict) -> None:
        response = client.post(
            "/api/moods",
            json={"mood": "ecstatic", "intensity": 11, "detectionMethod": "telepathy", "confidence": 2},
            headers=headers,
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Validation failed"
        fields = {error["field"] for error in body["errors"]}
        assert {"mood", "intensity", "detectionMethod", "confidence"} <= fields

    def test_requires_token(self, client: TestClient) -> None:
        response = client.post("/api/moods", json={"mood": "happy", "intensity": 5, "detectionMethod": "text"})
        assert response.status_code == 401
        assert response.json()["success"] is False


class TestListMoods:
    def test_paginates_newest_first(self, client: TestClient, headers: dict) -> None:
        for intensity in (1, 2, 3):
            _post_mood(client, headers, intensity=intensity)

        response = client.get("/api/moods", params={"page": 1, "limit": 2}, headers=headers)

        data = response.json()["data"]
        assert data["pagination"] == {"current": 1, "pages": 2, "total": 3, "limit": 2}
        assert [item["intensity"] for item in data["items"]] == [3, 2]

    def test_filters_by_mood(self, client: TestClient, headers: dict) -> None:
        _post_mood(client, headers, mood="sad")
        _post_mood(client, headers, mood="happy")

        response = client.get("/api/moods", params={"mood": "sad"}, headers=headers)

        items = response.json()["data"]["items"]
        assert [item["mood"] for item in items] == ["sad"]


class TestDetect:
    def test_keyword_detection(self, client: TestClient, headers: dict) -> None:
        response = client.post("/api/moods/detect", json={"method": "text", "text": "Feeling stressed"}, headers=headers)
        detection = response.json()["data"]["detection"]
        assert detection == {"mood": "anxious", "intensity": 7, "confidence": 0.75, "method": "text"}

    def test_text_is_required_for_text_detection(self, client: TestClient, headers: dict) -> None:
        response = client.post("/api/moods/detect", json={"method": "text"}, headers=headers)
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "text"

    def test_camera_detection_needs_no_text(self, client: TestClient, headers: dict) -> None:
        response = client.post("/api/moods/detect", json={"method": "camera"}, headers=headers)
        assert response.status_code == 200
        assert response.json()["data"]["detection"]["method"] == "camera"


class TestSingleMood:
    def test_unknown_id_is_404(self, client: TestClient, headers: dict) -> None:
        response = client.get("/api/moods/12345", headers=headers)
        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Mood log not found"}

    def test_other_users_log_is_403(self, client: TestClient, make_user, auth_headers) -> None:
        owner, other = make_user(), make_user()
        log = _post_mood(client, auth_headers(owner))
        response = client.get(f"/api/moods/{log['id']}", headers=auth_headers(other))
        assert response.status_code == 403

    def test_update_only_touches_mutable_fields(self, client: TestClient, headers: dict) -> None:
        log = _post_mood(client, headers)
        response = client.put(
            f"/api/moods/{log['id']}",
            json={"notes": "after lunch", "mood": "sad", "triggers": ["work"]},
            headers=headers,
        )
        updated = response.json()["data"]["moodLog"]
        assert updated["notes"] == "after lunch"
        assert updated["triggers"] == ["work"]
        assert updated["mood"] == "happy"

    def test_delete(self, client: TestClient, headers: dict) -> None:
        log = _post_mood(client, headers)
        assert client.delete(f"/api/moods/{log['id']}", headers=headers).status_code == 200
        assert client.get(f"/api/moods/{log['id']}", headers=headers).status_code == 404


class TestSummaries:
    def test_empty_frequency(self, client: TestClient, headers: dict) -> None:
        response = client.get("/api/moods/frequency", params={"days": 30}, headers=headers)
        assert response.json()["data"] == {"frequency": [], "total": 0}

    def test_patterns_require_a_week(self, client: TestClient, headers: dict) -> None:
        response = client.get("/api/moods/insights/patterns", params={"days": 3}, headers=headers)
        assert response.status_code == 400

    def test_trends_after_logging(self, client: TestClient, headers: dict) -> None:
        _post_mood(client, headers, intensity=6)
        _post_mood(client, headers, intensity=8)
        trends = client.get("/api/moods/trends", headers=headers).json()["data"]["trends"]
        assert len(trends) == 1
        assert trends[0]["mood"] == "happy"
        assert trends[0]["count"] == 2
        assert trends[0]["avgIntensity"] == 7.0
