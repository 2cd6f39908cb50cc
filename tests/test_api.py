"""Tests for the HTTP API."""

import pytest
from fastapi.testclient import TestClient

from formcoach.main import app
from formcoach.sessions import SessionRegistry, get_registry


@pytest.fixture
def registry(raw_settings):
    return SessionRegistry(settings=raw_settings)


@pytest.fixture
def client(registry):
    app.dependency_overrides[get_registry] = lambda: registry
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _create(client, exercise_id="squat"):
    response = client.post("/api/sessions", json={"exercise_id": exercise_id})
    assert response.status_code == 201
    return response.json()


# ============================================================================
# Test: Exercises
# ============================================================================

class TestExercisesApi:

    def test_list(self, client):
        response = client.get("/api/exercises")
        assert response.status_code == 200
        ids = [e["id"] for e in response.json()]
        assert {"squat", "biceps_curl", "lunge", "overhead_press", "calf_raise"} <= set(ids)

    def test_detail(self, client):
        response = client.get("/api/exercises/calf_raise")
        assert response.status_code == 200
        body = response.json()
        assert body["measurement"] == "vertical"
        assert body["landmarks"] == [27, 29]

    def test_unknown(self, client):
        assert client.get("/api/exercises/burpee").status_code == 404


# ============================================================================
# Test: Sessions
# ============================================================================

class TestSessionsApi:

    def test_create(self, client):
        body = _create(client)
        assert body["exercise_id"] == "squat"
        assert body["display_name"] == "Squat"
        assert body["completed_steps"] == [False, False]
        assert body["feedback_text"] == ""
        assert body["completion_event"] is False

    def test_create_unknown_exercise(self, client):
        response = client.post("/api/sessions", json={"exercise_id": "burpee"})
        assert response.status_code == 400
        assert "burpee" in response.json()["detail"]

    def test_capacity(self, client, registry):
        for _ in range(registry.settings.max_active_sessions):
            _create(client)
        response = client.post("/api/sessions", json={"exercise_id": "squat"})
        assert response.status_code == 503

    def test_frames_complete_once(self, client, squat_frame):
        session_id = _create(client)["session_id"]
        bodies = [
            client.post(f"/api/sessions/{session_id}/frames",
                        json={"keypoints": squat_frame(a)}).json()
            for a in [170, 170, 130, 130, 130, 165, 170]
        ]
        assert [b["completed_steps"] for b in bodies] == (
            [[False, False]] * 2 + [[True, False]] * 3 + [[True, True]] * 2
        )
        assert [b["completion_event"] for b in bodies] == [False] * 5 + [True, False]
        assert bodies[-1]["frames_processed"] == 7

    def test_null_frame_is_noop(self, client, squat_frame):
        session_id = _create(client)["session_id"]
        first = client.post(f"/api/sessions/{session_id}/frames",
                            json={"keypoints": squat_frame(130)}).json()
        second = client.post(f"/api/sessions/{session_id}/frames", json={"keypoints": None}).json()
        assert second["feedback_text"] == first["feedback_text"]
        assert second["completed_steps"] == first["completed_steps"]

    def test_frame_with_undetected_landmarks(self, client, squat_frame):
        session_id = _create(client)["session_id"]
        frame = squat_frame(130)
        frame[25] = None
        body = client.post(f"/api/sessions/{session_id}/frames", json={"keypoints": frame}).json()
        assert body["completed_steps"] == [False, False]
        assert body["frames_processed"] == 0

    def test_too_many_keypoints_rejected(self, client, squat_frame):
        session_id = _create(client)["session_id"]
        frame = squat_frame(130) + [{"x": 0.1, "y": 0.1}]
        response = client.post(f"/api/sessions/{session_id}/frames", json={"keypoints": frame})
        assert response.status_code == 422

    def test_switch_exercise(self, client, squat_frame):
        session_id = _create(client)["session_id"]
        client.post(f"/api/sessions/{session_id}/frames", json={"keypoints": squat_frame(130)})

        response = client.put(f"/api/sessions/{session_id}/exercise",
                              json={"exercise_id": "biceps_curl"})
        assert response.status_code == 200
        body = response.json()
        assert body["exercise_id"] == "biceps_curl"
        assert body["completed_steps"] == [False, False]

        bad = client.put(f"/api/sessions/{session_id}/exercise", json={"exercise_id": "burpee"})
        assert bad.status_code == 400

    def test_dismiss(self, client, squat_frame):
        session_id = _create(client)["session_id"]
        for angle in [130, 170]:
            client.post(f"/api/sessions/{session_id}/frames", json={"keypoints": squat_frame(angle)})

        body = client.post(f"/api/sessions/{session_id}/dismiss").json()
        assert body["exercise_id"] == "squat"
        assert body["is_complete"] is False
        assert body["completed_steps"] == [False, False]

    def test_get_and_delete(self, client):
        session_id = _create(client)["session_id"]
        assert client.get(f"/api/sessions/{session_id}").status_code == 200
        assert client.delete(f"/api/sessions/{session_id}").status_code == 204
        assert client.get(f"/api/sessions/{session_id}").status_code == 404
        assert client.delete(f"/api/sessions/{session_id}").status_code == 404

    def test_unknown_session(self, client):
        response = client.post("/api/sessions/nope/frames", json={"keypoints": None})
        assert response.status_code == 404


class TestHealth:

    def test_health(self, client):
        body = client.get("/health").json()
        assert body["status"] == "healthy"
