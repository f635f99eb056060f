"""
Tests for the gamification API routes.

Tests cover:
- Bearer authentication
- Acting for another user (forbidden unless service token)
- Error mapping (400/403/404)
- camelCase request and response bodies
"""

import sqlite3
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import jwt
import pytest
from fastapi.testclient import TestClient

from liftforge.api.deps import get_gamification_db, get_level_service
from liftforge.config import get_settings
from liftforge.main import app


def make_token(sub="user-1", role=None, token_type="access", expires_in=timedelta(minutes=15)):
    settings = get_settings()
    payload = {"sub": sub, "type": token_type, "exp": datetime.now(timezone.utc) + expires_in}
    if role:
        payload["role"] = role
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def auth(**kwargs):
    return {"Authorization": f"Bearer {make_token(**kwargs)}"}


# ============================================================================
# Test Client Setup
# ============================================================================

@pytest.fixture
def client(temp_db):
    """Create a test client backed by the temporary database."""
    app.dependency_overrides[get_gamification_db] = lambda: temp_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def workout(make_workout, bench):
    """A finished two-set workout for user-1 that just ended."""
    started_at = datetime.now(timezone.utc) - timedelta(hours=1)
    workout, sets = make_workout("user-1", started_at, sets=[(bench.id, 100, 5), (bench.id, 100, 5)])
    return workout, sets


class TestAuthentication:
    def test_missing_token(self, client):
        response = client.post("/api/v1/gamification/level/calculate", json={"userId": "user-1"})
        assert response.status_code == 401

    def test_expired_token(self, client):
        response = client.post(
            "/api/v1/gamification/level/calculate",
            json={"userId": "user-1"},
            headers=auth(expires_in=timedelta(minutes=-5)),
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Token has expired"

    def test_refresh_token_rejected(self, client):
        response = client.post(
            "/api/v1/gamification/level/calculate",
            json={"userId": "user-1"},
            headers=auth(token_type="refresh"),
        )
        assert response.status_code == 401

    def test_wrong_secret(self, client):
        token = jwt.encode({"sub": "user-1", "type": "access"}, "not-the-secret", algorithm="HS256")
        response = client.post(
            "/api/v1/gamification/level/calculate",
            json={"userId": "user-1"},
            headers={"Authorization": f"Bearer {token}"},
        )
        assert response.status_code == 401


class TestXpRoutes:
    def test_award_xp(self, client, workout):
        _, sets = workout

        response = client.post(
            "/api/v1/gamification/xp/award",
            json={"userId": "user-1", "setIds": [s.id for s in sets]},
            headers=auth(),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["xpAwarded"] == 70
        assert data["todayTotal"] == 70
        assert data["level"]["xpToNextLevel"] == 30

    def test_cannot_award_for_another_user(self, client, workout):
        _, sets = workout

        response = client.post(
            "/api/v1/gamification/xp/award",
            json={"userId": "user-1", "setIds": [sets[0].id]},
            headers=auth(sub="user-2"),
        )

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "FORBIDDEN"

    def test_service_token_may_act_for_anyone(self, client, workout):
        _, sets = workout

        response = client.post(
            "/api/v1/gamification/xp/award",
            json={"userId": "user-1", "setIds": [sets[0].id]},
            headers=auth(sub="gamification-worker", role="service"),
        )

        assert response.status_code == 200

    def test_empty_user_id(self, client):
        response = client.post(
            "/api/v1/gamification/xp/award",
            json={"userId": "", "setIds": ["s1"]},
            headers=auth(),
        )

        assert response.status_code == 400
        assert response.json()["error"]["details"]["field"] == "userId"

    def test_unknown_sets(self, client):
        response = client.post(
            "/api/v1/gamification/xp/award",
            json={"userId": "user-1", "setIds": ["missing"]},
            headers=auth(),
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "SET_NOT_FOUND"

    def test_malformed_body(self, client):
        response = client.post(
            "/api/v1/gamification/xp/award",
            json={"userId": "user-1", "setIds": "not-a-list"},
            headers=auth(),
        )

        assert response.status_code == 422

    def test_calculate_level(self, client):
        response = client.post(
            "/api/v1/gamification/level/calculate",
            json={"userId": "user-1"},
            headers=auth(),
        )

        assert response.status_code == 200
        assert response.json()["level"] == 1


class TestPrRoutes:
    def test_detect_prs(self, client, workout):
        response = client.post(
            "/api/v1/gamification/prs/detect",
            json={"workoutId": workout[0].id},
            headers=auth(),
        )

        assert response.status_code == 200
        assert response.json()["prCount"] == 1

    def test_other_users_workout(self, client, workout):
        response = client.post(
            "/api/v1/gamification/prs/detect",
            json={"workoutId": workout[0].id},
            headers=auth(sub="user-2"),
        )

        assert response.status_code == 403

    def test_unknown_workout(self, client):
        response = client.post(
            "/api/v1/gamification/prs/detect",
            json={"workoutId": "missing"},
            headers=auth(),
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "WORKOUT_NOT_FOUND"


class TestWeeklyRoutes:
    def test_track_week(self, client, workout):
        response = client.post(
            "/api/v1/gamification/activity/weekly",
            json={"userId": "user-1", "workoutId": workout[0].id, "timezone": "Europe/Madrid"},
            headers=auth(),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["activityWeek"]["workoutsCompleted"] == 1
        assert data["streaks"] == {"WEEKLY_ANY": 1}

    def test_open_workout(self, client, temp_db):
        open_workout = temp_db.record_workout("user-1", started_at=datetime.now(timezone.utc))

        response = client.post(
            "/api/v1/gamification/activity/weekly",
            json={"userId": "user-1", "workoutId": open_workout.id},
            headers=auth(),
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "WORKOUT_NOT_FINISHED"


class TestBadgeRoutes:
    def test_unlock_badges(self, client, workout):
        response = client.post(
            "/api/v1/gamification/badges/unlock",
            json={"userId": "user-1"},
            headers=auth(),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["badgeCount"] == 1
        assert data["newBadges"][0]["code"] == "FIRST_WORKOUT"

    def test_rust_check(self, client):
        response = client.post(
            "/api/v1/gamification/badges/rust-check",
            json={"userId": "user-1"},
            headers=auth(),
        )

        assert response.status_code == 200
        assert response.json()["checkedBadges"] == 0

    def test_polish_unknown_badge(self, client):
        response = client.post(
            "/api/v1/gamification/badges/polish",
            json={"userId": "user-1", "achievementCode": "FIRST_WORKOUT"},
            headers=auth(),
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "BADGE_NOT_FOUND"


class TestPipelineRoutes:
    def test_process_workout(self, client, workout):
        response = client.post(
            "/api/v1/gamification/workouts/process",
            json={"userId": "user-1", "workoutId": workout[0].id},
            headers=auth(),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["xpAwarded"] == 70
        assert len(data["prs"]) == 1
        assert [b["code"] for b in data["newBadges"]] == ["FIRST_WORKOUT", "FIRST_PR"]
        assert data["errors"] == []

    def test_progress(self, client, workout):
        client.post(
            "/api/v1/gamification/workouts/process",
            json={"userId": "user-1", "workoutId": workout[0].id},
            headers=auth(),
        )

        response = client.get("/api/v1/gamification/progress", headers=auth())

        assert response.status_code == 200
        data = response.json()
        assert data["level"]["totalXp"] == 70
        assert data["activeStreaks"][0]["streakType"] == "WEEKLY_ANY"
        assert len(data["badges"]) == 2
        assert len(data["recentWeeks"]) == 1

    def test_progress_for_another_user(self, client):
        response = client.get(
            "/api/v1/gamification/progress",
            params={"userId": "user-1"},
            headers=auth(sub="user-2"),
        )

        assert response.status_code == 403


class TestRootEndpoints:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


class TestErrorMapping:
    def test_database_failure(self, client):
        broken = MagicMock()
        broken.calculate_level.side_effect = sqlite3.OperationalError("database is locked")
        app.dependency_overrides[get_level_service] = lambda: broken

        response = client.post(
            "/api/v1/gamification/level/calculate",
            json={"userId": "user-1"},
            headers=auth(),
        )

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "DATABASE_ERROR"
        assert "locked" not in response.text
