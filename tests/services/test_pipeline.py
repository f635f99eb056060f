"""
Tests for the finished-workout gamification pipeline.

Tests cover:
- A first workout end to end
- Replays and level-ups
- Best-effort stages
- Validation before any stage runs
"""

from datetime import timedelta
from unittest.mock import patch

import pytest

from liftforge.exceptions import ForbiddenError, WorkoutNotFinishedError, WorkoutNotFoundError
from liftforge.services.pipeline import GamificationPipeline


@pytest.fixture
def pipeline(temp_db, clock):
    return GamificationPipeline(temp_db, clock=clock)


class TestFirstWorkout:
    """A single set of bench press as the user's first workout."""

    @pytest.fixture
    def summary(self, pipeline, make_workout, bench, clock):
        workout, _ = make_workout("u1", clock() - timedelta(hours=1), sets=[(bench.id, 100, 5)])
        return pipeline.process_workout("u1", workout.id)

    def test_xp_and_level(self, summary):
        assert summary.xp_awarded == 60
        assert summary.level.level == 1
        assert summary.level.total_xp == 60
        assert summary.level_up is False

    def test_pr(self, summary):
        assert len(summary.prs) == 1
        assert summary.prs[0].previous_pr == 0.0

    def test_week(self, summary):
        assert summary.activity_week.week_start == "2024-01-08"
        assert summary.activity_week.workouts_completed == 1
        assert summary.streaks == {"WEEKLY_ANY": 1}

    def test_badges(self, summary):
        assert [b.code for b in summary.new_badges] == ["FIRST_WORKOUT", "FIRST_PR"]
        assert summary.polished == []
        assert summary.errors == []

    def test_notifications(self, summary, temp_db):
        types = sorted(n.type for n in temp_db.get_notifications("u1"))
        assert types == ["ACHIEVEMENT", "ACHIEVEMENT", "PR"]

    def test_camel_case_output(self, summary):
        data = summary.model_dump(by_alias=True)

        assert data["xpAwarded"] == 60
        assert data["activityWeek"]["workoutsCompleted"] == 1
        assert data["newBadges"][0]["earnedAt"]


class TestReplay:
    def test_second_run_adds_nothing(self, pipeline, make_workout, bench, clock):
        workout, _ = make_workout("u1", clock() - timedelta(hours=1), sets=[(bench.id, 100, 5)])

        pipeline.process_workout("u1", workout.id)
        again = pipeline.process_workout("u1", workout.id)

        assert again.xp_awarded == 0
        assert again.level.total_xp == 60
        assert len(again.prs) == 1
        assert again.activity_week.workouts_completed == 1
        assert again.new_badges == []

    def test_level_up(self, pipeline, make_workout, add_xp, bench, clock):
        add_xp("u1", 90, clock() - timedelta(days=2))
        workout, _ = make_workout("u1", clock() - timedelta(hours=1), sets=[(bench.id, 100, 5)])

        summary = pipeline.process_workout("u1", workout.id)

        assert summary.level.level == 2
        assert summary.level_up is True

    def test_workout_without_sets(self, pipeline, make_workout, clock):
        workout, _ = make_workout("u1", clock() - timedelta(hours=1))

        summary = pipeline.process_workout("u1", workout.id)

        assert summary.xp_awarded == 0
        assert summary.activity_week.total_sets == 0
        assert [b.code for b in summary.new_badges] == ["FIRST_WORKOUT"]

    def test_rusty_badge_polished_by_workout(self, pipeline, add_badge, make_workout, clock):
        add_badge("u1", "FIRST_WORKOUT", clock() - timedelta(days=40), is_rusty=True)
        workout, _ = make_workout("u1", clock() - timedelta(hours=1))

        summary = pipeline.process_workout("u1", workout.id)

        assert summary.polished == ["FIRST_WORKOUT"]


class TestBestEffort:
    def test_failed_stage_is_reported(self, pipeline, make_workout, bench, clock):
        workout, _ = make_workout("u1", clock() - timedelta(hours=1), sets=[(bench.id, 100, 5)])

        with patch.object(pipeline.prs, "detect_prs", side_effect=RuntimeError("index missing")):
            summary = pipeline.process_workout("u1", workout.id)

        assert summary.xp_awarded == 60
        assert summary.prs == []
        assert summary.activity_week.workouts_completed == 1
        assert [b.code for b in summary.new_badges] == ["FIRST_WORKOUT"]
        assert len(summary.errors) == 1
        error = summary.errors[0]
        assert error.stage == "detect_prs"
        assert error.code == "INTERNAL_ERROR"
        assert error.message == "index missing"

    def test_invalid_timezone_only_fails_weekly_stage(self, pipeline, make_workout, bench, clock):
        workout, _ = make_workout("u1", clock() - timedelta(hours=1), sets=[(bench.id, 100, 5)])

        summary = pipeline.process_workout("u1", workout.id, timezone="Nowhere/Special")

        assert summary.xp_awarded == 60
        assert summary.activity_week is None
        assert [e.stage for e in summary.errors] == ["track_weekly_activity"]
        assert summary.errors[0].code == "VALIDATION_ERROR"


class TestValidation:
    def test_missing_workout(self, pipeline):
        with pytest.raises(WorkoutNotFoundError):
            pipeline.process_workout("u1", "missing")

    def test_other_users_workout(self, pipeline, make_workout, clock):
        workout, _ = make_workout("u1", clock())

        with pytest.raises(ForbiddenError):
            pipeline.process_workout("u2", workout.id)

    def test_open_workout(self, pipeline, temp_db, clock):
        workout = temp_db.record_workout("u1", started_at=clock())

        with pytest.raises(WorkoutNotFinishedError):
            pipeline.process_workout("u1", workout.id)
