"""Tests for badge rust and polish."""

from datetime import datetime, timedelta, timezone

import pytest

from liftforge.exceptions import BadgeNotFoundError
from liftforge.services.rust_service import BadgeRustService, days_since


@pytest.fixture
def service(temp_db, clock):
    return BadgeRustService(temp_db, clock=clock)


class TestDaysSince:
    def test_whole_days_floored(self):
        now = datetime(2024, 1, 25, 11, 59, tzinfo=timezone.utc)
        assert days_since(now, "2024-01-10T12:00:00+00:00") == 14

    def test_exact_days(self):
        now = datetime(2024, 1, 25, 12, 0, tzinfo=timezone.utc)
        assert days_since(now, "2024-01-10T12:00:00+00:00") == 15


class TestCheckRust:
    """Tests for rust transitions."""

    def test_no_badges(self, service):
        result = service.check_rust("u1")

        assert result.updates == []
        assert result.checked_badges == 0

    def test_within_threshold_stays_shiny(self, service, add_badge, clock):
        add_badge("u1", "FIRST_WORKOUT", clock())
        clock.advance(days=14)

        result = service.check_rust("u1")

        assert result.updates == []
        assert result.checked_badges == 1

    def test_past_threshold_rusts(self, service, temp_db, add_badge, clock):
        add_badge("u1", "FIRST_WORKOUT", clock())
        clock.advance(days=15)

        result = service.check_rust("u1")

        assert result.newly_rusted == ["FIRST_WORKOUT"]
        update = result.updates[0]
        assert update.was_rusty is False
        assert update.is_now_rusty is True
        assert update.days_since_activity == 15
        assert temp_db.get_user_badge("u1", "FIRST_WORKOUT").is_rusty

    def test_thresholds_differ_by_family(self, service, add_badge, clock):
        add_badge("u1", "FIRST_WORKOUT", clock())
        add_badge("u1", "FIRST_PR", clock())
        add_badge("u1", "CHEST_MASTER", clock())
        clock.advance(days=22)

        result = service.check_rust("u1")

        assert sorted(result.newly_rusted) == ["CHEST_MASTER", "FIRST_WORKOUT"]
        assert result.checked_badges == 3

    def test_permanent_badges_never_rust(self, service, add_badge, clock):
        add_badge("u1", "PERFECT_WEEK_5", clock())
        add_badge("u1", "VOLUME_10000KG", clock())
        clock.advance(days=365)

        assert service.check_rust("u1").updates == []

    def test_second_check_is_quiet(self, service, temp_db, add_badge, clock):
        add_badge("u1", "FIRST_WORKOUT", clock())
        clock.advance(days=20)

        service.check_rust("u1")
        again = service.check_rust("u1")

        assert again.updates == []
        assert len(temp_db.get_notifications("u1", notification_type="BADGE_RUST")) == 1

    def test_unmaintained_badge_uses_last_workout(self, service, temp_db, add_badge, make_workout, clock):
        add_badge("u1", "FIRST_WORKOUT", clock() - timedelta(days=60))
        with temp_db.connection() as conn:
            conn.execute("UPDATE user_badges SET last_maintained_at = NULL")
        make_workout("u1", clock() - timedelta(days=3))

        assert service.check_rust("u1").updates == []

    def test_rusty_badge_with_fresh_activity_is_polished(self, service, temp_db, add_badge, clock):
        add_badge("u1", "FIRST_WORKOUT", clock(), is_rusty=True)

        result = service.check_rust("u1")

        assert result.polished == ["FIRST_WORKOUT"]
        notifications = temp_db.get_notifications("u1", notification_type="BADGE_POLISHED")
        assert notifications[0].body == "1 badge is shiny again!"

    def test_rust_notification_text(self, service, temp_db, add_badge, clock):
        add_badge("u1", "FIRST_WORKOUT", clock())
        add_badge("u1", "WORKOUT_10", clock())
        clock.advance(days=15)

        service.check_rust("u1")

        notification = temp_db.get_notifications("u1", notification_type="BADGE_RUST")[0]
        assert notification.title == "Badges Need Attention"
        assert notification.body == "2 badges have become rusty. Work out to polish them!"
        assert notification.metadata == {"badges": ["FIRST_WORKOUT", "WORKOUT_10"]}


class TestPolishBadge:
    def test_polish_restarts_timer(self, service, temp_db, add_badge, clock):
        add_badge("u1", "FIRST_WORKOUT", clock())
        clock.advance(days=20)
        service.check_rust("u1")

        result = service.polish_badge("u1", "FIRST_WORKOUT")

        assert result.is_rusty is False
        badge = temp_db.get_user_badge("u1", "FIRST_WORKOUT")
        assert not badge.is_rusty
        assert badge.last_maintained_at == result.last_maintained_at

        clock.advance(days=14)
        assert service.check_rust("u1").updates == []

    def test_unknown_badge(self, service):
        with pytest.raises(BadgeNotFoundError):
            service.polish_badge("u1", "FIRST_WORKOUT")


class TestPolishAfterWorkout:
    """Which badges a workout maintains."""

    def test_workout_restores_rusty_badges(self, service, temp_db, add_badge, make_workout, clock):
        add_badge("u1", "FIRST_WORKOUT", clock() - timedelta(days=30), is_rusty=True)
        add_badge("u1", "WORKOUT_10", clock() - timedelta(days=30))
        workout, _ = make_workout("u1", clock())

        restored = service.polish_after_workout("u1", workout.id)

        assert restored == ["FIRST_WORKOUT"]
        for code in ("FIRST_WORKOUT", "WORKOUT_10"):
            badge = temp_db.get_user_badge("u1", code)
            assert not badge.is_rusty
            assert badge.last_maintained_at == "2024-01-10T12:00:00.000000+00:00"

    def test_pr_badges_need_a_record(self, service, temp_db, add_badge, make_workout, clock):
        add_badge("u1", "FIRST_PR", clock() - timedelta(days=40), is_rusty=True)
        workout, _ = make_workout("u1", clock())

        assert service.polish_after_workout("u1", workout.id) == []
        assert temp_db.get_user_badge("u1", "FIRST_PR").is_rusty

        assert service.polish_after_workout("u1", workout.id, set_pr=True) == ["FIRST_PR"]

    def test_muscle_badges_need_that_group(self, service, temp_db, add_badge, make_workout, bench, squat, clock):
        add_badge("u1", "CHEST_MASTER", clock() - timedelta(days=30), is_rusty=True)
        add_badge("u1", "LEG_MASTER", clock() - timedelta(days=30), is_rusty=True)
        workout, _ = make_workout("u1", clock(), sets=[(squat.id, 140, 5)])

        restored = service.polish_after_workout("u1", workout.id)

        assert restored == ["LEG_MASTER"]
        assert temp_db.get_user_badge("u1", "CHEST_MASTER").is_rusty
