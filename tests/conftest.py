"""Shared fixtures for LiftForge tests."""

import os
import tempfile
from datetime import datetime, timedelta, timezone

import pytest

from liftforge.db.database import GamificationDatabase, new_id
from liftforge.metrics.calendar import to_iso


# Wednesday; the surrounding ISO week starts on Monday 2024-01-08
NOW = datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Clock the tests can move forward."""

    def __init__(self, now: datetime = NOW):
        self.current = now

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current


@pytest.fixture
def temp_db():
    """Create a temporary database with the default achievements."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = f.name

    db = GamificationDatabase(db_path)
    db.seed_achievements()
    yield db

    # Cleanup
    for suffix in ("", "-wal", "-shm", "-journal"):
        try:
            os.unlink(db_path + suffix)
        except OSError:
            pass


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def bench(temp_db):
    return temp_db.add_exercise("Bench Press", muscle_group="CHEST", exercise_id="bench")


@pytest.fixture
def squat(temp_db):
    return temp_db.add_exercise("Back Squat", muscle_group="LEGS", exercise_id="squat")


def finished_workout(db, user_id, started_at, sets=(), minutes=60, local_timezone=None, workout_id=None):
    """Record a finished workout with (exercise_id, weight_kg, reps) sets."""
    workout = db.record_workout(
        user_id,
        started_at=started_at,
        ended_at=started_at + timedelta(minutes=minutes),
        local_timezone=local_timezone,
        workout_id=workout_id,
    )
    recorded = [
        db.add_set(workout.id, exercise_id, weight, reps, created_at=started_at)
        for exercise_id, weight, reps in sets
    ]
    return workout, recorded


def log_xp(db, user_id, amount, created_at, source_type="BONUS", source_id=None):
    """Append a raw ledger row, bypassing the caps."""
    with db.connection() as conn:
        conn.execute(
            """
            INSERT INTO user_xp_logs (id, user_id, source_type, source_id, xp_amount, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (new_id(), user_id, source_type, source_id or new_id(), amount, to_iso(created_at)),
        )


def grant_badge(db, user_id, code, earned_at, last_maintained_at=None, is_rusty=False):
    """Insert a held badge directly."""
    stamp = to_iso(earned_at)
    maintained = to_iso(last_maintained_at) if last_maintained_at else stamp
    with db.connection() as conn:
        conn.execute(
            """
            INSERT INTO user_badges
            (id, user_id, achievement_code, earned_at, is_rusty, last_maintained_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (new_id(), user_id, code, stamp, int(is_rusty), maintained),
        )


@pytest.fixture
def make_workout(temp_db):
    """Record finished workouts: make_workout(user_id, started_at, sets=...)."""

    def _make(user_id, started_at, sets=(), **kwargs):
        return finished_workout(temp_db, user_id, started_at, sets=sets, **kwargs)

    return _make


@pytest.fixture
def add_xp(temp_db):
    def _add(user_id, amount, created_at, **kwargs):
        log_xp(temp_db, user_id, amount, created_at, **kwargs)

    return _add


@pytest.fixture
def add_badge(temp_db):
    def _add(user_id, code, earned_at, **kwargs):
        grant_badge(temp_db, user_id, code, earned_at, **kwargs)

    return _add
