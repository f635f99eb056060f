"""SQLite database for workouts and gamification state."""

import json
import sqlite3
import threading
import uuid
import weakref
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence, Union

from ..config import get_settings
from ..exceptions import WorkoutNotFoundError
from ..metrics.calendar import parse_timestamp, to_iso, utc_now
from .schema import SCHEMA
from .seeds import DEFAULT_ACHIEVEMENTS


Timestamp = Union[str, datetime]


def _ts(value: Optional[Timestamp]) -> Optional[str]:
    if value is None:
        return None
    return to_iso(parse_timestamp(value))


def new_id() -> str:
    return str(uuid.uuid4())


# ============================================================================
# Row types
# ============================================================================

@dataclass
class Exercise:
    """Exercise library entry."""

    id: str
    name: str
    muscle_group: Optional[str] = None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Exercise":
        return cls(id=row["id"], name=row["name"], muscle_group=row["muscle_group"])


@dataclass
class Workout:
    """A training session. Finished once ended_at is set."""

    id: str
    user_id: str
    started_at: str
    name: Optional[str] = None
    ended_at: Optional[str] = None
    local_timezone: Optional[str] = None
    deleted_at: Optional[str] = None

    @property
    def is_finished(self) -> bool:
        return self.ended_at is not None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Workout":
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            name=row["name"],
            started_at=row["started_at"],
            ended_at=row["ended_at"],
            local_timezone=row["local_timezone"],
            deleted_at=row["deleted_at"],
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "started_at": self.started_at,
            "ended_at": self.ended_at,
            "local_timezone": self.local_timezone,
        }


@dataclass
class WorkoutSet:
    """One performed set of an exercise."""

    id: str
    workout_id: str
    user_id: str
    exercise_id: str
    weight_kg: Optional[float]
    reps: Optional[int]
    is_pr: bool = False
    set_order_index: int = 0
    created_at: Optional[str] = None
    deleted_at: Optional[str] = None

    @property
    def volume_kg(self) -> float:
        if not self.weight_kg or not self.reps:
            return 0.0
        return max(0.0, self.weight_kg * self.reps)

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "WorkoutSet":
        return cls(
            id=row["id"],
            workout_id=row["workout_id"],
            user_id=row["user_id"],
            exercise_id=row["exercise_id"],
            weight_kg=row["weight_kg"],
            reps=row["reps"],
            is_pr=bool(row["is_pr"]),
            set_order_index=row["set_order_index"],
            created_at=row["created_at"],
            deleted_at=row["deleted_at"],
        )


@dataclass
class Achievement:
    """Badge definition."""

    code: str
    title: str
    description: Optional[str] = None
    icon_url: Optional[str] = None
    threshold_value: Optional[int] = None
    relevant_muscle_group: Optional[str] = None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Achievement":
        return cls(
            code=row["code"],
            title=row["title"],
            description=row["description"],
            icon_url=row["icon_url"],
            threshold_value=row["threshold_value"],
            relevant_muscle_group=row["relevant_muscle_group"],
        )


@dataclass
class UserBadge:
    """A badge held by a user."""

    id: str
    user_id: str
    achievement_code: str
    earned_at: str
    is_rusty: bool = False
    last_maintained_at: Optional[str] = None
    deleted_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "UserBadge":
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            achievement_code=row["achievement_code"],
            earned_at=row["earned_at"],
            is_rusty=bool(row["is_rusty"]),
            last_maintained_at=row["last_maintained_at"],
            deleted_at=row["deleted_at"],
        )

    def to_dict(self) -> dict:
        return {
            "achievement_code": self.achievement_code,
            "earned_at": self.earned_at,
            "is_rusty": self.is_rusty,
            "last_maintained_at": self.last_maintained_at,
        }


@dataclass
class ActivityWeek:
    """Per-user weekly workout aggregate."""

    id: str
    user_id: str
    week_start: str
    active_days: int = 0
    workouts_completed: int = 0
    total_sets: int = 0
    total_volume_kg: float = 0.0

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "ActivityWeek":
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            week_start=row["week_start"],
            active_days=row["active_days"],
            workouts_completed=row["workouts_completed"],
            total_sets=row["total_sets"],
            total_volume_kg=row["total_volume_kg"],
        )

    def to_dict(self) -> dict:
        return {
            "week_start": self.week_start,
            "active_days": self.active_days,
            "workouts_completed": self.workouts_completed,
            "total_sets": self.total_sets,
            "total_volume_kg": self.total_volume_kg,
        }


@dataclass
class StreakLog:
    """Run of consecutive qualifying weeks for one streak category."""

    id: str
    user_id: str
    streak_type: str
    streak_length: int
    week_ended: str
    is_active: bool = True

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "StreakLog":
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            streak_type=row["streak_type"],
            streak_length=row["streak_length"],
            week_ended=row["week_ended"],
            is_active=bool(row["is_active"]),
        )


@dataclass
class Notification:
    """Notification record waiting for the push dispatcher."""

    id: str
    recipient_id: str
    type: str
    title: str
    body: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    read_at: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Notification":
        return cls(
            id=row["id"],
            recipient_id=row["recipient_id"],
            type=row["type"],
            title=row["title"],
            body=row["body"],
            metadata=json.loads(row["metadata"] or "{}"),
            read_at=row["read_at"],
            created_at=row["created_at"],
        )


def get_default_db_path() -> Path:
    """Get the default database path from settings."""
    return Path(get_settings().database_path)


class GamificationDatabase:
    """SQLite database manager for workouts and gamification tables."""

    def __init__(self, db_path: Optional[Union[str, Path]] = None, timeout: float = 30.0):
        """
        Initialize the database.

        Args:
            db_path: Path to SQLite database file. If not provided,
                     uses the configured database path.
            timeout: Seconds a writer waits for a competing write lock
        """
        if db_path:
            self.db_path = Path(db_path)
        else:
            self.db_path = get_default_db_path()
        self.timeout = timeout

        # Entries vanish once no thread holds or waits on the lock
        self._locks: "weakref.WeakValueDictionary[str, threading.Lock]" = weakref.WeakValueDictionary()
        self._locks_guard = threading.Lock()

        self._init_db()

    def _init_db(self):
        """Initialize database tables."""
        with self._get_connection() as conn:
            conn.executescript(SCHEMA)

    def _connect(self, **kwargs) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=self.timeout, **kwargs)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _get_connection(self):
        """Get database connection with context manager."""
        conn = self._connect()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def connection(self):
        """Short-lived connection for reads outside a write transaction."""
        return self._get_connection()

    @contextmanager
    def _use(self, conn: Optional[sqlite3.Connection]):
        """Reuse the caller's connection or open a short-lived one."""
        if conn is not None:
            yield conn
        else:
            with self._get_connection() as own:
                yield own

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """
        Open a write transaction with BEGIN IMMEDIATE.

        The write lock is taken up front, so two processes running the same
        read-modify-write serialise instead of both reading stale totals.
        """
        conn = self._connect(isolation_level=None)
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except Exception:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")
        finally:
            conn.close()

    @contextmanager
    def user_lock(self, user_id: str) -> Iterator[None]:
        """Hold the in-process lock for one user's gamification state."""
        with self._locks_guard:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[user_id] = lock
        with lock:
            yield

    @contextmanager
    def user_transaction(self, user_id: str) -> Iterator[sqlite3.Connection]:
        """Per-user lock plus an immediate write transaction."""
        with self.user_lock(user_id), self.transaction() as conn:
            yield conn

    # === Recording Methods (used by the sync flow and tests) ===

    def add_exercise(
        self,
        name: str,
        muscle_group: Optional[str] = None,
        exercise_id: Optional[str] = None,
    ) -> Exercise:
        exercise = Exercise(id=exercise_id or new_id(), name=name, muscle_group=muscle_group)
        with self._get_connection() as conn:
            conn.execute(
                "INSERT INTO exercises (id, name, muscle_group) VALUES (?, ?, ?)",
                (exercise.id, exercise.name, exercise.muscle_group),
            )
        return exercise

    def record_workout(
        self,
        user_id: str,
        started_at: Timestamp,
        ended_at: Optional[Timestamp] = None,
        name: Optional[str] = None,
        local_timezone: Optional[str] = None,
        workout_id: Optional[str] = None,
    ) -> Workout:
        """Insert a workout. Pass ended_at to record it as finished."""
        workout = Workout(
            id=workout_id or new_id(),
            user_id=user_id,
            name=name,
            started_at=_ts(started_at),
            ended_at=_ts(ended_at),
            local_timezone=local_timezone,
        )
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO workouts (id, user_id, name, started_at, ended_at, local_timezone)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    workout.id,
                    workout.user_id,
                    workout.name,
                    workout.started_at,
                    workout.ended_at,
                    workout.local_timezone,
                ),
            )
        return workout

    def finish_workout(self, workout_id: str, ended_at: Optional[Timestamp] = None) -> Workout:
        with self._get_connection() as conn:
            cursor = conn.execute(
                "UPDATE workouts SET ended_at = ? WHERE id = ? AND deleted_at IS NULL",
                (_ts(ended_at or utc_now()), workout_id),
            )
            if cursor.rowcount == 0:
                raise WorkoutNotFoundError(workout_id)
        return self.get_workout(workout_id)

    def add_set(
        self,
        workout_id: str,
        exercise_id: str,
        weight_kg: Optional[float],
        reps: Optional[int],
        set_order_index: Optional[int] = None,
        set_id: Optional[str] = None,
        created_at: Optional[Timestamp] = None,
    ) -> WorkoutSet:
        """Insert a set; the owner is copied from the workout."""
        with self._get_connection() as conn:
            workout = self.get_workout(workout_id, conn=conn)
            if workout is None:
                raise WorkoutNotFoundError(workout_id)

            if set_order_index is None:
                row = conn.execute(
                    "SELECT COUNT(*) AS n FROM workout_sets WHERE workout_id = ?",
                    (workout_id,),
                ).fetchone()
                set_order_index = row["n"]

            workout_set = WorkoutSet(
                id=set_id or new_id(),
                workout_id=workout_id,
                user_id=workout.user_id,
                exercise_id=exercise_id,
                weight_kg=weight_kg,
                reps=reps,
                set_order_index=set_order_index,
                created_at=_ts(created_at or utc_now()),
            )
            conn.execute(
                """
                INSERT INTO workout_sets
                (id, workout_id, user_id, exercise_id, weight_kg, reps, set_order_index, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    workout_set.id,
                    workout_set.workout_id,
                    workout_set.user_id,
                    workout_set.exercise_id,
                    workout_set.weight_kg,
                    workout_set.reps,
                    workout_set.set_order_index,
                    workout_set.created_at,
                ),
            )
        return workout_set

    def soft_delete_workout(self, workout_id: str) -> bool:
        with self._get_connection() as conn:
            cursor = conn.execute(
                "UPDATE workouts SET deleted_at = ? WHERE id = ? AND deleted_at IS NULL",
                (to_iso(utc_now()), workout_id),
            )
            return cursor.rowcount > 0

    def soft_delete_set(self, set_id: str) -> bool:
        with self._get_connection() as conn:
            cursor = conn.execute(
                "UPDATE workout_sets SET deleted_at = ? WHERE id = ? AND deleted_at IS NULL",
                (to_iso(utc_now()), set_id),
            )
            return cursor.rowcount > 0

    # === Workout Reads ===

    def get_workout(
        self,
        workout_id: str,
        conn: Optional[sqlite3.Connection] = None,
        include_deleted: bool = False,
    ) -> Optional[Workout]:
        query = "SELECT * FROM workouts WHERE id = ?"
        if not include_deleted:
            query += " AND deleted_at IS NULL"
        with self._use(conn) as c:
            row = c.execute(query, (workout_id,)).fetchone()
        return Workout.from_row(row) if row else None

    def get_sets(
        self,
        set_ids: Sequence[str],
        conn: Optional[sqlite3.Connection] = None,
    ) -> List[WorkoutSet]:
        """Non-deleted sets for the given ids, in input order."""
        if not set_ids:
            return []
        placeholders = ",".join("?" for _ in set_ids)
        with self._use(conn) as c:
            rows = c.execute(
                f"SELECT * FROM workout_sets WHERE id IN ({placeholders}) AND deleted_at IS NULL",
                list(set_ids),
            ).fetchall()
        by_id = {row["id"]: WorkoutSet.from_row(row) for row in rows}
        return [by_id[set_id] for set_id in dict.fromkeys(set_ids) if set_id in by_id]

    def get_workout_sets(
        self,
        workout_id: str,
        conn: Optional[sqlite3.Connection] = None,
    ) -> List[WorkoutSet]:
        with self._use(conn) as c:
            rows = c.execute(
                """
                SELECT * FROM workout_sets
                WHERE workout_id = ? AND deleted_at IS NULL
                ORDER BY set_order_index, created_at
                """,
                (workout_id,),
            ).fetchall()
        return [WorkoutSet.from_row(row) for row in rows]

    def get_exercise(self, exercise_id: str, conn: Optional[sqlite3.Connection] = None) -> Optional[Exercise]:
        with self._use(conn) as c:
            row = c.execute(
                "SELECT * FROM exercises WHERE id = ? AND deleted_at IS NULL",
                (exercise_id,),
            ).fetchone()
        return Exercise.from_row(row) if row else None

    # === Achievements & Badges ===

    def seed_achievements(self, achievements: Optional[List[Dict[str, Any]]] = None) -> int:
        """
        Insert badge definitions that are not present yet.

        Args:
            achievements: Definitions to seed (defaults to DEFAULT_ACHIEVEMENTS)

        Returns:
            Number of definitions inserted
        """
        definitions = DEFAULT_ACHIEVEMENTS if achievements is None else achievements
        inserted = 0
        with self._get_connection() as conn:
            for definition in definitions:
                cursor = conn.execute(
                    """
                    INSERT OR IGNORE INTO achievements
                    (code, title, description, icon_url, threshold_value, relevant_muscle_group)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        definition["code"],
                        definition["title"],
                        definition.get("description"),
                        definition.get("icon_url"),
                        definition.get("threshold_value"),
                        definition.get("relevant_muscle_group"),
                    ),
                )
                inserted += cursor.rowcount
        return inserted

    def get_achievements(self, conn: Optional[sqlite3.Connection] = None) -> List[Achievement]:
        with self._use(conn) as c:
            rows = c.execute("SELECT * FROM achievements ORDER BY rowid").fetchall()
        return [Achievement.from_row(row) for row in rows]

    def get_achievement(self, code: str, conn: Optional[sqlite3.Connection] = None) -> Optional[Achievement]:
        with self._use(conn) as c:
            row = c.execute("SELECT * FROM achievements WHERE code = ?", (code,)).fetchone()
        return Achievement.from_row(row) if row else None

    def get_user_badges(
        self,
        user_id: str,
        conn: Optional[sqlite3.Connection] = None,
    ) -> List[UserBadge]:
        with self._use(conn) as c:
            rows = c.execute(
                """
                SELECT * FROM user_badges
                WHERE user_id = ? AND deleted_at IS NULL
                ORDER BY earned_at, rowid
                """,
                (user_id,),
            ).fetchall()
        return [UserBadge.from_row(row) for row in rows]

    def get_user_badge(
        self,
        user_id: str,
        achievement_code: str,
        conn: Optional[sqlite3.Connection] = None,
    ) -> Optional[UserBadge]:
        with self._use(conn) as c:
            row = c.execute(
                """
                SELECT * FROM user_badges
                WHERE user_id = ? AND achievement_code = ? AND deleted_at IS NULL
                """,
                (user_id, achievement_code),
            ).fetchone()
        return UserBadge.from_row(row) if row else None

    # === Notifications ===

    def get_notifications(
        self,
        recipient_id: str,
        notification_type: Optional[str] = None,
        limit: int = 50,
    ) -> List[Notification]:
        query = "SELECT * FROM notifications WHERE recipient_id = ? AND deleted_at IS NULL"
        params: List[Any] = [recipient_id]
        if notification_type:
            query += " AND type = ?"
            params.append(notification_type)
        query += " ORDER BY created_at DESC, rowid DESC LIMIT ?"
        params.append(limit)

        with self._get_connection() as conn:
            rows = conn.execute(query, params).fetchall()
        return [Notification.from_row(row) for row in rows]
