"""Weekly activity and streak tracking.

Each finished workout is folded into the aggregate for its local week
(weeks start on Monday in the workout's timezone). Streaks count
consecutive qualifying weeks per category and break on any gap.
"""

import sqlite3
from datetime import date, timedelta
from typing import Dict, List, Optional
from zoneinfo import ZoneInfo

from ..db.database import ActivityWeek, StreakLog, Workout, new_id
from ..exceptions import ForbiddenError, ValidationError, WorkoutNotFinishedError, WorkoutNotFoundError
from ..metrics.calendar import days_between, local_date, resolve_timezone, to_iso, week_start_for
from ..models.gamification import ActivityWeekInfo, StreakInfo, WeeklyActivityResult
from .base import BaseService


def week_info(week: ActivityWeek) -> ActivityWeekInfo:
    return ActivityWeekInfo(
        week_start=week.week_start,
        active_days=week.active_days,
        workouts_completed=week.workouts_completed,
        total_sets=week.total_sets,
        total_volume_kg=round(week.total_volume_kg, 2),
    )


class WeeklyActivityService(BaseService):
    """Maintains weekly aggregates and weekly streaks."""

    def track(
        self,
        user_id: str,
        workout_id: str,
        timezone: Optional[str] = None,
    ) -> WeeklyActivityResult:
        """
        Fold a finished workout into its week and update streaks.

        Tracking the same workout twice leaves the totals and streaks as
        they were after the first call.

        Args:
            user_id: Workout owner
            workout_id: Finished workout to count
            timezone: IANA zone used when the workout has none stored

        Returns:
            WeeklyActivityResult with the week, qualifying streak lengths
            and the perfect-week codes this week meets

        Raises:
            ValidationError: On empty ids, unknown timezone or an open workout
            WorkoutNotFoundError: If the workout does not exist
            ForbiddenError: If the workout belongs to someone else
        """
        self._require(user_id, "userId")
        self._require(workout_id, "workoutId")

        workout = self.db.get_workout(workout_id)
        if workout is None:
            raise WorkoutNotFoundError(workout_id)
        if workout.user_id != user_id:
            raise ForbiddenError("Workout belongs to another user", details={"workout_id": workout_id})
        if not workout.is_finished:
            raise WorkoutNotFinishedError(workout_id)

        label = workout.local_timezone or timezone or self.default_timezone
        try:
            tz = resolve_timezone(label)
        except ValueError as e:
            raise ValidationError(str(e), field="timezone") from e

        week_start = week_start_for(workout.started_at, tz)

        with self.db.user_transaction(user_id) as conn:
            week = self._count_workout(conn, workout, week_start, tz)
            streaks = self._update_streaks(conn, user_id, week)

        perfect = [
            code
            for code, threshold in self.policy.perfect_week_thresholds
            if week.workouts_completed >= threshold
        ]

        return WeeklyActivityResult(
            activity_week=week_info(week),
            streaks=streaks,
            perfect_week_badges=perfect,
        )

    # ------------------------------------------------------------------
    # Weekly aggregate
    # ------------------------------------------------------------------

    def _count_workout(
        self,
        conn: sqlite3.Connection,
        workout: Workout,
        week_start: date,
        tz: ZoneInfo,
    ) -> ActivityWeek:
        user_id = workout.user_id
        week_key = week_start.isoformat()
        now = to_iso(self.now())

        conn.execute(
            """
            INSERT OR IGNORE INTO user_activity_weeks (id, user_id, week_start, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (new_id(), user_id, week_key, now, now),
        )

        cursor = conn.execute(
            """
            INSERT OR IGNORE INTO user_activity_week_workouts (user_id, workout_id, week_start, counted_at)
            VALUES (?, ?, ?, ?)
            """,
            (user_id, workout.id, week_key, now),
        )
        if cursor.rowcount == 1:
            sets = self.db.get_workout_sets(workout.id, conn=conn)
            volume = sum(s.volume_kg for s in sets)
            conn.execute(
                """
                UPDATE user_activity_weeks
                SET workouts_completed = workouts_completed + 1,
                    total_sets = total_sets + ?,
                    total_volume_kg = total_volume_kg + ?,
                    updated_at = ?
                WHERE user_id = ? AND week_start = ?
                """,
                (len(sets), volume, now, user_id, week_key),
            )
            self.logger.info(
                f"Week {week_key} for {user_id}: +1 workout, {len(sets)} sets, {volume:.1f} kg"
            )
        else:
            self.logger.debug(f"Workout {workout.id} already counted in week {week_key}")

        conn.execute(
            "UPDATE user_activity_weeks SET active_days = ? WHERE user_id = ? AND week_start = ?",
            (self._active_days(conn, user_id, week_start, tz), user_id, week_key),
        )

        row = conn.execute(
            "SELECT * FROM user_activity_weeks WHERE user_id = ? AND week_start = ?",
            (user_id, week_key),
        ).fetchone()
        return ActivityWeek.from_row(row)

    def _active_days(
        self,
        conn: sqlite3.Connection,
        user_id: str,
        week_start: date,
        tz: ZoneInfo,
    ) -> int:
        """Distinct local dates in the week with a non-deleted workout."""
        week_end = week_start + timedelta(days=7)
        # Pad the UTC window by a day on each side; the local-date filter is exact
        rows = conn.execute(
            """
            SELECT started_at FROM workouts
            WHERE user_id = ?
              AND deleted_at IS NULL
              AND started_at >= ? AND started_at < ?
            """,
            (
                user_id,
                (week_start - timedelta(days=1)).isoformat(),
                (week_end + timedelta(days=1)).isoformat(),
            ),
        ).fetchall()

        days = {local_date(row["started_at"], tz) for row in rows}
        return len([d for d in days if week_start <= d < week_end])

    # ------------------------------------------------------------------
    # Streaks
    # ------------------------------------------------------------------

    def _update_streaks(
        self,
        conn: sqlite3.Connection,
        user_id: str,
        week: ActivityWeek,
    ) -> Dict[str, int]:
        streaks: Dict[str, int] = {}
        week_start = date.fromisoformat(week.week_start)
        now = to_iso(self.now())

        for streak_type, threshold in self.policy.streak_thresholds:
            if week.workouts_completed < threshold:
                continue

            row = conn.execute(
                """
                SELECT * FROM user_streak_logs
                WHERE user_id = ? AND streak_type = ? AND is_active = 1
                """,
                (user_id, streak_type),
            ).fetchone()

            if row is None:
                streaks[streak_type] = self._start_streak(conn, user_id, streak_type, week.week_start, now)
                continue

            active = StreakLog.from_row(row)
            gap = days_between(week_start, date.fromisoformat(active.week_ended))

            if gap == 0:
                streaks[streak_type] = active.streak_length
            elif gap == 7:
                length = active.streak_length + 1
                conn.execute(
                    """
                    UPDATE user_streak_logs
                    SET streak_length = ?, week_ended = ?, updated_at = ?
                    WHERE id = ?
                    """,
                    (length, week.week_start, now, active.id),
                )
                self.logger.info(f"{streak_type} streak for {user_id} extended to {length} weeks")
                streaks[streak_type] = length
            else:
                conn.execute(
                    "UPDATE user_streak_logs SET is_active = 0, updated_at = ? WHERE id = ?",
                    (now, active.id),
                )
                self.logger.info(
                    f"{streak_type} streak for {user_id} broken after {active.streak_length} weeks"
                )
                streaks[streak_type] = self._start_streak(conn, user_id, streak_type, week.week_start, now)

        return streaks

    def _start_streak(
        self,
        conn: sqlite3.Connection,
        user_id: str,
        streak_type: str,
        week_start: str,
        now: str,
    ) -> int:
        conn.execute(
            """
            INSERT OR IGNORE INTO user_streak_logs
            (id, user_id, streak_type, streak_length, week_ended, is_active, created_at, updated_at)
            VALUES (?, ?, ?, 1, ?, 1, ?, ?)
            """,
            (new_id(), user_id, streak_type, week_start, now, now),
        )
        self.logger.info(f"{streak_type} streak started for {user_id} in week {week_start}")
        return 1

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_weeks(self, user_id: str, limit: int = 12) -> List[ActivityWeekInfo]:
        """Most recent weekly aggregates, newest first."""
        self._require(user_id, "userId")
        with self.db.connection() as conn:
            rows = conn.execute(
                """
                SELECT * FROM user_activity_weeks
                WHERE user_id = ?
                ORDER BY week_start DESC
                LIMIT ?
                """,
                (user_id, limit),
            ).fetchall()
        return [week_info(ActivityWeek.from_row(row)) for row in rows]

    def get_active_streaks(self, user_id: str) -> List[StreakInfo]:
        self._require(user_id, "userId")
        with self.db.connection() as conn:
            rows = conn.execute(
                """
                SELECT * FROM user_streak_logs
                WHERE user_id = ? AND is_active = 1
                ORDER BY streak_type
                """,
                (user_id,),
            ).fetchall()
        return [
            StreakInfo(
                streak_type=row["streak_type"],
                streak_length=row["streak_length"],
                week_ended=row["week_ended"],
            )
            for row in rows
        ]
