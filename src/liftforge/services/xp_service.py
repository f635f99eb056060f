"""XP ledger service.

Grants XP for completed sets and for finishing a workout. Each grant is an
append-only ledger row keyed by (user, source type, source id), so
replaying a request never grants twice. Grants stop at the per-workout and
per-day caps, and the last grant is clamped to the remaining room.
"""

import sqlite3
from datetime import datetime
from typing import List, Sequence, Set

from ..db.database import Workout, new_id
from ..exceptions import SetNotFoundError, ValidationError, WorkoutNotFoundError
from ..metrics.calendar import local_midnight_utc, resolve_timezone, to_iso
from ..models.gamification import AwardXpResult
from .base import BaseService
from .level_service import LevelService


SOURCE_SET = "SET"
SOURCE_WORKOUT = "WORKOUT"


class XpLedgerService(BaseService):
    """Appends capped, idempotent XP grants."""

    def award_xp(self, user_id: str, set_ids: Sequence[str]) -> AwardXpResult:
        """
        Award XP for completed sets of one workout.

        Sets the user does not own are ignored. If the sets span several
        workouts only the first set's workout is used. A finished workout
        also earns its one-time completion bonus.

        Args:
            user_id: User receiving the XP
            set_ids: Completed set ids (input order decides who gets XP
                     when a cap is hit)

        Returns:
            AwardXpResult with the XP granted and today's running total

        Raises:
            ValidationError: If user_id or set_ids is empty
            SetNotFoundError: If none of the sets exist for this user
        """
        self._require(user_id, "userId")
        if not set_ids:
            raise ValidationError("setIds must not be empty", field="setIds")

        policy = self.policy
        now = self.now()
        granted = 0

        with self.db.user_transaction(user_id) as conn:
            sets = [s for s in self.db.get_sets(set_ids, conn=conn) if s.user_id == user_id]
            if not sets:
                raise SetNotFoundError(list(set_ids))

            workout_id = sets[0].workout_id
            stray = [s.id for s in sets if s.workout_id != workout_id]
            if stray:
                self.logger.warning(
                    f"Ignoring {len(stray)} set(s) outside workout {workout_id} for {user_id}"
                )
                sets = [s for s in sets if s.workout_id == workout_id]

            workout = self.db.get_workout(workout_id, conn=conn, include_deleted=True)
            if workout is None:
                raise WorkoutNotFoundError(workout_id)

            daily_total = self._daily_total(conn, user_id, workout, now)
            if daily_total >= policy.daily_xp_cap:
                self.logger.info(f"Daily XP cap reached for {user_id} ({daily_total} XP)")
                return AwardXpResult(xp_awarded=0, today_total=daily_total)

            workout_total = self._workout_set_total(conn, user_id, workout_id)
            already_granted = self._granted_sources(conn, user_id, SOURCE_SET, [s.id for s in sets])
            created_at = to_iso(now)

            for workout_set in sets:
                if workout_set.id in already_granted:
                    continue
                daily_room = policy.daily_xp_cap - daily_total - granted
                workout_room = policy.workout_xp_cap - workout_total - granted
                if daily_room <= 0 or workout_room <= 0:
                    self.logger.debug(f"XP cap hit for workout {workout_id}, stopping grants")
                    break
                amount = min(policy.xp_per_set, daily_room, workout_room)
                if self._append(conn, user_id, SOURCE_SET, workout_set.id, amount, created_at):
                    granted += amount

            if workout.is_finished and policy.xp_workout_bonus > 0:
                bonus_room = policy.daily_xp_cap - daily_total - granted
                if bonus_room > 0 and not self._granted_sources(
                    conn, user_id, SOURCE_WORKOUT, [workout_id]
                ):
                    amount = min(policy.xp_workout_bonus, bonus_room)
                    if self._append(conn, user_id, SOURCE_WORKOUT, workout_id, amount, created_at):
                        granted += amount

        today_total = daily_total + granted
        if granted == 0:
            return AwardXpResult(xp_awarded=0, today_total=today_total)

        self.logger.info(f"Awarded {granted} XP to {user_id} for workout {workout_id}")
        level = LevelService(
            self.db,
            policy=self.policy,
            clock=self._clock,
            default_timezone=self.default_timezone,
        ).calculate_level(user_id)

        return AwardXpResult(xp_awarded=granted, today_total=today_total, level=level)

    # ------------------------------------------------------------------
    # Ledger queries
    # ------------------------------------------------------------------

    def _daily_total(
        self,
        conn: sqlite3.Connection,
        user_id: str,
        workout: Workout,
        now: datetime,
    ) -> int:
        """XP logged since local midnight in the workout's zone."""
        try:
            tz = resolve_timezone(workout.local_timezone, self.default_timezone)
        except ValueError:
            self.logger.warning(
                f"Workout {workout.id} has unknown timezone {workout.local_timezone!r}, "
                f"using {self.default_timezone}"
            )
            tz = resolve_timezone(self.default_timezone)

        since = to_iso(local_midnight_utc(now, tz))
        row = conn.execute(
            """
            SELECT COALESCE(SUM(xp_amount), 0) AS total
            FROM user_xp_logs
            WHERE user_id = ? AND created_at >= ?
            """,
            (user_id, since),
        ).fetchone()
        return int(row["total"])

    def _workout_set_total(self, conn: sqlite3.Connection, user_id: str, workout_id: str) -> int:
        """SET XP already granted for any set of the workout."""
        row = conn.execute(
            """
            SELECT COALESCE(SUM(l.xp_amount), 0) AS total
            FROM user_xp_logs l
            JOIN workout_sets s ON s.id = l.source_id
            WHERE l.user_id = ? AND l.source_type = ? AND s.workout_id = ?
            """,
            (user_id, SOURCE_SET, workout_id),
        ).fetchone()
        return int(row["total"])

    def _granted_sources(
        self,
        conn: sqlite3.Connection,
        user_id: str,
        source_type: str,
        source_ids: List[str],
    ) -> Set[str]:
        if not source_ids:
            return set()
        placeholders = ",".join("?" for _ in source_ids)
        rows = conn.execute(
            f"""
            SELECT source_id FROM user_xp_logs
            WHERE user_id = ? AND source_type = ? AND source_id IN ({placeholders})
            """,
            [user_id, source_type, *source_ids],
        ).fetchall()
        return {row["source_id"] for row in rows}

    def _append(
        self,
        conn: sqlite3.Connection,
        user_id: str,
        source_type: str,
        source_id: str,
        amount: int,
        created_at: str,
    ) -> bool:
        """Insert one ledger row. False when the source was already granted."""
        cursor = conn.execute(
            """
            INSERT OR IGNORE INTO user_xp_logs
            (id, user_id, source_type, source_id, xp_amount, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (new_id(), user_id, source_type, source_id, amount, created_at),
        )
        return cursor.rowcount == 1

