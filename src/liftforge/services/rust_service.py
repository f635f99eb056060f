"""Badge rust monitor.

Badges rust when the user stops doing the activity that earned them and
are polished again by renewed activity. Thresholds come from the policy's
rust rules; badges without a threshold never rust.
"""

import re
import sqlite3
from datetime import datetime, timedelta
from typing import List, Optional, Set

from ..db.database import UserBadge
from ..exceptions import BadgeNotFoundError
from ..metrics.calendar import parse_timestamp, to_iso
from ..models.gamification import PolishBadgeResult, RustCheckResult, RustUpdate
from .base import BaseService
from .notification_service import polished_notification, rust_notification


PR_BADGE = re.compile(r"FIRST_PR|PR_FIRST|PR_COUNT_\d+|PR_\d+")


def days_since(now: datetime, last_activity: str) -> int:
    """Whole days elapsed, floored."""
    return (now - parse_timestamp(last_activity)) // timedelta(days=1)


class BadgeRustService(BaseService):
    """Flips rust flags and polishes maintained badges."""

    def check_rust(self, user_id: str) -> RustCheckResult:
        """
        Re-evaluate the rust flag of every badge the user holds.

        Last activity is the badge's last_maintained_at, or the end of the
        user's latest finished workout when the badge was never maintained.
        A badge is rusty when more whole days than its threshold have passed.

        Args:
            user_id: Badge holder

        Returns:
            RustCheckResult listing the flags that changed
        """
        self._require(user_id, "userId")

        now = self.now()
        updates: List[RustUpdate] = []

        with self.db.user_transaction(user_id) as conn:
            badges = self.db.get_user_badges(user_id, conn=conn)
            if not badges:
                return RustCheckResult()

            last_workout = self._last_workout_end(conn, user_id)
            stamp = to_iso(now)

            for badge in badges:
                threshold = self.policy.rust_threshold_for(badge.achievement_code)
                if threshold is None:
                    continue

                last_activity = badge.last_maintained_at or last_workout
                if last_activity is None:
                    continue

                days = days_since(now, last_activity)
                should_be_rusty = days > threshold
                if should_be_rusty == badge.is_rusty:
                    continue

                conn.execute(
                    "UPDATE user_badges SET is_rusty = ?, updated_at = ? WHERE id = ?",
                    (int(should_be_rusty), stamp, badge.id),
                )
                updates.append(
                    RustUpdate(
                        badge_code=badge.achievement_code,
                        was_rusty=badge.is_rusty,
                        is_now_rusty=should_be_rusty,
                        days_since_activity=days,
                    )
                )

            newly_rusted = [u.badge_code for u in updates if u.is_now_rusty]
            polished = [u.badge_code for u in updates if not u.is_now_rusty]

            if newly_rusted:
                rust_notification(conn, user_id, newly_rusted, stamp)
            if polished:
                polished_notification(conn, user_id, polished, stamp)

        if updates:
            self.logger.info(
                f"Rust check for {user_id}: {len(newly_rusted)} rusted, {len(polished)} polished"
            )
        return RustCheckResult(
            updates=updates,
            newly_rusted=newly_rusted,
            polished=polished,
            checked_badges=len(badges),
        )

    def polish_badge(self, user_id: str, achievement_code: str) -> PolishBadgeResult:
        """
        Clear a badge's rust and restart its timer.

        Raises:
            ValidationError: If an id is empty
            BadgeNotFoundError: If the user does not hold the badge
        """
        self._require(user_id, "userId")
        self._require(achievement_code, "achievementCode")

        stamp = to_iso(self.now())
        with self.db.user_transaction(user_id) as conn:
            badge = self.db.get_user_badge(user_id, achievement_code, conn=conn)
            if badge is None:
                raise BadgeNotFoundError(user_id, achievement_code)
            self._polish(conn, badge, stamp)

        self.logger.info(f"Badge {achievement_code} polished for {user_id}")
        return PolishBadgeResult(badge_code=achievement_code, is_rusty=False, last_maintained_at=stamp)

    def polish_after_workout(self, user_id: str, workout_id: str, set_pr: bool = False) -> List[str]:
        """
        Refresh the badges a finished workout maintains.

        Every badge is maintained by working out, except PR badges (need a
        new record) and muscle-group badges (need a set for that group).

        Returns:
            Codes of badges that were rusty and are shiny again
        """
        self._require(user_id, "userId")
        self._require(workout_id, "workoutId")

        stamp = to_iso(self.now())
        restored: List[str] = []

        with self.db.user_transaction(user_id) as conn:
            trained = self._trained_groups(conn, workout_id)
            groups = {
                a.code: a.relevant_muscle_group
                for a in self.db.get_achievements(conn=conn)
                if a.relevant_muscle_group
            }

            for badge in self.db.get_user_badges(user_id, conn=conn):
                code = badge.achievement_code
                if code in groups:
                    maintained = groups[code].upper() in trained
                elif PR_BADGE.fullmatch(code):
                    maintained = set_pr
                else:
                    maintained = True
                if not maintained:
                    continue

                self._polish(conn, badge, stamp)
                if badge.is_rusty:
                    restored.append(code)

            if restored:
                polished_notification(conn, user_id, restored, stamp)

        if restored:
            self.logger.info(f"Workout {workout_id} polished {len(restored)} badge(s) for {user_id}")
        return restored

    def _polish(self, conn: sqlite3.Connection, badge: UserBadge, stamp: str) -> None:
        conn.execute(
            """
            UPDATE user_badges
            SET is_rusty = 0, last_maintained_at = ?, updated_at = ?
            WHERE id = ?
            """,
            (stamp, stamp, badge.id),
        )

    def _last_workout_end(self, conn: sqlite3.Connection, user_id: str) -> Optional[str]:
        row = conn.execute(
            """
            SELECT MAX(ended_at) AS ended_at FROM workouts
            WHERE user_id = ? AND ended_at IS NOT NULL AND deleted_at IS NULL
            """,
            (user_id,),
        ).fetchone()
        return row["ended_at"]

    def _trained_groups(self, conn: sqlite3.Connection, workout_id: str) -> Set[str]:
        rows = conn.execute(
            """
            SELECT DISTINCT UPPER(e.muscle_group) AS muscle_group
            FROM workout_sets s
            JOIN exercises e ON e.id = s.exercise_id
            WHERE s.workout_id = ? AND s.deleted_at IS NULL AND e.muscle_group IS NOT NULL
            """,
            (workout_id,),
        ).fetchall()
        return {row["muscle_group"] for row in rows}
