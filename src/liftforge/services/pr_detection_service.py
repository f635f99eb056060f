"""Personal Record (PR) detection service.

This service handles:
- Picking the best set per exercise in a workout by estimated 1RM
- Comparing it with the user's history for that exercise
- Flagging the winning set and notifying the user
"""

import sqlite3
from typing import Dict, List, Optional

from ..db.database import Workout, WorkoutSet
from ..exceptions import ForbiddenError, WorkoutNotFoundError
from ..metrics.calendar import to_iso
from ..metrics.scoring import estimated_1rm
from ..models.gamification import DetectPrsResult, PersonalRecord
from .base import BaseService
from .notification_service import pr_notification


class PRDetectionService(BaseService):
    """Service for detecting strength personal records."""

    def detect_prs(self, workout_id: str, user_id: Optional[str] = None) -> DetectPrsResult:
        """Detect personal records from a workout.

        A set is a PR only when its estimated 1RM is strictly greater than
        the best of the owner's other workouts for the same exercise.
        Re-running is safe: the history excludes this workout, so the same
        sets win again and flagging is idempotent.

        Args:
            workout_id: ID of the workout to analyze
            user_id: When given, the workout must belong to this user

        Returns:
            DetectPrsResult with one entry per exercise that set a record

        Raises:
            ValidationError: If workout_id is empty
            WorkoutNotFoundError: If the workout does not exist or was deleted
            ForbiddenError: If user_id is given and does not own the workout
        """
        self._require(workout_id, "workoutId")

        workout = self.db.get_workout(workout_id)
        if workout is None:
            raise WorkoutNotFoundError(workout_id)
        if user_id is not None and workout.user_id != user_id:
            raise ForbiddenError("Workout belongs to another user", details={"workout_id": workout_id})

        prs: List[PersonalRecord] = []
        newly_flagged: List[str] = []

        with self.db.user_transaction(workout.user_id) as conn:
            for exercise_id, best in self._best_sets(self.db.get_workout_sets(workout_id, conn=conn)).items():
                try:
                    record = self._check_exercise(conn, workout, exercise_id, best)
                except sqlite3.Error as e:
                    self.logger.error(f"PR check failed for exercise {exercise_id} in {workout_id}: {e}")
                    continue
                if record is None:
                    continue
                prs.append(record)
                if not best.is_pr:
                    newly_flagged.append(exercise_id)

            if newly_flagged:
                pr_notification(conn, workout.user_id, workout_id, newly_flagged, to_iso(self.now()))

        if prs:
            self.logger.info(f"Workout {workout_id}: {len(prs)} PR(s) for {workout.user_id}")
        return DetectPrsResult(workout_id=workout_id, prs=prs, pr_count=len(prs))

    def _best_sets(self, sets: List[WorkoutSet]) -> Dict[str, WorkoutSet]:
        """Best set per exercise, exercises in first-seen order, ties to the earlier set."""
        best: Dict[str, WorkoutSet] = {}
        for workout_set in sets:
            current = best.get(workout_set.exercise_id)
            if current is None or (
                estimated_1rm(workout_set.weight_kg, workout_set.reps)
                > estimated_1rm(current.weight_kg, current.reps)
            ):
                best[workout_set.exercise_id] = workout_set
        return best

    def _historical_best(
        self,
        conn: sqlite3.Connection,
        workout: Workout,
        exercise_id: str,
    ) -> float:
        rows = conn.execute(
            """
            SELECT s.weight_kg, s.reps
            FROM workout_sets s
            JOIN workouts w ON w.id = s.workout_id
            WHERE s.user_id = ?
              AND s.exercise_id = ?
              AND s.workout_id != ?
              AND s.deleted_at IS NULL
              AND w.deleted_at IS NULL
            ORDER BY s.weight_kg DESC
            LIMIT ?
            """,
            (workout.user_id, exercise_id, workout.id, self.policy.pr_history_limit),
        ).fetchall()
        return max((estimated_1rm(row["weight_kg"], row["reps"]) for row in rows), default=0.0)

    def _check_exercise(
        self,
        conn: sqlite3.Connection,
        workout: Workout,
        exercise_id: str,
        best: WorkoutSet,
    ) -> Optional[PersonalRecord]:
        new_best = estimated_1rm(best.weight_kg, best.reps)
        previous = self._historical_best(conn, workout, exercise_id)
        if new_best <= previous:
            self.logger.debug(
                f"No PR for {exercise_id}: {new_best:.1f} kg vs previous {previous:.1f} kg"
            )
            return None

        conn.execute("UPDATE workout_sets SET is_pr = 1 WHERE id = ?", (best.id,))
        self.logger.info(
            f"PR on {exercise_id} by {workout.user_id}: {new_best:.1f} kg (was {previous:.1f} kg)"
        )
        return PersonalRecord(
            exercise_id=exercise_id,
            set_id=best.id,
            new_pr=round(new_best, 2),
            previous_pr=round(previous, 2),
            improvement=round(new_best - previous, 2),
        )
