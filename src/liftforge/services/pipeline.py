"""Gamification pipeline for a finished workout.

Runs the handlers in order: award XP, recalculate level, detect PRs, track
the week, polish maintained badges, unlock badges. Every stage is
best-effort. A failed stage is logged and reported, later stages still run
and earlier effects stay committed.
"""

import sqlite3
from typing import Callable, List, Optional, TypeVar

from ..db.database import GamificationDatabase
from ..exceptions import (
    ErrorCode,
    ForbiddenError,
    LiftForgeError,
    WorkoutNotFinishedError,
    WorkoutNotFoundError,
)
from ..metrics.calendar import DEFAULT_TIMEZONE
from ..models.gamification import StageError, WorkoutGamificationSummary
from ..policy import GamificationPolicy
from .badge_service import BadgeService
from .base import BaseService, Clock
from .level_service import LevelService
from .pr_detection_service import PRDetectionService
from .rust_service import BadgeRustService
from .weekly_activity_service import WeeklyActivityService
from .xp_service import XpLedgerService


T = TypeVar("T")


class GamificationPipeline(BaseService):
    """Sequences the gamification handlers for one workout."""

    def __init__(
        self,
        db: GamificationDatabase,
        policy: Optional[GamificationPolicy] = None,
        clock: Optional[Clock] = None,
        default_timezone: str = DEFAULT_TIMEZONE,
    ) -> None:
        super().__init__(db, policy=policy, clock=clock, default_timezone=default_timezone)
        shared = dict(policy=self.policy, clock=self._clock, default_timezone=default_timezone)
        self.xp = XpLedgerService(db, **shared)
        self.levels = LevelService(db, **shared)
        self.prs = PRDetectionService(db, **shared)
        self.weekly = WeeklyActivityService(db, **shared)
        self.rust = BadgeRustService(db, **shared)
        self.badges = BadgeService(db, **shared)

    def process_workout(
        self,
        user_id: str,
        workout_id: str,
        timezone: Optional[str] = None,
    ) -> WorkoutGamificationSummary:
        """
        Run every gamification stage for a finished workout.

        Args:
            user_id: Workout owner
            workout_id: Finished workout
            timezone: IANA zone hint for week bucketing

        Returns:
            WorkoutGamificationSummary with each stage's outcome and the
            stages that failed

        Raises:
            ValidationError: If an id is empty or the workout is not finished
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

        summary = WorkoutGamificationSummary(user_id=user_id, workout_id=workout_id)
        errors = summary.errors

        level_before = self._stage("level", errors, lambda: self.levels.get_level(user_id))

        set_ids = [s.id for s in self.db.get_workout_sets(workout_id)]
        if set_ids:
            award = self._stage("award_xp", errors, lambda: self.xp.award_xp(user_id, set_ids))
            if award is not None:
                summary.xp_awarded = award.xp_awarded
        else:
            self.logger.debug(f"Workout {workout_id} has no sets, skipping XP")

        level = self._stage("calculate_level", errors, lambda: self.levels.calculate_level(user_id))
        if level is not None:
            summary.level = level
            summary.level_up = level_before is not None and level.level > level_before.level

        detected = self._stage("detect_prs", errors, lambda: self.prs.detect_prs(workout_id, user_id))
        if detected is not None:
            summary.prs = detected.prs

        weekly = self._stage("track_weekly_activity", errors, lambda: self.weekly.track(user_id, workout_id, timezone))
        if weekly is not None:
            summary.activity_week = weekly.activity_week
            summary.streaks = weekly.streaks
            summary.perfect_week_badges = weekly.perfect_week_badges

        polished = self._stage(
            "polish_badges",
            errors,
            lambda: self.rust.polish_after_workout(user_id, workout_id, set_pr=bool(summary.prs)),
        )
        if polished is not None:
            summary.polished = polished

        unlocked = self._stage("unlock_badges", errors, lambda: self.badges.unlock_badges(user_id))
        if unlocked is not None:
            summary.new_badges = unlocked.new_badges

        self.logger.info(
            f"Processed workout {workout_id} for {user_id}: {summary.xp_awarded} XP, "
            f"{len(summary.prs)} PR(s), {len(summary.new_badges)} badge(s), "
            f"{len(errors)} failed stage(s)"
        )
        return summary

    def _stage(self, name: str, errors: List[StageError], run: Callable[[], T]) -> Optional[T]:
        try:
            return run()
        except LiftForgeError as e:
            self.logger.warning(f"Stage {name} failed: {e.message}")
            errors.append(StageError(stage=name, code=e.code.value, message=e.message))
        except sqlite3.Error as e:
            self.logger.error(f"Stage {name} database error: {e}")
            errors.append(StageError(stage=name, code=ErrorCode.DATABASE_ERROR.value, message=str(e)))
        except Exception as e:
            self.logger.exception(f"Stage {name} crashed")
            errors.append(StageError(stage=name, code=ErrorCode.INTERNAL_ERROR.value, message=str(e)))
        return None
