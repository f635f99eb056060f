"""Gamification policy: every tunable constant the handlers depend on.

A single immutable value is built once and injected into each service, so
alternate policies (tests, experiments) never touch module state.
"""

from fnmatch import fnmatchcase
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


# (code or glob pattern, days) - first match wins, None means the badge never rusts
RustRule = Tuple[str, Optional[int]]


class GamificationPolicy(BaseModel):
    """XP caps, streak categories and badge rust rules."""

    model_config = ConfigDict(frozen=True)

    # XP ledger
    xp_per_set: int = Field(default=10, gt=0)
    xp_workout_bonus: int = Field(default=50, ge=0)
    daily_xp_cap: int = Field(default=500, gt=0)
    workout_xp_cap: int = Field(default=200, gt=0)

    # PR detection
    pr_history_limit: int = Field(default=100, gt=0, description="Historical sets scanned per exercise")

    # Weekly streak categories: (streak_type, workouts per week)
    streak_thresholds: Tuple[Tuple[str, int], ...] = (
        ("WEEKLY_ANY", 1),
        ("WEEKLY_3", 3),
        ("WEEKLY_4", 4),
        ("WEEKLY_5", 5),
    )
    perfect_week_thresholds: Tuple[Tuple[str, int], ...] = (
        ("PERFECT_WEEK_5", 5),
        ("PERFECT_WEEK_6", 6),
    )

    # Badge unlocks
    muscle_group_default_threshold: int = Field(default=10, gt=0)

    # Badge rust
    rust_rules: Tuple[RustRule, ...] = (
        ("FIRST_WORKOUT", 14),
        ("WORKOUT_*", 14),
        ("FIRST_PR", 30),
        ("PR_*", 30),
        ("WEEKLY_*", 14),
        ("CONSISTENCY_*", 14),
        ("PERFECT_WEEK_*", None),
        ("VOLUME_*", None),
        ("*_MASTER", 21),
    )
    default_rust_days: int = Field(default=30, gt=0)

    def rust_threshold_for(self, achievement_code: str) -> Optional[int]:
        """
        Days of inactivity a badge tolerates before rusting.

        Args:
            achievement_code: Badge code, e.g. "WORKOUT_10"

        Returns:
            Threshold in days, or None when the badge never rusts
        """
        for pattern, days in self.rust_rules:
            if fnmatchcase(achievement_code, pattern):
                return days
        return self.default_rust_days


DEFAULT_POLICY = GamificationPolicy()
