"""Badge unlock rules.

Each rule pairs an achievement-code pattern with an evaluator that decides
whether a user has earned the badge. Rules are tried in registration
order and the first match wins. Adding a badge family means registering
one more rule; nothing else changes.
"""

import re
import sqlite3
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from ..db.database import Achievement
from ..metrics.scoring import level_from_total_xp
from ..policy import GamificationPolicy


@dataclass
class BadgeContext:
    """Everything an evaluator may look at."""

    conn: sqlite3.Connection
    user_id: str
    achievement: Achievement
    policy: GamificationPolicy
    match: Optional[re.Match] = None

    def threshold(self, group: int = 1, default: Optional[int] = None) -> int:
        """Threshold from the definition, else the number captured in the code."""
        if self.achievement.threshold_value is not None:
            return int(self.achievement.threshold_value)
        if self.match is not None and self.match.re.groups >= group:
            captured = self.match.group(group)
            if captured is not None and captured.isdigit():
                return int(captured)
        if default is not None:
            return default
        raise ValueError(f"No threshold for achievement {self.achievement.code}")


Evaluator = Callable[[BadgeContext], bool]


@dataclass
class BadgeRule:
    name: str
    evaluator: Evaluator
    pattern: Optional[re.Pattern] = None
    muscle_group: bool = False

    def matches(self, achievement: Achievement) -> Tuple[bool, Optional[re.Match]]:
        if self.muscle_group:
            return bool(achievement.relevant_muscle_group), None
        match = self.pattern.fullmatch(achievement.code) if self.pattern else None
        return match is not None, match


class BadgeRuleRegistry:
    """Ordered collection of badge rules."""

    def __init__(self) -> None:
        self._rules: List[BadgeRule] = []

    def rule(self, pattern: Optional[str] = None, muscle_group: bool = False):
        """Register an evaluator for codes matching ``pattern`` (a full-match regex)."""

        def decorator(func: Evaluator) -> Evaluator:
            self._rules.append(
                BadgeRule(
                    name=func.__name__,
                    evaluator=func,
                    pattern=re.compile(pattern) if pattern else None,
                    muscle_group=muscle_group,
                )
            )
            return func

        return decorator

    def resolve(self, achievement: Achievement) -> Optional[Tuple[BadgeRule, Optional[re.Match]]]:
        for badge_rule in self._rules:
            matched, match = badge_rule.matches(achievement)
            if matched:
                return badge_rule, match
        return None

    @property
    def rules(self) -> List[BadgeRule]:
        return list(self._rules)


# ============================================================================
# Shared counters
# ============================================================================

def finished_workout_count(conn: sqlite3.Connection, user_id: str) -> int:
    row = conn.execute(
        """
        SELECT COUNT(*) AS n FROM workouts
        WHERE user_id = ? AND ended_at IS NOT NULL AND deleted_at IS NULL
        """,
        (user_id,),
    ).fetchone()
    return row["n"]


def pr_count(conn: sqlite3.Connection, user_id: str) -> int:
    row = conn.execute(
        """
        SELECT COUNT(*) AS n
        FROM workout_sets s
        JOIN workouts w ON w.id = s.workout_id
        WHERE s.user_id = ? AND s.is_pr = 1 AND s.deleted_at IS NULL AND w.deleted_at IS NULL
        """,
        (user_id,),
    ).fetchone()
    return row["n"]


def longest_streak(conn: sqlite3.Connection, user_id: str, streak_type: str) -> int:
    row = conn.execute(
        """
        SELECT COALESCE(MAX(streak_length), 0) AS n FROM user_streak_logs
        WHERE user_id = ? AND streak_type = ?
        """,
        (user_id, streak_type),
    ).fetchone()
    return row["n"]


def total_volume(conn: sqlite3.Connection, user_id: str) -> float:
    row = conn.execute(
        """
        SELECT COALESCE(SUM(s.weight_kg * s.reps), 0) AS kg
        FROM workout_sets s
        JOIN workouts w ON w.id = s.workout_id
        WHERE s.user_id = ?
          AND s.deleted_at IS NULL
          AND w.deleted_at IS NULL
          AND s.weight_kg > 0 AND s.reps > 0
        """,
        (user_id,),
    ).fetchone()
    return float(row["kg"])


def current_level(conn: sqlite3.Connection, user_id: str) -> int:
    row = conn.execute("SELECT level FROM user_levels WHERE user_id = ?", (user_id,)).fetchone()
    if row is not None:
        return row["level"]
    # Cache not built yet: derive from the ledger
    row = conn.execute(
        "SELECT COALESCE(SUM(xp_amount), 0) AS total FROM user_xp_logs WHERE user_id = ?",
        (user_id,),
    ).fetchone()
    return level_from_total_xp(row["total"]).level


def muscle_group_set_count(conn: sqlite3.Connection, user_id: str, muscle_group: str) -> int:
    row = conn.execute(
        """
        SELECT COUNT(*) AS n
        FROM workout_sets s
        JOIN workouts w ON w.id = s.workout_id
        JOIN exercises e ON e.id = s.exercise_id
        WHERE s.user_id = ?
          AND s.deleted_at IS NULL
          AND w.deleted_at IS NULL
          AND UPPER(e.muscle_group) = UPPER(?)
        """,
        (user_id, muscle_group),
    ).fetchone()
    return row["n"]


# ============================================================================
# Default rules
# ============================================================================

DEFAULT_RULES = BadgeRuleRegistry()


@DEFAULT_RULES.rule(r"FIRST_WORKOUT")
def first_workout(ctx: BadgeContext) -> bool:
    return finished_workout_count(ctx.conn, ctx.user_id) >= 1


@DEFAULT_RULES.rule(r"WORKOUT_(?:(\d+)|\w+)")
def workout_count(ctx: BadgeContext) -> bool:
    return finished_workout_count(ctx.conn, ctx.user_id) >= ctx.threshold()


@DEFAULT_RULES.rule(r"FIRST_PR|PR_FIRST")
def first_pr(ctx: BadgeContext) -> bool:
    return pr_count(ctx.conn, ctx.user_id) >= 1


@DEFAULT_RULES.rule(r"PR_(\d+)")
@DEFAULT_RULES.rule(r"PR_COUNT_(?:(\d+)|\w+)")
def pr_total(ctx: BadgeContext) -> bool:
    return pr_count(ctx.conn, ctx.user_id) >= ctx.threshold()


@DEFAULT_RULES.rule(r"LEVEL_(?:(\d+)|\w+)")
def level_reached(ctx: BadgeContext) -> bool:
    return current_level(ctx.conn, ctx.user_id) >= ctx.threshold()


@DEFAULT_RULES.rule(r"WEEKLY_(\w+?)_x(\d+)")
def weekly_streak(ctx: BadgeContext) -> bool:
    streak_type = f"WEEKLY_{ctx.match.group(1)}"
    return longest_streak(ctx.conn, ctx.user_id, streak_type) >= ctx.threshold(group=2)


@DEFAULT_RULES.rule(r"CONSISTENCY_(\d+)")
def consistency(ctx: BadgeContext) -> bool:
    return longest_streak(ctx.conn, ctx.user_id, "WEEKLY_ANY") >= ctx.threshold()


@DEFAULT_RULES.rule(r"PERFECT_WEEK_(\d+)")
def perfect_week(ctx: BadgeContext) -> bool:
    row = ctx.conn.execute(
        "SELECT COALESCE(MAX(workouts_completed), 0) AS n FROM user_activity_weeks WHERE user_id = ?",
        (ctx.user_id,),
    ).fetchone()
    return row["n"] >= ctx.threshold()


@DEFAULT_RULES.rule(r"VOLUME_(\d+)KG")
def lifetime_volume(ctx: BadgeContext) -> bool:
    return total_volume(ctx.conn, ctx.user_id) >= ctx.threshold()


@DEFAULT_RULES.rule(muscle_group=True)
def muscle_group_sets(ctx: BadgeContext) -> bool:
    needed = ctx.threshold(default=ctx.policy.muscle_group_default_threshold)
    return muscle_group_set_count(ctx.conn, ctx.user_id, ctx.achievement.relevant_muscle_group) >= needed
