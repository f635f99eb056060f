"""Gamification data models for XP, levels, PRs, streaks and badges.

Request and response models serialise with camelCase aliases and accept
either form on input.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


def to_camel(string: str) -> str:
    """Convert snake_case to camelCase."""
    components = string.split("_")
    return components[0] + "".join(x.title() for x in components[1:])


# =============================================================================
# Requests
# =============================================================================


class AwardXpRequest(BaseModel):
    """Request to grant XP for completed sets."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    user_id: str = Field(default="", description="User receiving the XP")
    set_ids: List[str] = Field(default_factory=list, description="Completed set ids of one workout")


class UserRequest(BaseModel):
    """Request that only targets a user (level, badge unlock, rust check)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    user_id: str = Field(default="", description="Target user")


class DetectPrsRequest(BaseModel):
    """Request to scan a workout for personal records."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    workout_id: str = Field(default="", description="Workout to scan")


class TrackWeeklyActivityRequest(BaseModel):
    """Request to fold a finished workout into its week."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    user_id: str = Field(default="", description="Workout owner")
    workout_id: str = Field(default="", description="Finished workout")
    timezone: Optional[str] = Field(None, description="IANA zone hint when the workout has none")


class PolishBadgeRequest(BaseModel):
    """Request to restore a rusty badge."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    user_id: str = Field(default="", description="Badge holder")
    achievement_code: str = Field(default="", description="Badge code to polish")


class ProcessWorkoutRequest(BaseModel):
    """Request to run the whole gamification pipeline for a workout."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    user_id: str = Field(default="", description="Workout owner")
    workout_id: str = Field(default="", description="Finished workout")
    timezone: Optional[str] = Field(None, description="IANA zone hint when the workout has none")


# =============================================================================
# XP & Levels
# =============================================================================


class LevelInfo(BaseModel):
    """Information about a user's level."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    user_id: str = Field(..., description="User the level belongs to")
    total_xp: int = Field(..., description="Lifetime XP")
    level: int = Field(..., description="Current level")
    xp_for_next_level: int = Field(..., description="Total XP at which the next level starts")
    xp_to_next_level: int = Field(..., description="XP still needed for the next level")
    progress_percent: float = Field(..., description="Progress to next level (0-100)")


class AwardXpResult(BaseModel):
    """Outcome of an XP grant."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    xp_awarded: int = Field(default=0, description="XP granted by this call")
    today_total: int = Field(default=0, description="XP logged today including this grant")
    level: Optional[LevelInfo] = Field(None, description="Refreshed level when XP was granted")


class XpLogEntry(BaseModel):
    """One ledger row."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str
    source_type: str
    source_id: str
    xp_amount: int
    created_at: str


# =============================================================================
# Personal Records
# =============================================================================


class PersonalRecord(BaseModel):
    """A set whose estimated 1RM beat the previous best for its exercise."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    exercise_id: str = Field(..., description="Exercise the record is for")
    set_id: str = Field(..., description="Set that set the record")
    new_pr: float = Field(..., description="New estimated 1RM in kg")
    previous_pr: float = Field(..., description="Previous best estimated 1RM in kg (0 if none)")
    improvement: float = Field(..., description="new_pr - previous_pr")


class DetectPrsResult(BaseModel):
    """Outcome of PR detection for one workout."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    workout_id: str
    prs: List[PersonalRecord] = Field(default_factory=list)
    pr_count: int = 0


# =============================================================================
# Weekly Activity & Streaks
# =============================================================================


class ActivityWeekInfo(BaseModel):
    """Aggregated activity for one local week."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    week_start: str = Field(..., description="Local Monday, YYYY-MM-DD")
    active_days: int = Field(default=0, ge=0, le=7)
    workouts_completed: int = Field(default=0, ge=0)
    total_sets: int = Field(default=0, ge=0)
    total_volume_kg: float = Field(default=0.0, ge=0)


class StreakInfo(BaseModel):
    """An active weekly streak."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    streak_type: str
    streak_length: int
    week_ended: str


class WeeklyActivityResult(BaseModel):
    """Outcome of weekly tracking for one workout."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    activity_week: ActivityWeekInfo
    streaks: Dict[str, int] = Field(default_factory=dict, description="Qualifying streak type -> length")
    perfect_week_badges: List[str] = Field(default_factory=list)


# =============================================================================
# Badges
# =============================================================================


class NewBadge(BaseModel):
    """A badge unlocked by the current call."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    code: str
    title: str
    description: Optional[str] = None
    earned_at: str


class UnlockBadgesResult(BaseModel):
    """Outcome of badge evaluation."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    new_badges: List[NewBadge] = Field(default_factory=list)
    badge_count: int = 0


class RustUpdate(BaseModel):
    """A badge whose rust flag changed."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    badge_code: str
    was_rusty: bool
    is_now_rusty: bool
    days_since_activity: int


class RustCheckResult(BaseModel):
    """Outcome of a rust check."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    updates: List[RustUpdate] = Field(default_factory=list)
    newly_rusted: List[str] = Field(default_factory=list)
    polished: List[str] = Field(default_factory=list)
    checked_badges: int = 0


class PolishBadgeResult(BaseModel):
    """State of a badge after polishing."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    badge_code: str
    is_rusty: bool
    last_maintained_at: str


class BadgeInfo(BaseModel):
    """A held badge."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    code: str
    title: str
    earned_at: str
    is_rusty: bool
    last_maintained_at: Optional[str] = None


# =============================================================================
# Pipeline & Progress
# =============================================================================


class StageError(BaseModel):
    """A pipeline stage that failed."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    stage: str
    code: str
    message: str


class WorkoutGamificationSummary(BaseModel):
    """Everything a finished workout earned."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    user_id: str
    workout_id: str
    xp_awarded: int = 0
    level: Optional[LevelInfo] = None
    level_up: bool = False
    prs: List[PersonalRecord] = Field(default_factory=list)
    activity_week: Optional[ActivityWeekInfo] = None
    streaks: Dict[str, int] = Field(default_factory=dict)
    perfect_week_badges: List[str] = Field(default_factory=list)
    new_badges: List[NewBadge] = Field(default_factory=list)
    polished: List[str] = Field(default_factory=list)
    errors: List[StageError] = Field(default_factory=list)


class UserProgress(BaseModel):
    """Complete user progress summary."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    level: LevelInfo
    active_streaks: List[StreakInfo] = Field(default_factory=list)
    badges: List[BadgeInfo] = Field(default_factory=list)
    recent_weeks: List[ActivityWeekInfo] = Field(default_factory=list)
