"""Pydantic models for the LiftForge API and service results."""

from .gamification import (
    ActivityWeekInfo,
    AwardXpRequest,
    AwardXpResult,
    BadgeInfo,
    DetectPrsRequest,
    DetectPrsResult,
    LevelInfo,
    NewBadge,
    PersonalRecord,
    PolishBadgeRequest,
    PolishBadgeResult,
    ProcessWorkoutRequest,
    RustCheckResult,
    RustUpdate,
    StageError,
    StreakInfo,
    TrackWeeklyActivityRequest,
    UnlockBadgesResult,
    UserProgress,
    UserRequest,
    WeeklyActivityResult,
    WorkoutGamificationSummary,
    XpLogEntry,
    to_camel,
)

__all__ = [
    "ActivityWeekInfo",
    "AwardXpRequest",
    "AwardXpResult",
    "BadgeInfo",
    "DetectPrsRequest",
    "DetectPrsResult",
    "LevelInfo",
    "NewBadge",
    "PersonalRecord",
    "PolishBadgeRequest",
    "PolishBadgeResult",
    "ProcessWorkoutRequest",
    "RustCheckResult",
    "RustUpdate",
    "StageError",
    "StreakInfo",
    "TrackWeeklyActivityRequest",
    "UnlockBadgesResult",
    "UserProgress",
    "UserRequest",
    "WeeklyActivityResult",
    "WorkoutGamificationSummary",
    "XpLogEntry",
    "to_camel",
]
