"""Database module for the LiftForge gamification engine."""

from .database import (
    Achievement,
    ActivityWeek,
    Exercise,
    GamificationDatabase,
    Notification,
    StreakLog,
    UserBadge,
    Workout,
    WorkoutSet,
)
from .schema import SCHEMA

__all__ = [
    "GamificationDatabase",
    "SCHEMA",
    "Achievement",
    "ActivityWeek",
    "Exercise",
    "Notification",
    "StreakLog",
    "UserBadge",
    "Workout",
    "WorkoutSet",
]
