"""Dependency injection for API routes."""

from functools import lru_cache

from fastapi import Depends

from ..config import get_settings
from ..db.database import GamificationDatabase
from ..policy import DEFAULT_POLICY, GamificationPolicy
from ..services.badge_service import BadgeService
from ..services.level_service import LevelService
from ..services.pipeline import GamificationPipeline
from ..services.pr_detection_service import PRDetectionService
from ..services.rust_service import BadgeRustService
from ..services.weekly_activity_service import WeeklyActivityService
from ..services.xp_service import XpLedgerService
from .middleware.auth import CurrentUser, get_current_user

__all__ = [
    "CurrentUser",
    "get_current_user",
    "get_gamification_db",
    "get_policy",
    "get_xp_service",
    "get_level_service",
    "get_pr_service",
    "get_weekly_service",
    "get_badge_service",
    "get_rust_service",
    "get_pipeline",
]


@lru_cache
def get_gamification_db() -> GamificationDatabase:
    """Get the gamification database instance (schema and seed data ensured)."""
    settings = get_settings()
    db = GamificationDatabase(settings.database_path)
    db.seed_achievements()
    return db


def get_policy() -> GamificationPolicy:
    return DEFAULT_POLICY


def _service_kwargs(policy: GamificationPolicy) -> dict:
    return {"policy": policy, "default_timezone": get_settings().default_timezone}


def get_xp_service(
    db: GamificationDatabase = Depends(get_gamification_db),
    policy: GamificationPolicy = Depends(get_policy),
) -> XpLedgerService:
    return XpLedgerService(db, **_service_kwargs(policy))


def get_level_service(
    db: GamificationDatabase = Depends(get_gamification_db),
    policy: GamificationPolicy = Depends(get_policy),
) -> LevelService:
    return LevelService(db, **_service_kwargs(policy))


def get_pr_service(
    db: GamificationDatabase = Depends(get_gamification_db),
    policy: GamificationPolicy = Depends(get_policy),
) -> PRDetectionService:
    return PRDetectionService(db, **_service_kwargs(policy))


def get_weekly_service(
    db: GamificationDatabase = Depends(get_gamification_db),
    policy: GamificationPolicy = Depends(get_policy),
) -> WeeklyActivityService:
    return WeeklyActivityService(db, **_service_kwargs(policy))


def get_badge_service(
    db: GamificationDatabase = Depends(get_gamification_db),
    policy: GamificationPolicy = Depends(get_policy),
) -> BadgeService:
    return BadgeService(db, **_service_kwargs(policy))


def get_rust_service(
    db: GamificationDatabase = Depends(get_gamification_db),
    policy: GamificationPolicy = Depends(get_policy),
) -> BadgeRustService:
    return BadgeRustService(db, **_service_kwargs(policy))


def get_pipeline(
    db: GamificationDatabase = Depends(get_gamification_db),
    policy: GamificationPolicy = Depends(get_policy),
) -> GamificationPipeline:
    return GamificationPipeline(db, **_service_kwargs(policy))
