"""Gamification services."""

from .badge_rules import DEFAULT_RULES, BadgeContext, BadgeRuleRegistry
from .badge_service import BadgeService
from .base import BaseService
from .level_service import LevelService
from .notification_service import NotificationType, create_notification
from .pipeline import GamificationPipeline
from .pr_detection_service import PRDetectionService
from .rust_service import BadgeRustService
from .weekly_activity_service import WeeklyActivityService
from .xp_service import XpLedgerService

__all__ = [
    "BadgeContext",
    "BadgeRuleRegistry",
    "BadgeRustService",
    "BadgeService",
    "BaseService",
    "DEFAULT_RULES",
    "GamificationPipeline",
    "LevelService",
    "NotificationType",
    "PRDetectionService",
    "WeeklyActivityService",
    "XpLedgerService",
    "create_notification",
]
