"""Badge unlock evaluation.

Walks every achievement the user does not hold yet, asks the matching rule
whether it is earned and records the new badges.
"""

import sqlite3
from typing import List, Optional

from ..db.database import new_id
from ..metrics.calendar import to_iso
from ..models.gamification import BadgeInfo, NewBadge, UnlockBadgesResult
from .badge_rules import DEFAULT_RULES, BadgeContext, BadgeRuleRegistry
from .base import BaseService
from .notification_service import achievement_notification


class BadgeService(BaseService):
    """Evaluates and records badge unlocks."""

    def __init__(self, *args, rules: Optional[BadgeRuleRegistry] = None, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.rules = rules or DEFAULT_RULES

    def unlock_badges(self, user_id: str) -> UnlockBadgesResult:
        """
        Unlock every badge the user now qualifies for.

        Achievements without a matching rule are skipped. A rule that fails
        is logged and evaluation moves on to the next achievement. A second
        call with no new activity unlocks nothing.

        Args:
            user_id: User to evaluate

        Returns:
            UnlockBadgesResult with the badges unlocked by this call
        """
        self._require(user_id, "userId")

        new_badges: List[NewBadge] = []

        with self.db.user_transaction(user_id) as conn:
            held = {badge.achievement_code for badge in self.db.get_user_badges(user_id, conn=conn)}
            earned_at = to_iso(self.now())

            for achievement in self.db.get_achievements(conn=conn):
                if achievement.code in held:
                    continue

                resolved = self.rules.resolve(achievement)
                if resolved is None:
                    self.logger.debug(f"No rule for achievement {achievement.code}, skipping")
                    continue
                badge_rule, match = resolved

                context = BadgeContext(
                    conn=conn,
                    user_id=user_id,
                    achievement=achievement,
                    policy=self.policy,
                    match=match,
                )
                try:
                    earned = badge_rule.evaluator(context)
                except (sqlite3.Error, ValueError) as e:
                    self.logger.error(f"Rule {badge_rule.name} failed for {achievement.code}: {e}")
                    continue
                if not earned:
                    continue

                cursor = conn.execute(
                    """
                    INSERT OR IGNORE INTO user_badges
                    (id, user_id, achievement_code, earned_at, is_rusty, last_maintained_at,
                     created_at, updated_at)
                    VALUES (?, ?, ?, ?, 0, ?, ?, ?)
                    """,
                    (new_id(), user_id, achievement.code, earned_at, earned_at, earned_at, earned_at),
                )
                if cursor.rowcount == 0:
                    # A soft-deleted row holds the unique key; earn it again in place
                    cursor = conn.execute(
                        """
                        UPDATE user_badges
                        SET deleted_at = NULL, earned_at = ?, is_rusty = 0,
                            last_maintained_at = ?, updated_at = ?
                        WHERE user_id = ? AND achievement_code = ? AND deleted_at IS NOT NULL
                        """,
                        (earned_at, earned_at, earned_at, user_id, achievement.code),
                    )
                    if cursor.rowcount == 0:
                        continue

                achievement_notification(conn, user_id, achievement.code, achievement.title, earned_at)
                self.logger.info(f"Badge {achievement.code} unlocked for {user_id}")
                new_badges.append(
                    NewBadge(
                        code=achievement.code,
                        title=achievement.title,
                        description=achievement.description,
                        earned_at=earned_at,
                    )
                )

        return UnlockBadgesResult(new_badges=new_badges, badge_count=len(new_badges))

    def get_badges(self, user_id: str) -> List[BadgeInfo]:
        """Badges the user holds, oldest first."""
        self._require(user_id, "userId")
        with self.db.connection() as conn:
            titles = {a.code: a.title for a in self.db.get_achievements(conn=conn)}
            badges = self.db.get_user_badges(user_id, conn=conn)
        return [
            BadgeInfo(
                code=badge.achievement_code,
                title=titles.get(badge.achievement_code, badge.achievement_code),
                earned_at=badge.earned_at,
                is_rusty=badge.is_rusty,
                last_maintained_at=badge.last_maintained_at,
            )
            for badge in badges
        ]
