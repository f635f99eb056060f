"""Notification records written by the gamification handlers.

The engine only inserts rows; a separate dispatcher delivers them.
"""

import json
import logging
import sqlite3
from enum import Enum
from typing import Any, Dict, List, Optional

from ..db.database import new_id
from ..metrics.calendar import to_iso, utc_now

logger = logging.getLogger(__name__)


class NotificationType(str, Enum):
    """Notification kinds understood by the dispatcher."""

    ACHIEVEMENT = "ACHIEVEMENT"
    PR = "PR"
    STREAK = "STREAK"
    BADGE_RUST = "BADGE_RUST"
    BADGE_POLISHED = "BADGE_POLISHED"
    SYSTEM = "SYSTEM"


def create_notification(
    conn: sqlite3.Connection,
    recipient_id: str,
    notification_type: NotificationType,
    title: str,
    body: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
    created_at: Optional[str] = None,
) -> str:
    """
    Insert a notification inside the caller's transaction.

    Args:
        conn: Open connection (usually the handler's write transaction)
        recipient_id: User to notify
        notification_type: Kind of notification
        title: Short headline
        body: Message text
        metadata: JSON-serialisable payload for the client
        created_at: ISO timestamp (defaults to now)

    Returns:
        The new notification id
    """
    notification_id = new_id()
    timestamp = created_at or to_iso(utc_now())
    conn.execute(
        """
        INSERT INTO notifications
        (id, recipient_id, type, title, body, metadata, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            notification_id,
            recipient_id,
            notification_type.value,
            title,
            body,
            json.dumps(metadata or {}),
            timestamp,
            timestamp,
        ),
    )
    logger.debug(f"Queued {notification_type.value} notification for {recipient_id}")
    return notification_id


def achievement_notification(
    conn: sqlite3.Connection,
    user_id: str,
    code: str,
    title: str,
    earned_at: str,
) -> str:
    return create_notification(
        conn,
        user_id,
        NotificationType.ACHIEVEMENT,
        title="Achievement Unlocked!",
        body=f'You earned "{title}"',
        metadata={"achievementCode": code, "earnedAt": earned_at},
        created_at=earned_at,
    )


def pr_notification(
    conn: sqlite3.Connection,
    user_id: str,
    workout_id: str,
    exercise_ids: List[str],
    created_at: str,
) -> str:
    count = len(exercise_ids)
    return create_notification(
        conn,
        user_id,
        NotificationType.PR,
        title="New Personal Record!" if count == 1 else "New Personal Records!",
        body=f"You set {count} personal record{'s' if count > 1 else ''} this workout.",
        metadata={"workoutId": workout_id, "exerciseIds": exercise_ids, "prCount": count},
        created_at=created_at,
    )


def rust_notification(
    conn: sqlite3.Connection,
    user_id: str,
    badges: List[str],
    created_at: str,
) -> str:
    count = len(badges)
    return create_notification(
        conn,
        user_id,
        NotificationType.BADGE_RUST,
        title="Badges Need Attention",
        body=f"{count} badge{'s have' if count > 1 else ' has'} become rusty. Work out to polish them!",
        metadata={"badges": badges},
        created_at=created_at,
    )


def polished_notification(
    conn: sqlite3.Connection,
    user_id: str,
    badges: List[str],
    created_at: str,
) -> str:
    count = len(badges)
    return create_notification(
        conn,
        user_id,
        NotificationType.BADGE_POLISHED,
        title="Badges Polished!",
        body=f"{count} badge{'s are' if count > 1 else ' is'} shiny again!",
        metadata={"badges": badges},
        created_at=created_at,
    )
