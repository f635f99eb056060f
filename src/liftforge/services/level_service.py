"""Level cache updater.

The user_levels row is a cache derived from the XP ledger; recomputing it
is always safe.
"""

import sqlite3
from typing import List

from ..metrics.calendar import to_iso
from ..metrics.scoring import LevelSnapshot, level_from_total_xp
from ..models.gamification import LevelInfo, XpLogEntry
from .base import BaseService


def level_info(user_id: str, snapshot: LevelSnapshot) -> LevelInfo:
    return LevelInfo(
        user_id=user_id,
        total_xp=snapshot.total_xp,
        level=snapshot.level,
        xp_for_next_level=snapshot.xp_for_next_level,
        xp_to_next_level=snapshot.xp_to_next_level,
        progress_percent=snapshot.progress_percent,
    )


def ledger_total(conn: sqlite3.Connection, user_id: str) -> int:
    row = conn.execute(
        "SELECT COALESCE(SUM(xp_amount), 0) AS total FROM user_xp_logs WHERE user_id = ?",
        (user_id,),
    ).fetchone()
    return int(row["total"])


class LevelService(BaseService):
    """Recomputes and reads the denormalized level cache."""

    def calculate_level(self, user_id: str) -> LevelInfo:
        """
        Sum the user's ledger and upsert the level cache.

        Args:
            user_id: User to recompute

        Returns:
            LevelInfo for the user's current total XP
        """
        self._require(user_id, "userId")

        with self.db.user_transaction(user_id) as conn:
            snapshot = level_from_total_xp(ledger_total(conn, user_id))
            conn.execute(
                """
                INSERT INTO user_levels (user_id, total_xp, level, xp_to_next_level, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(user_id) DO UPDATE SET
                    total_xp = excluded.total_xp,
                    level = excluded.level,
                    xp_to_next_level = excluded.xp_to_next_level,
                    updated_at = excluded.updated_at
                """,
                (
                    user_id,
                    snapshot.total_xp,
                    snapshot.level,
                    snapshot.xp_to_next_level,
                    to_iso(self.now()),
                ),
            )

        self.logger.info(
            f"Level for {user_id}: {snapshot.level} ({snapshot.total_xp} XP, "
            f"{snapshot.xp_to_next_level} to next)"
        )
        return level_info(user_id, snapshot)

    def get_level(self, user_id: str) -> LevelInfo:
        """Read the cached level, or level 1 when nothing is cached yet."""
        self._require(user_id, "userId")

        with self.db.connection() as conn:
            row = conn.execute(
                "SELECT total_xp FROM user_levels WHERE user_id = ?",
                (user_id,),
            ).fetchone()

        total_xp = row["total_xp"] if row else 0
        return level_info(user_id, level_from_total_xp(total_xp))

    def get_xp_history(self, user_id: str, limit: int = 20) -> List[XpLogEntry]:
        """Most recent ledger entries, newest first."""
        self._require(user_id, "userId")

        with self.db.connection() as conn:
            rows = conn.execute(
                """
                SELECT id, source_type, source_id, xp_amount, created_at
                FROM user_xp_logs
                WHERE user_id = ?
                ORDER BY created_at DESC, rowid DESC
                LIMIT ?
                """,
                (user_id, limit),
            ).fetchall()

        return [XpLogEntry(**dict(row)) for row in rows]
