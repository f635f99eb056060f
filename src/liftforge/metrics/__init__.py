"""Pure scoring and calendar calculations."""

from .scoring import LevelSnapshot, estimated_1rm, level_from_total_xp
from .calendar import (
    DEFAULT_TIMEZONE,
    local_date,
    local_midnight_utc,
    parse_timestamp,
    resolve_timezone,
    utc_now,
    week_start_for,
)

__all__ = [
    # Scoring
    "LevelSnapshot",
    "estimated_1rm",
    "level_from_total_xp",
    # Calendar
    "DEFAULT_TIMEZONE",
    "local_date",
    "local_midnight_utc",
    "parse_timestamp",
    "resolve_timezone",
    "utc_now",
    "week_start_for",
]
