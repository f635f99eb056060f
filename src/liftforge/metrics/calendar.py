"""Timezone-aware calendar helpers for weekly activity bucketing."""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


DEFAULT_TIMEZONE = "UTC"


def resolve_timezone(name: Optional[str], fallback: str = DEFAULT_TIMEZONE) -> ZoneInfo:
    """
    Resolve an IANA timezone label.

    Args:
        name: Timezone label such as "America/New_York" (None or empty
              uses the fallback)
        fallback: Label used when name is missing

    Returns:
        ZoneInfo for the label

    Raises:
        ValueError: If the label is not a known IANA zone
    """
    label = name or fallback
    try:
        return ZoneInfo(label)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown timezone '{label}'") from e


def parse_timestamp(value: Union[str, datetime]) -> datetime:
    """Parse a stored ISO-8601 timestamp. Naive values are taken as UTC."""
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def local_date(moment: Union[str, datetime], tz: ZoneInfo) -> date:
    """Calendar date of an instant as seen in the given zone."""
    return parse_timestamp(moment).astimezone(tz).date()


def week_start_for(moment: Union[str, datetime], tz: ZoneInfo) -> date:
    """
    Monday of the ISO week containing the instant's local date.

    Args:
        moment: Instant (aware datetime or ISO string)
        tz: Zone whose calendar defines the date

    Returns:
        The local Monday as a date
    """
    day = local_date(moment, tz)
    return day - timedelta(days=day.weekday())


def local_midnight_utc(now: datetime, tz: ZoneInfo) -> datetime:
    """Start of the local day containing ``now``, expressed in UTC."""
    local_now = parse_timestamp(now).astimezone(tz)
    midnight = datetime.combine(local_now.date(), time.min, tzinfo=tz)
    return midnight.astimezone(timezone.utc)


def days_between(later: date, earlier: date) -> int:
    return (later - earlier).days


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(moment: datetime) -> str:
    """Format an aware datetime as a UTC ISO string for storage.

    Microseconds are always written so stored values compare correctly as
    plain strings.
    """
    return parse_timestamp(moment).astimezone(timezone.utc).isoformat(timespec="microseconds")
