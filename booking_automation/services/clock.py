"""
Time helpers
Session times are stored in UTC and rendered in the display timezone
"""
from datetime import datetime, timezone
from zoneinfo import ZoneInfo
from booking_automation.config import settings


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (as returned by SQLite) as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_scheduled_at(value) -> datetime:
    """Accept a datetime or an ISO-8601 string ("Z" suffix allowed)"""
    if isinstance(value, datetime):
        return as_utc(value)
    return as_utc(datetime.fromisoformat(str(value).replace("Z", "+00:00")))


def format_session_time(value: datetime, fmt: str = "%B %d at %I:%M %p") -> str:
    local = as_utc(value).astimezone(ZoneInfo(settings.display_timezone))
    return local.strftime(fmt)
