"""Time helpers: UTC timestamps and the configured notion of "today"."""
from datetime import datetime, timezone

import pytz

from parish.config import settings


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_utc(value: datetime) -> datetime:
    """Normalize a datetime to UTC; naive values are read in settings.TIMEZONE."""
    if value.tzinfo is None:
        value = pytz.timezone(settings.TIMEZONE).localize(value)
    return value.astimezone(pytz.utc)


def start_of_today(now: datetime | None = None) -> datetime:
    """Local midnight in settings.TIMEZONE, expressed in UTC.

    Masses scheduled at or after this instant are "upcoming", earlier ones "past".
    """
    tz = pytz.timezone(settings.TIMEZONE)
    local_now = (now or utcnow()).astimezone(tz)
    midnight = tz.localize(datetime(local_now.year, local_now.month, local_now.day))
    return midnight.astimezone(pytz.utc)
