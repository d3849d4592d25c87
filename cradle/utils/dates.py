"""Timezone-aware day boundaries, calendar arithmetic and age calculation."""

import calendar
import math
from datetime import datetime, date
from typing import Optional, Union

import pytz

from ..core.settings import settings
from ..core.constants import SECONDS_PER_DAY


# Used by: insights_service.py, trend_analyzer.py, babies_data.py
def get_timezone(name: Optional[str] = None):
    return pytz.timezone(name or settings.INSIGHTS_TIMEZONE)


def ensure_aware(value: datetime) -> datetime:
    """Naive datetimes coming out of the database are UTC."""
    if value.tzinfo is None:
        return pytz.utc.localize(value)
    return value


def to_local(value: datetime, tz) -> datetime:
    return ensure_aware(value).astimezone(tz)


def to_utc_naive(value: datetime) -> datetime:
    return ensure_aware(value).astimezone(pytz.utc).replace(tzinfo=None)


def _localize(tz, naive: datetime) -> datetime:
    # pytz zones need localize(); fixed offsets (e.g. parsed ISO strings) accept replace()
    if hasattr(tz, "localize"):
        return tz.localize(naive)
    return naive.replace(tzinfo=tz)


def start_of_day(value: Union[datetime, date], tz) -> datetime:
    if isinstance(value, datetime):
        local = to_local(value, tz)
        day = local.date()
    else:
        day = value
    return _localize(tz, datetime(day.year, day.month, day.day))


def end_of_day(value: Union[datetime, date], tz) -> datetime:
    if isinstance(value, datetime):
        day = to_local(value, tz).date()
    else:
        day = value
    return _localize(tz, datetime(day.year, day.month, day.day, 23, 59, 59, 999999))


def shift_months(value: datetime, months: int, tz) -> datetime:
    """Move by whole calendar months in local time; the day is clamped to the target month's length."""
    local = to_local(value, tz)
    month_index = local.year * 12 + (local.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(local.day, calendar.monthrange(year, month)[1])
    naive = local.replace(tzinfo=None, year=year, month=month, day=day)
    return _localize(tz, naive)


def period_days(start: datetime, end: datetime) -> int:
    """Days covered by [start, end], rounded up, never less than 1."""
    seconds = (end - start).total_seconds()
    return max(1, math.ceil(seconds / SECONDS_PER_DAY))


def minutes_between(earlier: datetime, later: datetime) -> float:
    return (ensure_aware(later) - ensure_aware(earlier)).total_seconds() / 60.0


# Used by: insights_service.py
def age_in_months(date_of_birth: Union[datetime, date], today: Optional[date] = None) -> int:
    """Whole calendar months since birth; a month only counts once its day-of-month is reached."""
    if isinstance(date_of_birth, datetime):
        date_of_birth = date_of_birth.date()
    today = today or date.today()
    total = (today.year - date_of_birth.year) * 12 + (today.month - date_of_birth.month)
    if today.day < date_of_birth.day:
        total -= 1
    return max(0, total)


def utc_now() -> datetime:
    return datetime.now(pytz.utc)
