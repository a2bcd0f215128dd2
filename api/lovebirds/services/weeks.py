from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Callable
from zoneinfo import ZoneInfo

from ..config import APP_TIMEZONE

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_local(now: datetime, tz: str = APP_TIMEZONE) -> datetime:
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(ZoneInfo(tz))


def get_week_start_date(now: datetime, tz: str = APP_TIMEZONE) -> date:
    local_now = to_local(now, tz)
    return local_now.date() - timedelta(days=local_now.weekday())


def week_context(week_start_date: date, now: datetime, tz: str = APP_TIMEZONE) -> dict[str, object]:
    return {
        "week_start_date": week_start_date,
        "week_end_date": week_start_date + timedelta(days=6),
        "is_current_week": week_start_date == get_week_start_date(now, tz),
    }


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def whole_days_between(start: datetime, now: datetime) -> int:
    return max(0, int((_aware(now) - _aware(start)).total_seconds() // 86400))


def whole_weeks_between(start: datetime, now: datetime) -> int:
    return whole_days_between(start, now) // 7
