from __future__ import annotations

from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

from app.config import settings


APP_TIMEZONE = settings.app_timezone or "Asia/Kolkata"
APP_ZONEINFO = ZoneInfo(APP_TIMEZONE)


class TimeProvider:
    def now(self) -> datetime:
        return datetime.now(APP_ZONEINFO)

    def today(self) -> date:
        return self.now().date()

    def utc_naive_now(self) -> datetime:
        # Storage columns are naive UTC.
        return ensure_aware(self.now()).astimezone(timezone.utc).replace(tzinfo=None)


def ensure_aware(dt: datetime) -> datetime:
    if dt.tzinfo is None or dt.tzinfo.utcoffset(dt) is None:
        raise ValueError("Naive datetime not allowed in business logic")
    return dt


def local_datetime(day: date, at: time, tz: ZoneInfo = APP_ZONEINFO) -> datetime:
    return datetime.combine(day, at, tzinfo=tz)


default_time_provider = TimeProvider()


def get_time_provider() -> TimeProvider:
    return default_time_provider
