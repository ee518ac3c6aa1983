from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timedelta
from enum import Enum
from typing import Iterable, TypeVar
from zoneinfo import ZoneInfo

from app.config import settings
from app.core.time_provider import APP_ZONEINFO, ensure_aware, local_datetime


class DayPhase(str, Enum):
    PREVIEW = 'preview'
    ACTIVE = 'active'
    REVIEW = 'review'


class ActivityStatus(str, Enum):
    UPCOMING = 'upcoming'
    ONGOING = 'ongoing'
    COMPLETED = 'completed'


@dataclass(frozen=True)
class PhaseResolution:
    day_phase: DayPhase
    activity_status: ActivityStatus
    eligible: bool


_END_OF_DAY = time(23, 59, 59, 999999)

T = TypeVar('T')


def resolve_day_phase(now: datetime, *, review_requested: bool = False) -> DayPhase:
    # Hour of day as seen by the caller; review only layers on top of active.
    ensure_aware(now)
    if now.hour < settings.day_active_start_hour:
        return DayPhase.PREVIEW
    if review_requested:
        return DayPhase.REVIEW
    return DayPhase.ACTIVE


def activity_window(activity, tz: ZoneInfo = APP_ZONEINFO) -> tuple[datetime, datetime]:
    start = local_datetime(activity.plan_date, activity.start_time, tz)
    end_of_day = local_datetime(activity.plan_date, _END_OF_DAY, tz)
    return start, end_of_day


def resolve_activity_status(now: datetime, activity, tz: ZoneInfo = APP_ZONEINFO) -> ActivityStatus:
    ensure_aware(now)
    start, end_of_day = activity_window(activity, tz)
    if now < start:
        return ActivityStatus.UPCOMING
    if now <= end_of_day:
        return ActivityStatus.ONGOING
    return ActivityStatus.COMPLETED


def is_submission_eligible(status: ActivityStatus, activity, *, has_submission: bool) -> bool:
    return bool(activity.requires_submission) and status != ActivityStatus.COMPLETED and not has_submission


def resolve_phase(
    now: datetime,
    activity,
    *,
    has_submission: bool = False,
    review_requested: bool = False,
    tz: ZoneInfo = APP_ZONEINFO,
) -> PhaseResolution:
    status = resolve_activity_status(now, activity, tz)
    return PhaseResolution(
        day_phase=resolve_day_phase(now, review_requested=review_requested),
        activity_status=status,
        eligible=is_submission_eligible(status, activity, has_submission=has_submission),
    )


def visible_activities(
    now: datetime,
    activities: Iterable[T],
    day_phase: DayPhase,
    tz: ZoneInfo = APP_ZONEINFO,
) -> list[T]:
    """Activities shown for the day.

    Preview and review list everything; while the day is active only the
    activities that have already started are shown.
    """
    rows = list(activities)
    if day_phase != DayPhase.ACTIVE:
        return rows
    return [row for row in rows if resolve_activity_status(now, row, tz) != ActivityStatus.UPCOMING]


def seconds_until_start(now: datetime, activity, tz: ZoneInfo = APP_ZONEINFO) -> int:
    start, _ = activity_window(activity, tz)
    remaining = start - ensure_aware(now)
    return max(0, int(remaining / timedelta(seconds=1)))


def activity_detail_visible(now: datetime, activity, tz: ZoneInfo = APP_ZONEINFO) -> bool:
    """Whether a student may see an activity's description and submission contract.

    Past days are always open. Today's activities open with the active phase,
    and future days stay closed.
    """
    local_now = ensure_aware(now).astimezone(tz)
    today = local_now.date()
    if activity.plan_date < today:
        return True
    if activity.plan_date > today:
        return False
    return resolve_day_phase(local_now) != DayPhase.PREVIEW
