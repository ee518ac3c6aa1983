import unittest
from datetime import date, datetime, time, timedelta, timezone
from types import SimpleNamespace

from freezegun import freeze_time

from app.core.day_phase import (
    ActivityStatus,
    DayPhase,
    activity_detail_visible,
    is_submission_eligible,
    resolve_activity_status,
    resolve_day_phase,
    resolve_phase,
    seconds_until_start,
    visible_activities,
)
from app.core.time_provider import APP_ZONEINFO, default_time_provider


DAY = date(2026, 10, 19)


def _at(hour, minute=0, second=0, microsecond=0, day=DAY):
    return datetime(day.year, day.month, day.day, hour, minute, second, microsecond, tzinfo=APP_ZONEINFO)


def _activity(start=time(10, 0), requires_submission=True, plan_date=DAY, title='Activity'):
    return SimpleNamespace(title=title, plan_date=plan_date, start_time=start, requires_submission=requires_submission)


class DayPhaseTests(unittest.TestCase):
    def test_phase_boundary_at_nine(self):
        self.assertEqual(resolve_day_phase(_at(8, 59, 59)), DayPhase.PREVIEW)
        self.assertEqual(resolve_day_phase(_at(9, 0, 0)), DayPhase.ACTIVE)
        self.assertEqual(resolve_day_phase(_at(0, 0)), DayPhase.PREVIEW)
        self.assertEqual(resolve_day_phase(_at(23, 59, 59)), DayPhase.ACTIVE)

    def test_review_only_layers_on_active(self):
        self.assertEqual(resolve_day_phase(_at(15, 0), review_requested=True), DayPhase.REVIEW)
        self.assertEqual(resolve_day_phase(_at(7, 0), review_requested=True), DayPhase.PREVIEW)

    def test_naive_now_is_rejected(self):
        with self.assertRaises(ValueError):
            resolve_day_phase(datetime(2026, 10, 19, 10, 0))

    def test_activity_status_window(self):
        activity = _activity(start=time(10, 0))
        self.assertEqual(resolve_activity_status(_at(9, 59, 59), activity), ActivityStatus.UPCOMING)
        self.assertEqual(resolve_activity_status(_at(10, 0), activity), ActivityStatus.ONGOING)
        self.assertEqual(resolve_activity_status(_at(23, 59, 59, 999999), activity), ActivityStatus.ONGOING)
        self.assertEqual(
            resolve_activity_status(_at(0, 0, day=date(2026, 10, 20)), activity),
            ActivityStatus.COMPLETED,
        )

    def test_yesterdays_activity_is_completed(self):
        yesterday = _activity(plan_date=date(2026, 10, 18), start=time(11, 0))
        resolution = resolve_phase(_at(9, 30), yesterday)
        self.assertEqual(resolution.day_phase, DayPhase.ACTIVE)
        self.assertEqual(resolution.activity_status, ActivityStatus.COMPLETED)
        self.assertFalse(resolution.eligible)

    def test_status_uses_app_timezone_for_other_zones(self):
        activity = _activity(start=time(10, 0))
        start_in_utc = _at(10, 0).astimezone(timezone.utc)
        self.assertEqual(resolve_activity_status(start_in_utc, activity), ActivityStatus.ONGOING)
        self.assertEqual(
            resolve_activity_status(start_in_utc - timedelta(seconds=1), activity),
            ActivityStatus.UPCOMING,
        )

    def test_eligibility_rules(self):
        requires = _activity()
        no_submission = _activity(requires_submission=False)
        self.assertTrue(is_submission_eligible(ActivityStatus.UPCOMING, requires, has_submission=False))
        self.assertTrue(is_submission_eligible(ActivityStatus.ONGOING, requires, has_submission=False))
        self.assertFalse(is_submission_eligible(ActivityStatus.COMPLETED, requires, has_submission=False))
        self.assertFalse(is_submission_eligible(ActivityStatus.ONGOING, requires, has_submission=True))
        self.assertFalse(is_submission_eligible(ActivityStatus.ONGOING, no_submission, has_submission=False))

    def test_resolve_phase_combines_day_and_activity(self):
        activity = _activity(start=time(14, 0))
        resolution = resolve_phase(_at(16, 0), activity, has_submission=False, review_requested=True)
        self.assertEqual(resolution.day_phase, DayPhase.REVIEW)
        self.assertEqual(resolution.activity_status, ActivityStatus.ONGOING)
        self.assertTrue(resolution.eligible)

    def test_active_day_hides_upcoming_activities(self):
        morning = _activity(start=time(9, 30), title='Morning')
        evening = _activity(start=time(18, 0), title='Evening')
        now = _at(12, 0)

        shown = visible_activities(now, [morning, evening], DayPhase.ACTIVE)
        self.assertEqual([row.title for row in shown], ['Morning'])
        self.assertEqual(len(visible_activities(now, [morning, evening], DayPhase.REVIEW)), 2)
        self.assertEqual(len(visible_activities(_at(8, 0), [morning, evening], DayPhase.PREVIEW)), 2)

    def test_seconds_until_start(self):
        activity = _activity(start=time(10, 0))
        self.assertEqual(seconds_until_start(_at(9, 58, 30), activity), 90)
        self.assertEqual(seconds_until_start(_at(11, 0), activity), 0)

    def test_detail_opens_with_the_active_phase(self):
        today = _activity()
        self.assertFalse(activity_detail_visible(_at(8, 59, 59), today))
        self.assertTrue(activity_detail_visible(_at(9, 0), today))
        self.assertTrue(activity_detail_visible(_at(7, 0), _activity(plan_date=DAY - timedelta(days=1))))
        self.assertFalse(activity_detail_visible(_at(23, 0), _activity(plan_date=DAY + timedelta(days=1))))
        # 03:29:59 UTC is 08:59:59 in the app timezone.
        utc_now = datetime(2026, 10, 19, 3, 29, 59, tzinfo=timezone.utc)
        self.assertFalse(activity_detail_visible(utc_now, today))
        self.assertTrue(activity_detail_visible(utc_now + timedelta(seconds=1), today))

    @freeze_time('2026-10-19 03:29:59')
    def test_default_provider_is_in_app_timezone(self):
        now = default_time_provider.now()
        self.assertEqual((now.hour, now.minute, now.second), (8, 59, 59))
        self.assertEqual(resolve_day_phase(now), DayPhase.PREVIEW)
        self.assertEqual(default_time_provider.utc_naive_now(), datetime(2026, 10, 19, 3, 29, 59))

    @freeze_time('2026-10-19 03:30:00')
    def test_default_provider_crosses_into_active(self):
        self.assertEqual(resolve_day_phase(default_time_provider.now()), DayPhase.ACTIVE)


if __name__ == '__main__':
    unittest.main()
