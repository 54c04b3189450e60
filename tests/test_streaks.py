"""Streak replay over daily, weekly and monthly periods."""

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest
from pydantic import ValidationError as PydanticValidationError

from telofy.core.timeutils import utcnow
from telofy.models import RitualFrequency
from telofy.schemas.ritual import RitualCompletionCreate, RitualCreate
from telofy.services.rituals import ritual_service
from telofy.services.streaks import RitualSchedule, WeeklyRule


def at(day, hour=12, month=1, year=2024):
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


def daily(**kwargs):
    return RitualSchedule(RitualFrequency.daily, tz=timezone.utc, **kwargs)


class TestDailyStreaks:
    def test_missed_day_breaks_current_keeps_longest(self):
        result = daily().compute([at(1), at(2), at(3)], now=at(5, hour=10))
        assert result.current == 0
        assert result.longest >= 3

    def test_open_day_does_not_break(self):
        result = daily().compute([at(1), at(2), at(3)], now=at(4, hour=10))
        assert result.current == 3
        assert result.longest == 3

    def test_completing_today_extends(self):
        result = daily().compute([at(1), at(2), at(3), at(4, hour=8)], now=at(4, hour=10))
        assert result.current == 4

    def test_completions_after_now_are_ignored(self):
        result = daily().compute([at(3), at(4, hour=8), at(20)], now=at(4, hour=10))
        assert (result.current, result.longest) == (2, 2)

    def test_no_completions(self):
        result = daily().compute([], now=at(4))
        assert (result.current, result.longest) == (0, 0)

    def test_times_per_period(self):
        schedule = daily(times_per_period=2)
        completions = [at(1, 8), at(1, 20), at(2, 8)]
        assert schedule.compute(completions, now=at(3, 10)).current == 0
        assert schedule.compute(completions, now=at(2, 10)).current == 1

    def test_unlisted_days_are_unscheduled(self):
        # 2024-01-01 is a Monday; Mon/Wed/Fri only
        schedule = daily(days_of_week=[1, 3, 5])
        result = schedule.compute([at(1), at(3), at(5)], now=at(6))
        assert result.current == 3

    def test_local_timezone_buckets(self):
        schedule = RitualSchedule(RitualFrequency.daily, tz=ZoneInfo("America/Los_Angeles"))
        # 03:00 UTC on Jan 2 is still Jan 1 in Los Angeles
        assert schedule.local_date(at(2, hour=3)) == date(2024, 1, 1)


class TestWeeklyStreaks:
    completions = [at(1), at(3), at(8)]  # Mon, Wed, then only Mon the next week

    def test_per_day_requires_each_listed_day(self):
        schedule = RitualSchedule(
            RitualFrequency.weekly, days_of_week=[1, 3], tz=timezone.utc, weekly_rule=WeeklyRule.per_day
        )
        result = schedule.compute(self.completions, now=at(15))
        assert result.current == 0
        assert result.longest == 1

    def test_aggregate_counts_the_whole_week(self):
        schedule = RitualSchedule(
            RitualFrequency.weekly, days_of_week=[1, 3], tz=timezone.utc, weekly_rule=WeeklyRule.aggregate
        )
        assert schedule.compute(self.completions, now=at(15)).current == 2

    def test_weeks_start_on_sunday(self):
        schedule = RitualSchedule(RitualFrequency.weekly, tz=timezone.utc)
        assert schedule.period_start(date(2024, 1, 3)) == date(2023, 12, 31)
        assert schedule.period_start(date(2023, 12, 31)) == date(2023, 12, 31)


class TestMonthlyStreaks:
    def test_counts_per_month_and_ignores_days_of_week(self):
        schedule = RitualSchedule(
            RitualFrequency.monthly, days_of_week=[0], times_per_period=2, tz=timezone.utc
        )
        completions = [at(5), at(20), at(3, month=2), at(10, month=2)]
        assert schedule.compute(completions, now=at(2, month=3)).current == 2

    def test_short_month_breaks(self):
        schedule = RitualSchedule(RitualFrequency.monthly, times_per_period=2, tz=timezone.utc)
        completions = [at(5), at(20), at(3, month=2)]
        result = schedule.compute(completions, now=at(2, month=3))
        assert result.current == 0
        assert result.longest == 1


class TestLastClosedPeriod:
    def test_reports_yesterday(self):
        outcome = daily().last_closed_period([at(1)], now=at(3, hour=9))
        assert outcome.start == date(2024, 1, 2)
        assert outcome.qualified is False

    def test_skips_unscheduled_days(self):
        # now is Sunday Jan 7; Saturday is unscheduled, so Friday Jan 5 is the last closed day
        outcome = daily(days_of_week=[1, 3, 5]).last_closed_period([at(5)], now=at(7))
        assert outcome.start == date(2024, 1, 5)
        assert outcome.qualified is True


class TestStreakCaches:
    def test_completion_refreshes_caches(self, db, user, objective):
        ritual = ritual_service.create_ritual(db, objective.id, RitualCreate(name="Read"), user)
        today = utcnow()

        for days_ago in (2, 1, 0):
            ritual_service.record_completion(
                db,
                ritual.id,
                RitualCompletionCreate(completed_at=today - timedelta(days=days_ago)),
                user,
            )

        db.refresh(ritual)
        assert ritual.current_streak == 3
        assert ritual.longest_streak == 3

    def test_future_completion_rejected(self, db, user, objective):
        ritual = ritual_service.create_ritual(db, objective.id, RitualCreate(name="Walk"), user)
        ritual_service.record_completion(db, ritual.id, RitualCompletionCreate(), user)

        with pytest.raises(PydanticValidationError):
            RitualCompletionCreate(completed_at=utcnow() + timedelta(days=30))

        db.refresh(ritual)
        assert (ritual.current_streak, ritual.longest_streak) == (1, 1)

    def test_longest_never_shrinks(self, db, user, objective):
        ritual = ritual_service.create_ritual(db, objective.id, RitualCreate(name="Run"), user)
        ritual.longest_streak = 10
        db.commit()

        ritual_service.record_completion(db, ritual.id, RitualCompletionCreate(), user)

        db.refresh(ritual)
        assert ritual.current_streak == 1
        assert ritual.longest_streak == 10
