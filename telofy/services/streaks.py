# =====================================================================
# SERVICE LAYER - services/streaks.py
# =====================================================================
"""
Streak tracking for rituals.

A ritual's completions are bucketed into periods (day, Sunday-based week or
month) in the owner's timezone. Closed periods either qualify and extend the
run or break it; the period containing ``now`` can only extend it.
"""

import enum
import logging
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Dict, Iterable, Optional, Sequence

from sqlalchemy.orm import Session

from telofy.core.config import settings
from telofy.core.timeutils import as_utc, user_timezone, utcnow
from telofy.crud.ritual import crud_ritual
from telofy.models import Ritual, RitualFrequency

logger = logging.getLogger(__name__)


class WeeklyRule(str, enum.Enum):
    """How a weekly ritual with listed days qualifies."""

    per_day = "per_day"  # every listed day meets times_per_period
    aggregate = "aggregate"  # completions across the week meet times_per_period


@dataclass(frozen=True)
class StreakResult:
    current: int
    longest: int


@dataclass(frozen=True)
class PeriodOutcome:
    start: date
    end: date  # exclusive
    qualified: bool


def _weekday_index(day: date) -> int:
    """0=Sunday ... 6=Saturday."""
    return (day.weekday() + 1) % 7


class RitualSchedule:
    """Period arithmetic and qualification rules for one ritual."""

    def __init__(
        self,
        frequency: RitualFrequency,
        days_of_week: Optional[Sequence[int]] = None,
        times_per_period: int = 1,
        tz: Optional[tzinfo] = None,
        weekly_rule: WeeklyRule = WeeklyRule.per_day,
    ):
        self.frequency = RitualFrequency(frequency)
        self.days_of_week = set(days_of_week) if days_of_week else None
        self.times_per_period = max(1, int(times_per_period or 1))
        self.tz = tz or user_timezone(None)
        self.weekly_rule = WeeklyRule(weekly_rule)

    @classmethod
    def for_ritual(cls, ritual: Ritual, timezone_name: Optional[str] = None) -> "RitualSchedule":
        return cls(
            frequency=ritual.frequency,
            days_of_week=ritual.days_of_week,
            times_per_period=ritual.times_per_period,
            tz=user_timezone(timezone_name),
            weekly_rule=WeeklyRule(settings.WEEKLY_STREAK_RULE),
        )

    # -----------------------------------------------------------------
    # Period arithmetic
    # -----------------------------------------------------------------

    def local_date(self, moment: datetime) -> date:
        return as_utc(moment).astimezone(self.tz).date()

    def period_start(self, day: date) -> date:
        if self.frequency == RitualFrequency.daily:
            return day
        if self.frequency == RitualFrequency.weekly:
            return day - timedelta(days=_weekday_index(day))
        return day.replace(day=1)

    def next_period_start(self, start: date) -> date:
        if self.frequency == RitualFrequency.daily:
            return start + timedelta(days=1)
        if self.frequency == RitualFrequency.weekly:
            return start + timedelta(days=7)
        return (start.replace(day=28) + timedelta(days=4)).replace(day=1)

    def previous_period_start(self, start: date) -> date:
        return self.period_start(start - timedelta(days=1))

    def period_end_utc(self, start: date) -> datetime:
        """Instant the period closes, as an aware UTC datetime."""
        local_midnight = datetime.combine(self.next_period_start(start), time.min, tzinfo=self.tz)
        return as_utc(local_midnight)

    def is_scheduled(self, start: date) -> bool:
        """Only daily rituals skip days; weeks and months always count."""
        if self.frequency == RitualFrequency.daily and self.days_of_week is not None:
            return _weekday_index(start) in self.days_of_week
        return True

    # -----------------------------------------------------------------
    # Qualification
    # -----------------------------------------------------------------

    def qualifies(self, start: date, counts: Dict[date, int]) -> bool:
        if self.frequency == RitualFrequency.daily:
            return counts.get(start, 0) >= self.times_per_period

        end = self.next_period_start(start)
        days = [start + timedelta(days=i) for i in range((end - start).days)]

        if self.frequency == RitualFrequency.weekly and self.days_of_week is not None:
            listed = [d for d in days if _weekday_index(d) in self.days_of_week]
            if self.weekly_rule == WeeklyRule.per_day:
                return all(counts.get(d, 0) >= self.times_per_period for d in listed)
            return sum(counts.get(d, 0) for d in listed) >= self.times_per_period

        return sum(counts.get(d, 0) for d in days) >= self.times_per_period

    def _counts(self, completions: Iterable[datetime]) -> Counter:
        return Counter(self.local_date(moment) for moment in completions)

    # -----------------------------------------------------------------
    # Streaks
    # -----------------------------------------------------------------

    def compute(self, completions: Iterable[datetime], now: Optional[datetime] = None) -> StreakResult:
        """Replay completions up to ``now`` into current and longest streak."""
        now = as_utc(now) if now else utcnow()
        counts = self._counts(moment for moment in completions if as_utc(moment) <= now)
        if not counts:
            return StreakResult(current=0, longest=0)

        now_start = self.period_start(self.local_date(now))
        cursor = self.period_start(min(counts))
        last = now_start

        run = 0
        longest = 0
        while cursor <= last:
            if self.is_scheduled(cursor):
                if self.qualifies(cursor, counts):
                    run += 1
                elif cursor < now_start:
                    run = 0
                # an open period that has not qualified yet leaves the run alone
            longest = max(longest, run)
            cursor = self.next_period_start(cursor)

        return StreakResult(current=run, longest=longest)

    def last_closed_period(
        self, completions: Iterable[datetime], now: Optional[datetime] = None
    ) -> Optional[PeriodOutcome]:
        """Most recent scheduled period that ended before ``now``."""
        counts = self._counts(completions)
        cursor = self.previous_period_start(self.period_start(self.local_date(now or utcnow())))

        # daily rituals restricted to some weekdays look back at most a week
        for _ in range(7):
            if self.is_scheduled(cursor):
                return PeriodOutcome(
                    start=cursor,
                    end=self.next_period_start(cursor),
                    qualified=self.qualifies(cursor, counts),
                )
            cursor = self.previous_period_start(cursor)
        return None


# =====================================================================
# SERVICE
# =====================================================================


class StreakTracker:
    """Keeps ritual streak caches in step with the completion log."""

    def schedule_for(self, ritual: Ritual) -> RitualSchedule:
        objective = ritual.objective
        timezone_name = objective.user.timezone if objective is not None and objective.user else None
        return RitualSchedule.for_ritual(ritual, timezone_name)

    def replay(self, db: Session, ritual: Ritual, now: Optional[datetime] = None) -> StreakResult:
        completions = crud_ritual.get_completion_times(db, ritual_id=ritual.id)
        return self.schedule_for(ritual).compute(completions, now=now)

    def refresh_ritual_streaks(
        self,
        db: Session,
        ritual: Ritual,
        now: Optional[datetime] = None,
        rebaseline: bool = False,
    ) -> int:
        """
        Rebuild ``current_streak``/``longest_streak`` from completions.

        A drop in the current streak marks ``streak_break_pending`` for the
        deviation sweep, whichever caller noticed it first. ``rebaseline`` is
        for schedule edits, where the streak changes because the rules did.

        Returns the previous ``current_streak``.
        """
        previous = ritual.current_streak or 0
        result = self.replay(db, ritual, now=now)

        if result.current < previous and not rebaseline:
            ritual.streak_break_pending = True
            logger.info("Ritual %s streak broke (%s -> %s)", ritual.id, previous, result.current)

        ritual.current_streak = result.current
        ritual.longest_streak = max(ritual.longest_streak or 0, result.longest)
        db.flush()

        if previous != result.current:
            logger.debug(
                "Ritual %s streak %s -> %s (longest %s)",
                ritual.id,
                previous,
                result.current,
                ritual.longest_streak,
            )
        return previous


# =====================================================================
# SINGLETON INSTANCE
# =====================================================================

streak_tracker = StreakTracker()
