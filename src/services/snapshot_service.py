"""State snapshot calculation for missed check-ins.

A snapshot is captured once, when the miss is detected, and never recomputed.
All statistics look only at history strictly before the missed date. Fields
with no underlying data are None rather than 0.
"""

import logging
import math
from datetime import date, timedelta
from typing import Dict, FrozenSet, List, Optional, Set

from config.settings import settings
from src.managers.check_in_manager import CheckInManager
from src.managers.missed_check_in_manager import MissedCheckInManager
from src.models.dtos import CheckInRecord, StateSnapshot, WorkerContext
from src.services.schedule_resolver import ScheduleResolver, get_schedule_resolver
from src.utils.timezone import (
    DATE_FORMAT,
    CalendarClock,
    PrecomputedDate,
    default_clock,
    parse_date_str,
    weekday_code,
)

logger = logging.getLogger(__name__)

# Trailing windows (days) of the miss counts
MISS_COUNT_WINDOWS = (30, 60, 90)


class MissedCheckInSnapshotService:
    """Calculates state snapshots for a batch of workers of one company.

    Args:
        timezone_name: Company IANA zone
        lookback_days: Cap for streak and completion rate history
        frequency_window_days: Window length of the increasing-frequency comparison
        readiness_window_days: Window of the recent readiness average
    """

    def __init__(
        self,
        timezone_name: str,
        check_in_manager: Optional[CheckInManager] = None,
        missed_check_in_manager: Optional[MissedCheckInManager] = None,
        resolver: Optional[ScheduleResolver] = None,
        clock: Optional[CalendarClock] = None,
        lookback_days: Optional[int] = None,
        frequency_window_days: Optional[int] = None,
        readiness_window_days: Optional[int] = None,
    ):
        self.timezone_name = timezone_name
        self.check_in_manager = check_in_manager or CheckInManager()
        self.missed_check_in_manager = missed_check_in_manager or MissedCheckInManager()
        self.resolver = resolver or get_schedule_resolver()
        self.clock = clock or default_clock
        self.lookback_days = lookback_days or settings.sweep.lookback_days
        self.frequency_window_days = frequency_window_days or settings.sweep.frequency_window_days
        self.readiness_window_days = readiness_window_days or settings.sweep.readiness_window_days

    @property
    def history_days(self) -> int:
        """Days of history needed to cover every statistic."""
        return max(
            self.lookback_days,
            MISS_COUNT_WINDOWS[-1],
            2 * self.frequency_window_days,
            self.readiness_window_days,
        )

    def calculate_batch(
        self, workers: List[WorkerContext], missed_date: str, holiday_dates: Set[str]
    ) -> Dict[str, StateSnapshot]:
        """
        Calculate snapshots for several workers missing the same date.

        Args:
            workers: Workers that missed the date
            missed_date: Company-local date (YYYY-MM-DD)
            holiday_dates: Holiday dates covering at least the lookback window

        Returns:
            Dict mapping person_id to StateSnapshot
        """
        if not workers:
            return {}

        target = parse_date_str(missed_date)
        history_start = target - timedelta(days=self.history_days)
        person_ids = [worker.person_id for worker in workers]

        check_ins = self.check_in_manager.get_histories(person_ids, history_start, target)
        misses = self.missed_check_in_manager.get_histories(person_ids, history_start, target)

        # Shared by streak and completion rate for every worker
        lookback_start = self.clock.parse_date_in_timezone(
            (target - timedelta(days=self.lookback_days)).strftime(DATE_FORMAT),
            self.timezone_name,
        )
        date_range = self.clock.precompute_date_range(
            lookback_start, self.lookback_days, self.timezone_name
        )

        return {
            worker.person_id: self.calculate_for_worker(
                worker,
                check_ins.get(worker.person_id, []),
                misses.get(worker.person_id, []),
                missed_date,
                holiday_dates,
                date_range,
            )
            for worker in workers
        }

    def calculate_for_worker(
        self,
        worker: WorkerContext,
        check_ins: List[CheckInRecord],
        previous_misses: List[date],
        missed_date: str,
        holiday_dates: Set[str],
        date_range: List[PrecomputedDate],
    ) -> StateSnapshot:
        """Snapshot for one worker. check_ins and previous_misses are newest first."""
        target = parse_date_str(missed_date)
        schedule = self.resolver.effective_schedule(worker.override, worker.team)
        assigned_date = self._assigned_date(worker)

        prior_check_ins = [record for record in check_ins if record.date < missed_date]
        prior_misses = sorted((d for d in previous_misses if d < target), reverse=True)

        days_since_last_check_in = (
            self.clock.days_between(prior_check_ins[0].date, missed_date) if prior_check_ins else None
        )
        days_since_last_miss = (target - prior_misses[0]).days if prior_misses else None

        misses_30, misses_60, misses_90 = (
            self._count_between(prior_misses, target - timedelta(days=days), target)
            for days in MISS_COUNT_WINDOWS
        )

        window = timedelta(days=self.frequency_window_days)
        recent = self._count_between(prior_misses, target - window, target)
        preceding = self._count_between(prior_misses, target - 2 * window, target - window)

        return StateSnapshot(
            day_of_week=weekday_code(target),
            week_of_month=math.ceil(target.day / 7),
            worker_role_at_miss=worker.role,
            check_in_streak_before=self._calculate_streak(
                prior_check_ins, schedule.work_days, holiday_dates, date_range, missed_date, assigned_date
            ),
            recent_readiness_avg=self._recent_readiness_avg(prior_check_ins, target),
            days_since_last_check_in=days_since_last_check_in,
            days_since_last_miss=days_since_last_miss,
            misses_in_last_30d=misses_30,
            misses_in_last_60d=misses_60,
            misses_in_last_90d=misses_90,
            is_first_miss_in_30d=misses_30 == 0,
            is_increasing_frequency=recent > preceding,
            baseline_completion_rate=self._calculate_completion_rate(
                prior_check_ins, schedule.work_days, holiday_dates, date_range, missed_date, assigned_date
            ),
        )

    def _assigned_date(self, worker: WorkerContext) -> Optional[str]:
        if worker.team_assigned_at is None:
            return None
        return self.clock.format_in_timezone(worker.team_assigned_at, self.timezone_name)

    @staticmethod
    def _count_between(dates: List[date], start: date, end: date) -> int:
        """Count of dates with start <= d < end."""
        return sum(1 for d in dates if start <= d < end)

    @staticmethod
    def _is_required(day: PrecomputedDate, work_days: FrozenSet[int], holiday_dates: Set[str]) -> bool:
        return day.weekday in work_days and day.date_str not in holiday_dates

    def _calculate_streak(
        self,
        check_ins: List[CheckInRecord],
        work_days: FrozenSet[int],
        holiday_dates: Set[str],
        date_range: List[PrecomputedDate],
        missed_date: str,
        assigned_date: Optional[str],
    ) -> Optional[int]:
        """
        Consecutive required work days with a check-in, counting back from the
        day before the miss. Holidays and non-work days are skipped without
        breaking the streak. Stops at the first gap or at the assignment date,
        which is never a required day.
        """
        if not check_ins:
            return None

        checked_in = {record.date for record in check_ins}
        streak = 0

        # date_range is oldest first
        for day in reversed(date_range):
            if day.date_str >= missed_date:
                continue
            if assigned_date is not None and day.date_str <= assigned_date:
                break
            if not self._is_required(day, work_days, holiday_dates):
                continue
            if day.date_str not in checked_in:
                break
            streak += 1

        return streak

    def _recent_readiness_avg(self, check_ins: List[CheckInRecord], target: date) -> Optional[float]:
        window_start = (target - timedelta(days=self.readiness_window_days)).strftime(DATE_FORMAT)
        scores = [
            record.readiness_score
            for record in check_ins
            if record.date >= window_start and record.readiness_score is not None
        ]
        if not scores:
            return None
        return round(sum(scores) / len(scores), 1)

    def _calculate_completion_rate(
        self,
        check_ins: List[CheckInRecord],
        work_days: FrozenSet[int],
        holiday_dates: Set[str],
        date_range: List[PrecomputedDate],
        missed_date: str,
        assigned_date: Optional[str],
    ) -> Optional[float]:
        """
        Percentage of required work days with a check-in, over the days from
        the day after assignment (or the lookback start, if later) up to the
        day before the miss.
        """
        checked_in = {record.date for record in check_ins}
        submitted = 0
        missed = 0

        for day in date_range:
            if day.date_str >= missed_date:
                continue
            if assigned_date is not None and day.date_str <= assigned_date:
                continue
            if not self._is_required(day, work_days, holiday_dates):
                continue
            if day.date_str in checked_in:
                submitted += 1
            else:
                missed += 1

        if submitted + missed == 0:
            return None
        return round(submitted / (submitted + missed) * 100, 1)
