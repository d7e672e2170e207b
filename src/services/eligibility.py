"""Check-in eligibility: classify today for a worker and answer window questions."""

import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from src.models.dtos import (
    EffectiveSchedule,
    PersonScheduleOverride,
    TeamSchedule,
    WorkerContext,
)
from src.services.holiday_oracle import HolidayOracle, get_holiday_oracle
from src.services.schedule_resolver import (
    ScheduleResolver,
    get_schedule_resolver,
    is_time_within_window,
)
from src.utils.timezone import CalendarClock, default_clock, time_to_minutes

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60


class EligibilityState(enum.Enum):
    """Eligibility of a worker for the current calendar day, in evaluation order."""

    NOT_ASSIGNED = "NOT_ASSIGNED"
    NOT_WORK_DAY = "NOT_WORK_DAY"
    HOLIDAY = "HOLIDAY"
    BEFORE_WINDOW = "BEFORE_WINDOW"
    WINDOW_OPEN = "WINDOW_OPEN"
    WINDOW_CLOSED = "WINDOW_CLOSED"


@dataclass
class EligibilityResult:
    """Classification of one worker's day.

    is_window_open is the pure time-of-day predicate; it ignores whether the
    worker already submitted. is_due is False on non-work days, holidays and
    any day up to and including the day the worker joined the team.
    """

    state: EligibilityState
    date: str
    current_time: str
    day_of_week: int
    schedule: Optional[EffectiveSchedule]
    holiday_name: Optional[str] = None
    is_assigned_today: bool = False
    is_window_open: bool = False
    is_due: bool = False
    message: str = ""

    @property
    def is_work_day(self) -> bool:
        return self.state not in (EligibilityState.NOT_ASSIGNED, EligibilityState.NOT_WORK_DAY)

    @property
    def is_holiday(self) -> bool:
        return self.holiday_name is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "date": self.date,
            "current_time": self.current_time,
            "day_of_week": self.day_of_week,
            "schedule": self.schedule.to_dict() if self.schedule else None,
            "is_work_day": self.is_work_day,
            "is_holiday": self.is_holiday,
            "holiday_name": self.holiday_name,
            "is_assigned_today": self.is_assigned_today,
            "is_window_open": self.is_window_open,
            "is_due": self.is_due,
            "message": self.message,
        }


@dataclass
class CheckInStatus:
    """Eligibility combined with the worker's submission state for today."""

    eligibility: EligibilityResult
    has_checked_in_today: bool
    can_check_in: bool
    message: str

    def to_dict(self) -> Dict[str, Any]:
        result = self.eligibility.to_dict()
        result.update(
            {
                "has_checked_in_today": self.has_checked_in_today,
                "can_check_in": self.can_check_in,
                "message": self.message,
            }
        )
        return result


class EligibilityEvaluator:
    """Composes the clock, holiday oracle and schedule resolver.

    Args:
        clock: Calendar clock (inject a fixed clock in tests)
        holiday_oracle: Holiday lookups, defaults to the shared oracle
        resolver: Schedule resolver, defaults to the shared resolver
    """

    def __init__(
        self,
        clock: Optional[CalendarClock] = None,
        holiday_oracle: Optional[HolidayOracle] = None,
        resolver: Optional[ScheduleResolver] = None,
    ):
        self.clock = clock or default_clock
        self._holiday_oracle = holiday_oracle
        self.resolver = resolver or get_schedule_resolver()

    @property
    def holiday_oracle(self) -> HolidayOracle:
        if self._holiday_oracle is None:
            self._holiday_oracle = get_holiday_oracle()
        return self._holiday_oracle

    def evaluate(
        self,
        person: Optional[PersonScheduleOverride],
        team: Optional[TeamSchedule],
        company_id: str,
        timezone_name: str,
        team_assigned_at: Optional[datetime] = None,
        on_date: Optional[str] = None,
    ) -> EligibilityResult:
        """Classify a company-local date for one worker.

        on_date defaults to today. An earlier date is classified as it stood
        once the day was over, so its window is closed.
        """
        today = self.clock.today(timezone_name)
        date_str = on_date or today
        is_past = date_str < today
        current_time = self.clock.current_time(timezone_name)
        day_of_week = self.clock.day_of_week(timezone_name, date_str)

        if team is None:
            return EligibilityResult(
                state=EligibilityState.NOT_ASSIGNED,
                date=date_str,
                current_time=current_time,
                day_of_week=day_of_week,
                schedule=None,
                message="No team assigned",
            )

        schedule = self.resolver.effective_schedule(person, team)
        assigned_date = self._assigned_date(team_assigned_at, timezone_name)
        window_open = not is_past and self._window_open_at(schedule, current_time)

        result = EligibilityResult(
            state=EligibilityState.NOT_WORK_DAY,
            date=date_str,
            current_time=current_time,
            day_of_week=day_of_week,
            schedule=schedule,
            is_assigned_today=assigned_date == date_str,
            is_window_open=window_open,
        )

        if day_of_week not in schedule.work_days:
            result.message = "Today is not a scheduled work day"
            return result

        holiday = self.holiday_oracle.is_holiday(company_id, date_str)
        if holiday.is_holiday:
            result.state = EligibilityState.HOLIDAY
            result.holiday_name = holiday.holiday_name
            result.message = f"Today is a holiday: {holiday.holiday_name}"
            return result

        # Not due until the first full day on the team
        result.is_due = assigned_date is None or assigned_date < date_str

        current_minutes = time_to_minutes(current_time)
        if is_past:
            result.state = EligibilityState.WINDOW_CLOSED
            result.message = f"Check-in window closed at {schedule.check_in_end}"
        elif current_minutes < time_to_minutes(schedule.check_in_start):
            result.state = EligibilityState.BEFORE_WINDOW
            result.message = f"Check-in window opens at {schedule.check_in_start}"
        elif window_open:
            result.state = EligibilityState.WINDOW_OPEN
            result.message = "Check-in window is open"
        else:
            result.state = EligibilityState.WINDOW_CLOSED
            result.message = f"Check-in window closed at {schedule.check_in_end}"

        return result

    def evaluate_worker(
        self, worker: WorkerContext, timezone_name: str, on_date: Optional[str] = None
    ) -> EligibilityResult:
        return self.evaluate(
            worker.override,
            worker.team,
            worker.company_id,
            timezone_name,
            team_assigned_at=worker.team_assigned_at,
            on_date=on_date,
        )

    def is_window_open(self, schedule: EffectiveSchedule, timezone_name: str) -> bool:
        """True while the current local time is inside the window (inclusive)."""
        return self._window_open_at(schedule, self.clock.current_time(timezone_name))

    def is_window_closed(
        self,
        schedule: EffectiveSchedule,
        timezone_name: str,
        buffer_minutes: int = 0,
        on_date: Optional[str] = None,
    ) -> bool:
        """True once the local time reaches window end plus the buffer.

        A window whose end plus buffer reaches midnight closes when the date
        rolls over; any date before today is closed.
        """
        if on_date is not None and on_date < self.clock.today(timezone_name):
            return True
        deadline = time_to_minutes(schedule.check_in_end) + buffer_minutes
        if deadline >= MINUTES_PER_DAY:
            return False
        return time_to_minutes(self.clock.current_time(timezone_name)) >= deadline

    def get_check_in_status(
        self, worker: WorkerContext, timezone_name: str, has_checked_in_today: bool
    ) -> CheckInStatus:
        """Answer "can this worker check in right now"."""
        eligibility = self.evaluate_worker(worker, timezone_name)

        if eligibility.state == EligibilityState.NOT_ASSIGNED:
            # Unassigned workers may check in any time outside holidays
            holiday = self.holiday_oracle.is_holiday(worker.company_id, eligibility.date)
            eligibility.holiday_name = holiday.holiday_name
            can_check_in = not has_checked_in_today and not holiday.is_holiday
        else:
            can_check_in = (
                not has_checked_in_today and eligibility.state == EligibilityState.WINDOW_OPEN
            )

        if has_checked_in_today:
            message = "You have already checked in today"
        elif eligibility.holiday_name is not None:
            message = f"Today is a holiday: {eligibility.holiday_name}"
        elif eligibility.state == EligibilityState.NOT_ASSIGNED:
            message = "No team assigned - you can check in anytime"
        elif eligibility.state == EligibilityState.NOT_WORK_DAY:
            message = "Today is not a scheduled work day for your team"
        elif eligibility.state == EligibilityState.WINDOW_OPEN:
            message = "You can check in now"
        else:
            message = eligibility.message

        return CheckInStatus(
            eligibility=eligibility,
            has_checked_in_today=has_checked_in_today,
            can_check_in=can_check_in,
            message=message,
        )

    @staticmethod
    def _window_open_at(schedule: EffectiveSchedule, current_time: str) -> bool:
        return is_time_within_window(current_time, schedule.check_in_start, schedule.check_in_end)

    def _assigned_date(self, team_assigned_at: Optional[datetime], timezone_name: str) -> Optional[str]:
        if team_assigned_at is None:
            return None
        return self.clock.format_in_timezone(team_assigned_at, timezone_name)
