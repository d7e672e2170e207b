"""Tests for the check-in eligibility evaluator."""

import pytest
from datetime import datetime, timezone
from unittest.mock import MagicMock

from src.models.dtos import (
    EffectiveSchedule,
    HolidayCheck,
    NOT_A_HOLIDAY,
    PersonScheduleOverride,
    TeamSchedule,
    WorkerContext,
)
from src.services.eligibility import EligibilityEvaluator, EligibilityState
from src.services.schedule_resolver import ScheduleResolver

TZ = "Asia/Manila"

# 2026-01-28 is a Wednesday; Manila is UTC+8
WEDNESDAY_0500 = "2026-01-27T21:00:00"
WEDNESDAY_0730 = "2026-01-27T23:30:00"
WEDNESDAY_1000 = "2026-01-28T02:00:00"
WEDNESDAY_1001 = "2026-01-28T02:01:00"
WEDNESDAY_1100 = "2026-01-28T03:00:00"
SATURDAY_0800 = "2026-01-31T00:00:00"

WEEKDAY_TEAM = TeamSchedule(work_days=frozenset({1, 2, 3, 4, 5}), check_in_start="06:00", check_in_end="10:00")
NO_OVERRIDE = PersonScheduleOverride()


@pytest.fixture
def oracle():
    mock_oracle = MagicMock()
    mock_oracle.is_holiday.return_value = NOT_A_HOLIDAY
    return mock_oracle


@pytest.fixture
def evaluator_at(make_clock, oracle):
    """Evaluator pinned to a UTC instant."""

    def _make(iso_utc):
        return EligibilityEvaluator(
            clock=make_clock(iso_utc),
            holiday_oracle=oracle,
            resolver=ScheduleResolver(),
        )

    return _make


def make_worker(team=WEEKDAY_TEAM, override=NO_OVERRIDE, assigned_at=None):
    return WorkerContext(
        person_id="p1",
        company_id="c1",
        team_id="t1" if team else None,
        role="WORKER",
        team_assigned_at=assigned_at,
        override=override,
        team=team,
    )


class TestEvaluate:
    """State classification in evaluation order."""

    def test_no_team_is_not_assigned(self, evaluator_at, oracle):
        result = evaluator_at(WEDNESDAY_0730).evaluate(NO_OVERRIDE, None, "c1", TZ)

        assert result.state == EligibilityState.NOT_ASSIGNED
        assert result.schedule is None
        assert result.is_work_day is False
        assert result.is_due is False
        oracle.is_holiday.assert_not_called()

    def test_weekend_is_not_work_day(self, evaluator_at, oracle):
        result = evaluator_at(SATURDAY_0800).evaluate(NO_OVERRIDE, WEEKDAY_TEAM, "c1", TZ)

        assert result.state == EligibilityState.NOT_WORK_DAY
        assert result.day_of_week == 6
        assert result.date == "2026-01-31"
        oracle.is_holiday.assert_not_called()

    def test_holiday_on_work_day(self, evaluator_at, oracle):
        oracle.is_holiday.return_value = HolidayCheck(is_holiday=True, holiday_name="Founders Day")

        result = evaluator_at(WEDNESDAY_0730).evaluate(NO_OVERRIDE, WEEKDAY_TEAM, "c1", TZ)

        assert result.state == EligibilityState.HOLIDAY
        assert result.holiday_name == "Founders Day"
        assert result.is_holiday is True
        assert result.is_due is False
        oracle.is_holiday.assert_called_once_with("c1", "2026-01-28")

    def test_holiday_on_non_work_day_reports_not_work_day(self, evaluator_at, oracle):
        oracle.is_holiday.return_value = HolidayCheck(is_holiday=True, holiday_name="Founders Day")

        result = evaluator_at(SATURDAY_0800).evaluate(NO_OVERRIDE, WEEKDAY_TEAM, "c1", TZ)

        assert result.state == EligibilityState.NOT_WORK_DAY

    def test_before_window(self, evaluator_at):
        result = evaluator_at(WEDNESDAY_0500).evaluate(NO_OVERRIDE, WEEKDAY_TEAM, "c1", TZ)

        assert result.state == EligibilityState.BEFORE_WINDOW
        assert result.current_time == "05:00"
        assert result.is_due is True
        assert result.is_window_open is False

    def test_window_open(self, evaluator_at):
        result = evaluator_at(WEDNESDAY_0730).evaluate(NO_OVERRIDE, WEEKDAY_TEAM, "c1", TZ)

        assert result.state == EligibilityState.WINDOW_OPEN
        assert result.is_window_open is True
        assert result.is_due is True

    def test_window_end_is_inclusive(self, evaluator_at):
        result = evaluator_at(WEDNESDAY_1000).evaluate(NO_OVERRIDE, WEEKDAY_TEAM, "c1", TZ)
        assert result.state == EligibilityState.WINDOW_OPEN

    def test_window_closed(self, evaluator_at):
        result = evaluator_at(WEDNESDAY_1001).evaluate(NO_OVERRIDE, WEEKDAY_TEAM, "c1", TZ)

        assert result.state == EligibilityState.WINDOW_CLOSED
        assert result.is_window_open is False

    def test_override_window_is_used(self, evaluator_at):
        override = PersonScheduleOverride(check_in_start="10:30", check_in_end="12:00")

        result = evaluator_at(WEDNESDAY_1100).evaluate(override, WEEKDAY_TEAM, "c1", TZ)

        assert result.state == EligibilityState.WINDOW_OPEN
        assert result.schedule.check_in_start == "10:30"

    def test_override_work_days_make_weekend_a_work_day(self, evaluator_at):
        override = PersonScheduleOverride(work_days=frozenset({6}))

        result = evaluator_at(SATURDAY_0800).evaluate(override, WEEKDAY_TEAM, "c1", TZ)

        assert result.state == EligibilityState.WINDOW_OPEN

    def test_date_follows_company_zone(self, make_clock, oracle):
        # 2026-01-27T23:30Z is still Tuesday in Honolulu
        evaluator = EligibilityEvaluator(make_clock(WEDNESDAY_0730), oracle, ScheduleResolver())

        result = evaluator.evaluate(NO_OVERRIDE, WEEKDAY_TEAM, "c1", "Pacific/Honolulu")

        assert result.date == "2026-01-27"
        assert result.current_time == "13:30"
        assert result.state == EligibilityState.WINDOW_CLOSED


class TestAssignedToday:
    """A worker is not due on the day they join the team."""

    def test_assigned_today_is_not_due(self, evaluator_at):
        assigned_at = datetime(2026, 1, 27, 22, 0, tzinfo=timezone.utc)  # 06:00 Manila

        result = evaluator_at(WEDNESDAY_0730).evaluate(
            NO_OVERRIDE, WEEKDAY_TEAM, "c1", TZ, team_assigned_at=assigned_at
        )

        assert result.is_assigned_today is True
        assert result.is_due is False
        assert result.state == EligibilityState.WINDOW_OPEN

    def test_assigned_yesterday_local_time_is_due(self, evaluator_at):
        assigned_at = datetime(2026, 1, 27, 15, 59, tzinfo=timezone.utc)  # 23:59 Manila, Jan 27

        result = evaluator_at(WEDNESDAY_0730).evaluate(
            NO_OVERRIDE, WEEKDAY_TEAM, "c1", TZ, team_assigned_at=assigned_at
        )

        assert result.is_assigned_today is False
        assert result.is_due is True

    def test_assignment_after_the_date_is_not_due(self, evaluator_at):
        assigned_at = datetime(2026, 1, 28, 17, 0, tzinfo=timezone.utc)  # 01:00 Manila, Jan 29

        result = evaluator_at(WEDNESDAY_1100).evaluate(
            NO_OVERRIDE, WEEKDAY_TEAM, "c1", TZ, team_assigned_at=assigned_at
        )

        assert result.state == EligibilityState.WINDOW_CLOSED
        assert result.is_assigned_today is False
        assert result.is_due is False


class TestPastDate:
    """Evaluating a date that has already ended in the company zone."""

    def test_past_work_day_is_closed(self, evaluator_at, oracle):
        # 05:00 Wednesday, before today's window; Tuesday is over
        result = evaluator_at(WEDNESDAY_0500).evaluate(
            NO_OVERRIDE, WEEKDAY_TEAM, "c1", TZ, on_date="2026-01-27"
        )

        assert result.date == "2026-01-27"
        assert result.day_of_week == 2
        assert result.state == EligibilityState.WINDOW_CLOSED
        assert result.is_window_open is False
        assert result.is_due is True
        oracle.is_holiday.assert_called_once_with("c1", "2026-01-27")

    def test_past_window_spanning_the_clock_is_closed(self, evaluator_at):
        # 07:30 now falls inside 06:00-10:00, but the date asked about is yesterday
        result = evaluator_at(WEDNESDAY_0730).evaluate(
            NO_OVERRIDE, WEEKDAY_TEAM, "c1", TZ, on_date="2026-01-27"
        )

        assert result.state == EligibilityState.WINDOW_CLOSED
        assert result.is_window_open is False

    def test_past_date_assigned_that_day_is_not_due(self, evaluator_at):
        assigned_at = datetime(2026, 1, 27, 1, 0, tzinfo=timezone.utc)  # 09:00 Manila, Jan 27

        result = evaluator_at(WEDNESDAY_0730).evaluate(
            NO_OVERRIDE, WEEKDAY_TEAM, "c1", TZ, team_assigned_at=assigned_at, on_date="2026-01-27"
        )

        assert result.is_assigned_today is True
        assert result.is_due is False

    def test_past_non_work_day(self, evaluator_at):
        # Saturday 08:00; Friday is a work day, Sunday is not
        evaluator = evaluator_at(SATURDAY_0800)

        assert evaluator.evaluate(NO_OVERRIDE, WEEKDAY_TEAM, "c1", TZ, on_date="2026-01-30").state == (
            EligibilityState.WINDOW_CLOSED
        )
        assert evaluator.evaluate(NO_OVERRIDE, WEEKDAY_TEAM, "c1", TZ, on_date="2026-01-25").state == (
            EligibilityState.NOT_WORK_DAY
        )


class TestWindowPredicates:
    """is_window_open and is_window_closed with grace buffers."""

    SCHEDULE = EffectiveSchedule(work_days=frozenset({1, 2, 3, 4, 5}), check_in_start="06:00", check_in_end="10:00")

    def test_is_window_open(self, evaluator_at):
        assert evaluator_at(WEDNESDAY_0730).is_window_open(self.SCHEDULE, TZ) is True
        assert evaluator_at(WEDNESDAY_1001).is_window_open(self.SCHEDULE, TZ) is False

    def test_closed_without_buffer(self, evaluator_at):
        assert evaluator_at(WEDNESDAY_0730).is_window_closed(self.SCHEDULE, TZ) is False
        assert evaluator_at(WEDNESDAY_1000).is_window_closed(self.SCHEDULE, TZ) is True
        assert evaluator_at(WEDNESDAY_1001).is_window_closed(self.SCHEDULE, TZ) is True

    @pytest.mark.parametrize(
        "utc_instant,expected",
        [
            ("2026-01-28T02:20:00", False),  # 10:20, inside the buffer
            ("2026-01-28T02:29:00", False),
            ("2026-01-28T02:30:00", True),  # 10:30, deadline itself
        ],
    )
    def test_closed_with_buffer(self, evaluator_at, utc_instant, expected):
        evaluator = evaluator_at(utc_instant)
        assert evaluator.is_window_closed(self.SCHEDULE, TZ, buffer_minutes=30) is expected

    def test_buffer_past_midnight_stays_open_until_rollover(self, evaluator_at):
        late = EffectiveSchedule(work_days=frozenset({3}), check_in_start="22:00", check_in_end="23:45")

        # 23:59 Manila
        evaluator = evaluator_at("2026-01-28T15:59:00")

        assert evaluator.is_window_closed(late, TZ, buffer_minutes=0) is True
        assert evaluator.is_window_closed(late, TZ, buffer_minutes=30) is False

        # 00:05 on Jan 29
        next_day = evaluator_at("2026-01-28T16:05:00")
        assert next_day.is_window_closed(late, TZ, buffer_minutes=30, on_date="2026-01-28") is True
        assert next_day.is_window_closed(late, TZ, buffer_minutes=30, on_date="2026-01-29") is False


class TestCheckInStatus:
    """Combined eligibility and submission state."""

    def test_can_check_in_while_open(self, evaluator_at):
        status = evaluator_at(WEDNESDAY_0730).get_check_in_status(make_worker(), TZ, False)

        assert status.can_check_in is True
        assert status.message == "You can check in now"

    def test_already_checked_in(self, evaluator_at):
        status = evaluator_at(WEDNESDAY_0730).get_check_in_status(make_worker(), TZ, True)

        assert status.can_check_in is False
        assert status.message == "You have already checked in today"
        assert status.to_dict()["has_checked_in_today"] is True

    def test_before_window_message(self, evaluator_at):
        status = evaluator_at(WEDNESDAY_0500).get_check_in_status(make_worker(), TZ, False)

        assert status.can_check_in is False
        assert status.message == "Check-in window opens at 06:00"

    def test_closed_message(self, evaluator_at):
        status = evaluator_at(WEDNESDAY_1100).get_check_in_status(make_worker(), TZ, False)

        assert status.can_check_in is False
        assert status.message == "Check-in window closed at 10:00"

    def test_not_work_day_message(self, evaluator_at):
        status = evaluator_at(SATURDAY_0800).get_check_in_status(make_worker(), TZ, False)

        assert status.can_check_in is False
        assert status.message == "Today is not a scheduled work day for your team"

    def test_holiday_message(self, evaluator_at, oracle):
        oracle.is_holiday.return_value = HolidayCheck(is_holiday=True, holiday_name="Founders Day")

        status = evaluator_at(WEDNESDAY_0730).get_check_in_status(make_worker(), TZ, False)

        assert status.can_check_in is False
        assert status.message == "Today is a holiday: Founders Day"

    def test_unassigned_can_check_in_any_time(self, evaluator_at):
        status = evaluator_at(SATURDAY_0800).get_check_in_status(make_worker(team=None), TZ, False)

        assert status.eligibility.state == EligibilityState.NOT_ASSIGNED
        assert status.can_check_in is True
        assert status.message == "No team assigned - you can check in anytime"

    def test_unassigned_blocked_on_holiday(self, evaluator_at, oracle):
        oracle.is_holiday.return_value = HolidayCheck(is_holiday=True, holiday_name="Founders Day")

        status = evaluator_at(WEDNESDAY_0730).get_check_in_status(make_worker(team=None), TZ, False)

        assert status.can_check_in is False
        assert status.message == "Today is a holiday: Founders Day"

    def test_to_dict_shape(self, evaluator_at):
        data = evaluator_at(WEDNESDAY_0730).get_check_in_status(make_worker(), TZ, False).to_dict()

        assert data["state"] == "WINDOW_OPEN"
        assert data["date"] == "2026-01-28"
        assert data["schedule"]["window_description"] == "6:00 AM - 10:00 AM"
        assert data["can_check_in"] is True
