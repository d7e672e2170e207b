"""Tests for MissedCheckInManager."""

import pytest
from datetime import date

from src.managers.missed_check_in_manager import MissedCheckInManager


@pytest.fixture
def missed_manager(session_factory):
    return MissedCheckInManager(session_factory=session_factory)


@pytest.fixture
def people(session_factory, seed):
    with session_factory() as session:
        company = seed.company(session)
        team = seed.team(session, company)
        ana = seed.person(session, company, team)
        ben = seed.person(session, company, team, first_name="Ben", last_name="Cruz")
        ids = {"company": company.id, "team": team.id, "ana": ana.id, "ben": ben.id}
    return ids


def miss(people, person, missed_date, **snapshot):
    values = {
        "company_id": people["company"],
        "person_id": people[person],
        "team_id": people["team"],
        "missed_date": missed_date,
        "schedule_window": "6:00 AM - 10:00 AM",
        "day_of_week": 3,
        "week_of_month": 4,
    }
    values.update(snapshot)
    return values


class TestCreateMany:

    def test_creates_records(self, missed_manager, people):
        created, skipped = missed_manager.create_many([
            miss(people, "ana", date(2026, 1, 28), misses_in_last_30d=0, check_in_streak_before=None),
            miss(people, "ben", date(2026, 1, 28)),
        ])

        assert skipped == 0
        assert len(created) == 2
        assert created[0].snapshot["misses_in_last_30d"] == 0
        assert created[0].snapshot["check_in_streak_before"] is None
        assert created[0].to_dict()["missed_date"] == "2026-01-28"

    def test_duplicate_is_skipped(self, missed_manager, people):
        missed_manager.create_many([miss(people, "ana", date(2026, 1, 28))])

        created, skipped = missed_manager.create_many([
            miss(people, "ana", date(2026, 1, 28)),
            miss(people, "ben", date(2026, 1, 28)),
        ])

        assert skipped == 1
        assert [dto.person_id for dto in created] == [people["ben"]]
        assert len(missed_manager.list_for_company(people["company"])) == 2

    def test_same_person_different_dates(self, missed_manager, people):
        created, skipped = missed_manager.create_many([
            miss(people, "ana", date(2026, 1, 27)),
            miss(people, "ana", date(2026, 1, 28)),
        ])
        assert (len(created), skipped) == (2, 0)


class TestQueries:

    @pytest.fixture(autouse=True)
    def history(self, missed_manager, people):
        missed_manager.create_many([
            miss(people, "ana", date(2026, 1, 14)),
            miss(people, "ana", date(2026, 1, 21)),
            miss(people, "ana", date(2026, 1, 28)),
            miss(people, "ben", date(2026, 1, 28)),
        ])

    def test_find_existing_for_date(self, missed_manager, people):
        existing = missed_manager.find_existing_for_date([people["ana"], "nobody"], date(2026, 1, 21))
        assert existing == {people["ana"]}

    def test_get_history_half_open(self, missed_manager, people):
        history = missed_manager.get_history(people["ana"], date(2026, 1, 14), date(2026, 1, 28))
        assert history == [date(2026, 1, 14), date(2026, 1, 21)]

    def test_get_histories_newest_first(self, missed_manager, people):
        histories = missed_manager.get_histories(
            [people["ana"], people["ben"]], date(2026, 1, 1), date(2026, 1, 28)
        )
        assert histories[people["ana"]] == [date(2026, 1, 21), date(2026, 1, 14)]
        assert histories[people["ben"]] == []

    def test_list_for_person(self, missed_manager, people):
        records = missed_manager.list_for_person(people["ana"], limit=2)
        assert [r.missed_date for r in records] == [date(2026, 1, 28), date(2026, 1, 21)]

    def test_list_for_company_by_date(self, missed_manager, people):
        records = missed_manager.list_for_company(people["company"], missed_date=date(2026, 1, 28))
        assert {r.person_id for r in records} == {people["ana"], people["ben"]}

    def test_resolve(self, missed_manager, people):
        assert missed_manager.resolve(people["ben"], date(2026, 1, 28), "check-in-1") is True
        assert missed_manager.resolve(people["ben"], date(2026, 1, 28), "check-in-2") is False

        unresolved = missed_manager.list_for_company(people["company"], unresolved_only=True)
        assert people["ben"] not in {r.person_id for r in unresolved}
        assert len(unresolved) == 3
