"""Tests for check-in eligibility routes."""

import pytest
from datetime import date
from unittest.mock import patch

from src.managers.missed_check_in_manager import MissedCheckInManager
from src.models import Person, Team

# 2026-01-28 is a Wednesday; Manila is UTC+8
WEDNESDAY_0730 = "2026-01-27T23:30:00"
WEDNESDAY_1100 = "2026-01-28T03:00:00"
WEDNESDAY_0500 = "2026-01-27T21:00:00"
SATURDAY_0800 = "2026-01-31T00:00:00"


@pytest.fixture
def org(app_db, seed):
    with app_db() as session:
        company = seed.company(session)
        team = seed.team(session, company)
        worker = seed.person(session, company, team)
        floater = seed.person(session, company, None, first_name="Flo")
        ids = {"company": company.id, "team": team.id, "worker": worker.id, "floater": floater.id}
    return ids


@pytest.fixture
def at(make_clock):
    """Pin the route clock to a UTC instant for the duration of a test."""
    patchers = []

    def _at(iso_utc):
        patcher = patch("src.routes.check_in.clock", make_clock(iso_utc))
        patcher.start()
        patchers.append(patcher)

    yield _at
    for patcher in patchers:
        patcher.stop()


class TestStatus:

    def test_window_open(self, client, org, at):
        at(WEDNESDAY_0730)

        response = client.get(f"/api/check-in/status/{org['worker']}")

        assert response.status_code == 200
        data = response.get_json()["data"]
        assert data["state"] == "WINDOW_OPEN"
        assert data["can_check_in"] is True
        assert data["date"] == "2026-01-28"
        assert data["schedule"]["check_in_start"] == "06:00"

    def test_already_checked_in(self, client, app_db, seed, org, at):
        at(WEDNESDAY_0730)
        with app_db() as session:
            seed.check_in(session, session.get(Person, org["worker"]), date(2026, 1, 28))

        data = client.get(f"/api/check-in/status/{org['worker']}").get_json()["data"]

        assert data["has_checked_in_today"] is True
        assert data["can_check_in"] is False

    def test_holiday(self, client, org, at):
        at(WEDNESDAY_0730)
        client.post(
            f"/api/companies/{org['company']}/holidays",
            json={"name": "Founders Day", "date": "2026-01-28"},
        )

        data = client.get(f"/api/check-in/status/{org['worker']}").get_json()["data"]

        assert data["state"] == "HOLIDAY"
        assert data["message"] == "Today is a holiday: Founders Day"

    def test_unassigned(self, client, org, at):
        at(SATURDAY_0800)

        data = client.get(f"/api/check-in/status/{org['floater']}").get_json()["data"]

        assert data["state"] == "NOT_ASSIGNED"
        assert data["can_check_in"] is True

    def test_unknown_person(self, client, app_db):
        response = client.get("/api/check-in/status/missing")

        assert response.status_code == 404
        assert response.get_json() == {"success": False, "error": "Person not found"}


class TestSubmit:

    def test_submit_in_window(self, client, org, at):
        at(WEDNESDAY_0730)

        response = client.post(f"/api/check-in/submit/{org['worker']}", json={"readiness_score": 82})

        assert response.status_code == 201
        data = response.get_json()["data"]
        assert data["date"] == "2026-01-28"
        assert data["is_late"] is False

    def test_second_submission_conflicts(self, client, org, at):
        at(WEDNESDAY_0730)
        client.post(f"/api/check-in/submit/{org['worker']}", json={})

        response = client.post(f"/api/check-in/submit/{org['worker']}", json={})

        assert response.status_code == 409
        assert response.get_json()["error"] == "You have already checked in today"

    def test_concurrent_duplicate_conflicts(self, client, org, at):
        at(WEDNESDAY_0730)
        client.post(f"/api/check-in/submit/{org['worker']}", json={})

        # The other request passed the has_check_in check before this one committed
        with patch("src.routes.check_in.CheckInManager.has_check_in", return_value=False):
            response = client.post(f"/api/check-in/submit/{org['worker']}", json={})

        assert response.status_code == 409
        assert response.get_json()["error"] == "You have already checked in today"

    def test_before_window_rejected(self, client, org, at):
        at(WEDNESDAY_0500)

        response = client.post(f"/api/check-in/submit/{org['worker']}", json={})

        assert response.status_code == 409
        assert response.get_json()["error"] == "Check-in window opens at 06:00"

    def test_late_submission_resolves_miss(self, client, app_db, org, at):
        at(WEDNESDAY_1100)
        MissedCheckInManager().create_many([
            {"company_id": org["company"], "person_id": org["worker"], "missed_date": date(2026, 1, 28)}
        ])

        response = client.post(f"/api/check-in/submit/{org['worker']}", json={})

        assert response.status_code == 201
        assert response.get_json()["data"]["is_late"] is True
        records = MissedCheckInManager().list_for_person(org["worker"])
        assert records[0].resolved_by_check_in_id == response.get_json()["data"]["check_in_id"]

    def test_invalid_score(self, client, org):
        response = client.post(f"/api/check-in/submit/{org['worker']}", json={"readiness_score": 140})

        assert response.status_code == 400
        assert response.get_json()["details"][0]["loc"] == ["readiness_score"]


class TestSchedule:

    def test_effective_schedule_with_override(self, client, app_db, org, at):
        at(WEDNESDAY_0730)
        with app_db() as session:
            session.get(Person, org["worker"]).check_in_end = "08:00"

        data = client.get(f"/api/check-in/schedule/{org['worker']}").get_json()["data"]

        assert data["schedule"]["check_in_start"] == "06:00"
        assert data["schedule"]["check_in_end"] == "08:00"
        assert data["is_window_open"] is True
        assert data["timezone"] == "Asia/Manila"

    def test_unassigned_has_no_schedule(self, client, org):
        response = client.get(f"/api/check-in/schedule/{org['floater']}")

        assert response.get_json()["data"]["schedule"] is None

    def test_update_team_schedule(self, client, app_db, org):
        response = client.put(
            f"/api/check-in/teams/{org['team']}/schedule",
            json={"work_days": "1,2,3,4,5,6", "check_in_start": "05:30", "check_in_end": "09:30"},
        )

        assert response.status_code == 200
        with app_db() as session:
            team = session.get(Team, org["team"])
            assert (team.work_days, team.check_in_start, team.check_in_end) == ("1,2,3,4,5,6", "05:30", "09:30")

    @pytest.mark.parametrize(
        "payload",
        [
            {"work_days": "1,2,9", "check_in_start": "06:00", "check_in_end": "10:00"},
            {"work_days": "1,2", "check_in_start": "6:00", "check_in_end": "10:00"},
            {"work_days": "1,2", "check_in_start": "10:00", "check_in_end": "10:00"},
        ],
    )
    def test_invalid_team_schedule(self, client, org, payload):
        response = client.put(f"/api/check-in/teams/{org['team']}/schedule", json=payload)
        assert response.status_code == 400

    def test_update_unknown_team(self, client, app_db):
        response = client.put(
            "/api/check-in/teams/missing/schedule",
            json={"work_days": "1", "check_in_start": "06:00", "check_in_end": "10:00"},
        )
        assert response.status_code == 404

    def test_person_override_can_be_cleared(self, client, app_db, org):
        client.put(f"/api/check-in/persons/{org['worker']}/schedule", json={"check_in_start": "07:00"})
        with app_db() as session:
            assert session.get(Person, org["worker"]).check_in_start == "07:00"

        response = client.put(f"/api/check-in/persons/{org['worker']}/schedule", json={})

        assert response.status_code == 200
        with app_db() as session:
            assert session.get(Person, org["worker"]).check_in_start is None
