"""Check-in eligibility routes."""

import logging
from flask import Blueprint, request
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError

from src.managers.check_in_manager import CheckInManager
from src.managers.workforce_manager import WorkforceManager
from src.models.validators import (
    CheckInSubmitRequest,
    PersonScheduleOverrideRequest,
    TeamScheduleRequest,
)
from src.routes.responses import error_response, success_response
from src.services.eligibility import EligibilityEvaluator, EligibilityState
from src.utils.timezone import InvalidTimezoneError, default_clock, parse_date_str

logger = logging.getLogger(__name__)

check_in_bp = Blueprint('check_in', __name__, url_prefix='/api/check-in')

# Replaced in tests with a fixed clock
clock = default_clock


def _load_worker(person_id):
    """Return (worker, company) or (None, None) if either is missing."""
    workforce = WorkforceManager()
    worker = workforce.get_worker(person_id)
    if worker is None:
        return None, None
    return worker, workforce.get_company(worker.company_id)


@check_in_bp.route('/status/<person_id>', methods=['GET'])
def get_check_in_status(person_id):
    """
    Answer "can this worker check in right now".

    Returns:
        JSON with eligibility state, window, holiday and submission status
    """
    try:
        worker, company = _load_worker(person_id)
        if worker is None or company is None:
            return error_response('Person not found', status_code=404)

        evaluator = EligibilityEvaluator(clock=clock)
        today = clock.today(company.timezone)
        has_checked_in = CheckInManager().has_check_in(person_id, parse_date_str(today))

        status = evaluator.get_check_in_status(worker, company.timezone, has_checked_in)
        return success_response(data=status.to_dict())

    except InvalidTimezoneError as e:
        logger.error(f"Company of person {person_id} has an invalid timezone: {e}")
        return error_response(str(e), status_code=500)
    except Exception as e:
        logger.error(f"Error getting check-in status for {person_id}: {e}", exc_info=True)
        return error_response(str(e), status_code=500)


@check_in_bp.route('/submit/<person_id>', methods=['POST'])
def submit_check_in(person_id):
    """
    Record today's check-in for a worker.

    Submissions after the window closes are accepted as late check-ins and
    resolve an already detected miss for the day.
    """
    try:
        payload = CheckInSubmitRequest(**(request.get_json(silent=True) or {}))
    except ValidationError as e:
        logger.warning(f"Validation error submitting check-in: {e}")
        return error_response('Invalid parameters', status_code=400, details=e.errors(include_context=False))

    try:
        worker, company = _load_worker(person_id)
        if worker is None or company is None:
            return error_response('Person not found', status_code=404)

        check_in_manager = CheckInManager()
        today = clock.today(company.timezone)
        has_checked_in = check_in_manager.has_check_in(person_id, parse_date_str(today))
        status = EligibilityEvaluator(clock=clock).get_check_in_status(worker, company.timezone, has_checked_in)

        state = status.eligibility.state
        rejected = has_checked_in or status.eligibility.is_holiday or state in (
            EligibilityState.NOT_WORK_DAY,
            EligibilityState.BEFORE_WINDOW,
        )
        if rejected:
            return error_response(status.message, status_code=409, details=status.to_dict())

        try:
            check_in_id = check_in_manager.record_check_in(
                company.id, person_id, parse_date_str(today), readiness_score=payload.readiness_score
            )
        except IntegrityError:
            # Lost a race with a concurrent submission for the same day
            logger.info(f"Duplicate check-in for {person_id} on {today}")
            return error_response('You have already checked in today', status_code=409)

        return success_response(
            data={
                'check_in_id': check_in_id,
                'date': today,
                'is_late': state == EligibilityState.WINDOW_CLOSED,
            },
            message='Check-in recorded',
            status_code=201,
        )

    except Exception as e:
        logger.error(f"Error submitting check-in for {person_id}: {e}", exc_info=True)
        return error_response(str(e), status_code=500)


@check_in_bp.route('/schedule/<person_id>', methods=['GET'])
def get_effective_schedule(person_id):
    """Effective schedule of a worker after merging overrides with the team default."""
    try:
        worker, company = _load_worker(person_id)
        if worker is None or company is None:
            return error_response('Person not found', status_code=404)

        if worker.team is None:
            return success_response(
                data={'person_id': person_id, 'team_id': None, 'schedule': None},
                message='No team assigned',
            )

        evaluator = EligibilityEvaluator(clock=clock)
        schedule = evaluator.resolver.effective_schedule(worker.override, worker.team)
        return success_response(data={
            'person_id': person_id,
            'team_id': worker.team_id,
            'timezone': company.timezone,
            'schedule': schedule.to_dict(),
            'is_window_open': evaluator.is_window_open(schedule, company.timezone),
        })

    except Exception as e:
        logger.error(f"Error resolving schedule for {person_id}: {e}", exc_info=True)
        return error_response(str(e), status_code=500)


@check_in_bp.route('/teams/<team_id>/schedule', methods=['PUT'])
def update_team_schedule(team_id):
    """Replace a team's default work days and check-in window."""
    try:
        payload = TeamScheduleRequest(**(request.get_json(silent=True) or {}))
    except ValidationError as e:
        logger.warning(f"Validation error updating team schedule: {e}")
        return error_response('Invalid parameters', status_code=400, details=e.errors(include_context=False))

    try:
        if not WorkforceManager().update_team_schedule(team_id, **payload.model_dump()):
            return error_response('Team not found', status_code=404)
        return success_response(data=payload.model_dump(), message='Team schedule updated')
    except Exception as e:
        logger.error(f"Error updating schedule of team {team_id}: {e}", exc_info=True)
        return error_response(str(e), status_code=500)


@check_in_bp.route('/persons/<person_id>/schedule', methods=['PUT'])
def update_person_schedule(person_id):
    """Replace a person's schedule override. Omitted fields fall back to the team."""
    try:
        payload = PersonScheduleOverrideRequest(**(request.get_json(silent=True) or {}))
    except ValidationError as e:
        logger.warning(f"Validation error updating person schedule: {e}")
        return error_response('Invalid parameters', status_code=400, details=e.errors(include_context=False))

    try:
        if not WorkforceManager().update_person_schedule(person_id, **payload.model_dump()):
            return error_response('Person not found', status_code=404)
        return success_response(data=payload.model_dump(), message='Schedule override updated')
    except Exception as e:
        logger.error(f"Error updating schedule override of person {person_id}: {e}", exc_info=True)
        return error_response(str(e), status_code=500)
