"""Company holiday routes."""

import logging
from flask import Blueprint, request
from pydantic import ValidationError

from src.managers.holiday_manager import HolidayManager
from src.managers.workforce_manager import WorkforceManager
from src.models.validators import (
    HolidayCalendarRequest,
    HolidayCreateRequest,
    HolidayUpdateRequest,
)
from src.routes.responses import error_response, success_response
from src.services.holiday_oracle import get_holiday_oracle
from src.utils.timezone import parse_date_str

logger = logging.getLogger(__name__)

holidays_bp = Blueprint('holidays', __name__, url_prefix='/api/companies')


def _holiday_manager():
    # Share the oracle's cache so writes invalidate what lookups read
    return HolidayManager(cache=get_holiday_oracle().cache)


@holidays_bp.route('/<company_id>/holidays', methods=['GET'])
def list_holidays(company_id):
    """List company holidays, optionally filtered by ?year=."""
    try:
        year = request.args.get('year', type=int)
        holidays = _holiday_manager().list_holidays(company_id, year=year)
        return success_response(data=holidays)
    except Exception as e:
        logger.error(f"Error listing holidays for company {company_id}: {e}", exc_info=True)
        return error_response(str(e), status_code=500)


@holidays_bp.route('/<company_id>/holidays', methods=['POST'])
def create_holiday(company_id):
    """Create a holiday. Invalidates the company's holiday cache."""
    try:
        payload = HolidayCreateRequest(**(request.get_json(silent=True) or {}))
    except ValidationError as e:
        logger.warning(f"Validation error creating holiday: {e}")
        return error_response('Invalid parameters', status_code=400, details=e.errors(include_context=False))

    try:
        if WorkforceManager().get_company(company_id) is None:
            return error_response('Company not found', status_code=404)

        holiday = _holiday_manager().create_holiday(
            company_id,
            payload.name,
            parse_date_str(payload.date),
            is_recurring=payload.is_recurring,
        )
        return success_response(data=holiday, message='Holiday created', status_code=201)
    except Exception as e:
        logger.error(f"Error creating holiday for company {company_id}: {e}", exc_info=True)
        return error_response(str(e), status_code=500)


@holidays_bp.route('/<company_id>/holidays/<holiday_id>', methods=['PUT'])
def update_holiday(company_id, holiday_id):
    """Update a holiday. Invalidates the company's holiday cache."""
    try:
        payload = HolidayUpdateRequest(**(request.get_json(silent=True) or {}))
    except ValidationError as e:
        logger.warning(f"Validation error updating holiday: {e}")
        return error_response('Invalid parameters', status_code=400, details=e.errors(include_context=False))

    try:
        updates = payload.model_dump(exclude_none=True)
        if 'date' in updates:
            updates['date'] = parse_date_str(updates['date'])

        holiday = _holiday_manager().update_holiday(company_id, holiday_id, updates)
        if holiday is None:
            return error_response('Holiday not found', status_code=404)
        return success_response(data=holiday, message='Holiday updated')
    except Exception as e:
        logger.error(f"Error updating holiday {holiday_id}: {e}", exc_info=True)
        return error_response(str(e), status_code=500)


@holidays_bp.route('/<company_id>/holidays/<holiday_id>', methods=['DELETE'])
def delete_holiday(company_id, holiday_id):
    """Delete a holiday. Invalidates the company's holiday cache."""
    try:
        if not _holiday_manager().delete_holiday(company_id, holiday_id):
            return error_response('Holiday not found', status_code=404)
        return success_response(message='Holiday deleted')
    except Exception as e:
        logger.error(f"Error deleting holiday {holiday_id}: {e}", exc_info=True)
        return error_response(str(e), status_code=500)


@holidays_bp.route('/<company_id>/holidays/calendar', methods=['GET'])
def holiday_calendar(company_id):
    """Holiday dates in [start, end] for calendar rendering."""
    try:
        params = HolidayCalendarRequest(**request.args.to_dict())
    except ValidationError as e:
        logger.warning(f"Validation error for holiday calendar: {e}")
        return error_response('Invalid parameters', status_code=400, details=e.errors(include_context=False))

    try:
        company = WorkforceManager().get_company(company_id)
        if company is None:
            return error_response('Company not found', status_code=404)

        dates = get_holiday_oracle().build_holiday_date_set(
            company_id, params.start, params.end, company.timezone
        )
        return success_response(data={
            'start': params.start,
            'end': params.end,
            'dates': sorted(dates),
        })
    except Exception as e:
        logger.error(f"Error building holiday calendar for company {company_id}: {e}", exc_info=True)
        return error_response(str(e), status_code=500)
