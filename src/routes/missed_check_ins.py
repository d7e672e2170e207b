"""Missed check-in routes."""

import logging
from flask import Blueprint, request

from src.managers.missed_check_in_manager import MissedCheckInManager
from src.managers.workforce_manager import WorkforceManager
from src.routes.responses import error_response, success_response
from src.utils.timezone import parse_date_str

logger = logging.getLogger(__name__)

missed_check_ins_bp = Blueprint('missed_check_ins', __name__, url_prefix='/api/missed-check-ins')


@missed_check_ins_bp.route('/sweep', methods=['POST'])
def run_sweep():
    """Run the missed check-in sweep on demand."""
    try:
        from src.jobs.missed_check_in_detector import run_missed_check_in_detector

        logger.info("Manual missed check-in sweep requested")
        stats = run_missed_check_in_detector()
        if not stats.get('success'):
            return error_response(stats.get('error', 'Sweep failed'), status_code=409, details=stats)
        return success_response(data=stats, message='Sweep completed')
    except Exception as e:
        logger.error(f"Error running missed check-in sweep: {e}", exc_info=True)
        return error_response(str(e), status_code=500)


@missed_check_ins_bp.route('/companies/<company_id>', methods=['GET'])
def list_company_missed_check_ins(company_id):
    """List a company's missed check-ins, optionally for one ?date= and ?unresolved=true."""
    try:
        if WorkforceManager().get_company(company_id) is None:
            return error_response('Company not found', status_code=404)

        missed_date = request.args.get('date')
        try:
            missed_date = parse_date_str(missed_date) if missed_date else None
        except ValueError:
            return error_response('Date must be in YYYY-MM-DD format', status_code=400)

        unresolved_only = request.args.get('unresolved', 'false').lower() == 'true'
        records = MissedCheckInManager().list_for_company(
            company_id, missed_date=missed_date, unresolved_only=unresolved_only
        )
        return success_response(data=[record.to_dict() for record in records])
    except Exception as e:
        logger.error(f"Error listing missed check-ins for company {company_id}: {e}", exc_info=True)
        return error_response(str(e), status_code=500)


@missed_check_ins_bp.route('/persons/<person_id>', methods=['GET'])
def list_person_missed_check_ins(person_id):
    """List a person's most recent missed check-ins (?limit=, default 50)."""
    try:
        limit = min(request.args.get('limit', default=50, type=int), 200)
        records = MissedCheckInManager().list_for_person(person_id, limit=limit)
        return success_response(data=[record.to_dict() for record in records])
    except Exception as e:
        logger.error(f"Error listing missed check-ins for person {person_id}: {e}", exc_info=True)
        return error_response(str(e), status_code=500)
