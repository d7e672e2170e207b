#!/usr/bin/env python3
"""Command-line entry point for the check-in eligibility engine."""

import argparse
import json
import logging
import sys

from config.settings import settings


# Setup logging
logging.basicConfig(
    level=getattr(logging, settings.agent.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def init_db() -> int:
    """Create database tables."""
    from src.utils.database import init_database

    if init_database():
        logger.info("Database initialized")
        return 0
    logger.error("Database initialization failed")
    return 1


def run_sweep() -> int:
    """Run the missed check-in sweep once and print its statistics."""
    from src.jobs.missed_check_in_detector import run_missed_check_in_detector

    stats = run_missed_check_in_detector()
    print(json.dumps(stats, indent=2, default=str))
    return 0 if stats.get("success") else 1


def serve(host: str, port: int, debug: bool) -> int:
    """Run the Flask development server."""
    from src.web_interface import app

    logger.info(f"Starting web API on {host}:{port}")
    app.run(host=host, port=port, debug=debug)
    return 0


def show_status(person_id: str) -> int:
    """Print the check-in status of one person."""
    from src.managers.check_in_manager import CheckInManager
    from src.managers.workforce_manager import WorkforceManager
    from src.services.eligibility import EligibilityEvaluator
    from src.utils.timezone import default_clock, parse_date_str

    workforce = WorkforceManager()
    worker = workforce.get_worker(person_id)
    company = workforce.get_company(worker.company_id) if worker else None
    if worker is None or company is None:
        logger.error(f"Person {person_id} not found")
        return 1

    today = parse_date_str(default_clock.today(company.timezone))
    has_checked_in = CheckInManager().has_check_in(person_id, today)
    status = EligibilityEvaluator().get_check_in_status(worker, company.timezone, has_checked_in)
    print(json.dumps(status.to_dict(), indent=2, default=str))
    return 0


def main(argv=None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Check-in eligibility and missed check-in detection")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create database tables")
    subparsers.add_parser("sweep", help="Run the missed check-in sweep once")

    serve_parser = subparsers.add_parser("serve", help="Run the web API")
    serve_parser.add_argument("--host", default=settings.web.host)
    serve_parser.add_argument("--port", type=int, default=settings.web.port)
    serve_parser.add_argument("--debug", action="store_true", default=settings.web.debug)

    status_parser = subparsers.add_parser("status", help="Show a person's check-in status")
    status_parser.add_argument("person_id")

    args = parser.parse_args(argv)

    if args.command == "init-db":
        return init_db()
    if args.command == "sweep":
        return run_sweep()
    if args.command == "serve":
        return serve(args.host, args.port, args.debug)
    return show_status(args.person_id)


if __name__ == "__main__":
    sys.exit(main())
