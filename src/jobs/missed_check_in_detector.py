"""
Missed Check-In Detector Job

Sweep that records a missed check-in for every worker whose check-in window
closed without a submission. Runs every 15 minutes over yesterday and today;
re-runs are no-ops because records are unique per (person, date).
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from config.settings import settings
from src.managers.check_in_manager import CheckInManager
from src.managers.missed_check_in_manager import MissedCheckInManager
from src.managers.workforce_manager import CompanyContext, WorkforceManager
from src.models.dtos import MissedCheckInDTO, WorkerContext
from src.services.eligibility import EligibilityEvaluator, EligibilityState
from src.services.holiday_oracle import HolidayOracle, get_holiday_oracle
from src.services.snapshot_service import MissedCheckInSnapshotService
from src.utils.events import Event
from src.utils.timezone import DATE_FORMAT, CalendarClock, default_clock, parse_date_str

logger = logging.getLogger(__name__)

# Subscribers receive each created MissedCheckInDTO
missed_check_in_detected = Event("missed_check_in_detected")


class MissedCheckInDetector:
    """Detects and records missed check-ins across all active companies."""

    # Shared by every detector in the process
    _running = threading.Lock()

    def __init__(
        self,
        workforce_manager: Optional[WorkforceManager] = None,
        check_in_manager: Optional[CheckInManager] = None,
        missed_check_in_manager: Optional[MissedCheckInManager] = None,
        holiday_oracle: Optional[HolidayOracle] = None,
        clock: Optional[CalendarClock] = None,
        window_buffer_minutes: Optional[int] = None,
        event: Optional[Event] = None,
    ):
        self.workforce_manager = workforce_manager or WorkforceManager()
        self.check_in_manager = check_in_manager or CheckInManager()
        self.missed_check_in_manager = missed_check_in_manager or MissedCheckInManager()
        self.holiday_oracle = holiday_oracle or get_holiday_oracle()
        self.clock = clock or default_clock
        self.window_buffer_minutes = (
            window_buffer_minutes
            if window_buffer_minutes is not None
            else settings.sweep.window_buffer_minutes
        )
        self.event = event or missed_check_in_detected
        self.evaluator = EligibilityEvaluator(clock=self.clock, holiday_oracle=self.holiday_oracle)

    def find_candidates(self, company: CompanyContext, sweep_date: str) -> List[WorkerContext]:
        """Workers due on sweep_date whose window (plus buffer) has closed."""
        candidates = []
        for worker in self.workforce_manager.get_active_workers(company.id):
            result = self.evaluator.evaluate_worker(worker, company.timezone, on_date=sweep_date)
            if result.state != EligibilityState.WINDOW_CLOSED or not result.is_due:
                continue
            if not self.evaluator.is_window_closed(
                result.schedule, company.timezone, self.window_buffer_minutes, on_date=sweep_date
            ):
                continue
            candidates.append(worker)
        return candidates

    def process_company(self, company: CompanyContext) -> Dict:
        """Detect misses for one company over yesterday and today.

        Yesterday is swept again so that windows closing after the last run
        of the day are still recorded once the local date rolls over.
        """
        today = self.clock.today(company.timezone)
        yesterday = (parse_date_str(today) - timedelta(days=1)).strftime(DATE_FORMAT)
        counts = {"detected": 0, "skipped": 0, "holiday": False}

        for sweep_date in (yesterday, today):
            date_counts = self.process_date(company, sweep_date)
            counts["detected"] += date_counts["detected"]
            counts["skipped"] += date_counts["skipped"]
        # Holiday flag reflects today
        counts["holiday"] = date_counts["holiday"]
        return counts

    def process_date(self, company: CompanyContext, sweep_date: str) -> Dict:
        """Detect misses for one company-local date."""
        target_date = parse_date_str(sweep_date)
        counts = {"detected": 0, "skipped": 0, "holiday": False}

        holiday = self.holiday_oracle.is_holiday(company.id, sweep_date)
        if holiday.is_holiday:
            logger.info(f"Company {company.name}: {sweep_date} is a holiday ({holiday.holiday_name}), skipping")
            counts["holiday"] = True
            return counts

        candidates = self.find_candidates(company, sweep_date)
        if not candidates:
            return counts

        candidate_ids = [worker.person_id for worker in candidates]
        checked_in = self.check_in_manager.find_checked_in_person_ids(candidate_ids, target_date)
        existing = self.missed_check_in_manager.find_existing_for_date(candidate_ids, target_date)

        missing = [
            worker
            for worker in candidates
            if worker.person_id not in checked_in and worker.person_id not in existing
        ]
        counts["skipped"] += len(existing)
        if not missing:
            return counts

        snapshot_service = MissedCheckInSnapshotService(
            company.timezone,
            check_in_manager=self.check_in_manager,
            missed_check_in_manager=self.missed_check_in_manager,
            clock=self.clock,
        )
        holiday_dates = self.holiday_oracle.build_holiday_date_set(
            company.id,
            target_date - timedelta(days=snapshot_service.history_days),
            target_date - timedelta(days=1),
            company.timezone,
        )
        snapshots = snapshot_service.calculate_batch(missing, sweep_date, holiday_dates)

        records = []
        for worker in missing:
            schedule = self.evaluator.resolver.effective_schedule(worker.override, worker.team)
            values = {
                "company_id": company.id,
                "person_id": worker.person_id,
                "team_id": worker.team_id,
                "missed_date": target_date,
                "schedule_window": schedule.window_description,
                "team_leader_id_at_miss": worker.team_leader_id,
                "team_leader_name_at_miss": worker.team_leader_name,
            }
            values.update(snapshots[worker.person_id].to_dict())
            records.append(values)

        created, duplicates = self.missed_check_in_manager.create_many(records)
        counts["detected"] = len(created)
        counts["skipped"] += duplicates

        for record in created:
            self.event.emit(record)

        logger.info(
            f"Company {company.name}: {len(created)} missed check-ins recorded for {sweep_date}"
            f" ({duplicates} duplicates skipped)"
        )
        return counts

    def run(self) -> Dict:
        """
        Execute the sweep over every active company.

        Returns:
            Dictionary with job execution statistics
        """
        if not self._running.acquire(blocking=False):
            logger.warning("Missed check-in detection already running, skipping")
            return {"success": False, "error": "already running", "detected": 0}

        start_time = datetime.now()
        logger.info(f"Starting Missed Check-In Detector at {start_time}")

        try:
            companies = self.workforce_manager.get_active_companies()

            stats = {
                "companies_processed": 0,
                "companies_failed": 0,
                "holiday_companies": 0,
                "detected": 0,
                "skipped": 0,
            }

            for company in companies:
                try:
                    counts = self.process_company(company)
                except Exception as e:
                    # One company failing must not stop the sweep
                    stats["companies_failed"] += 1
                    logger.error(f"Missed check-in detection failed for company {company.id}: {e}", exc_info=True)
                    continue

                stats["companies_processed"] += 1
                stats["detected"] += counts["detected"]
                stats["skipped"] += counts["skipped"]
                if counts["holiday"]:
                    stats["holiday_companies"] += 1

            end_time = datetime.now()
            duration = (end_time - start_time).total_seconds()

            stats.update(
                {
                    "success": True,
                    "start_time": start_time.isoformat(),
                    "end_time": end_time.isoformat(),
                    "duration_seconds": duration,
                }
            )

            logger.info(f"Missed Check-In Detector completed in {duration:.2f}s")
            logger.info(f"Stats: {stats}")
            return stats

        except Exception as e:
            end_time = datetime.now()
            duration = (end_time - start_time).total_seconds()

            logger.error(
                f"Missed Check-In Detector failed after {duration:.2f}s: {e}",
                exc_info=True,
            )

            return {
                "success": False,
                "start_time": start_time.isoformat(),
                "end_time": end_time.isoformat(),
                "duration_seconds": duration,
                "error": str(e),
            }
        finally:
            self._running.release()


def log_missed_check_in(record: MissedCheckInDTO):
    """Default listener: log each created record for the notification pipeline."""
    logger.info(
        f"Missed check-in detected: person={record.person_id} date={record.missed_date} "
        f"window={record.schedule_window} leader={record.team_leader_id_at_miss}"
    )


missed_check_in_detected.add_listener(log_missed_check_in)


def run_missed_check_in_detector():
    """
    Entry point for the Missed Check-In Detector job.
    This function is called by the scheduler.
    """
    try:
        detector = MissedCheckInDetector()
        return detector.run()
    except Exception as e:
        logger.error(
            f"Failed to initialize or run Missed Check-In Detector: {e}",
            exc_info=True,
        )
        return {
            "success": False,
            "error": str(e),
            "start_time": datetime.now().isoformat(),
            "end_time": datetime.now().isoformat(),
            "duration_seconds": 0,
        }


if __name__ == "__main__":
    # Allow running job manually for testing
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    print("Running Missed Check-In Detector manually...")
    stats = run_missed_check_in_detector()
    print(f"\nJob completed: {stats}")
