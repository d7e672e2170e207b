"""Check-in storage queries used by eligibility and the missed check-in sweep."""

import logging
from datetime import date
from typing import Dict, Iterable, List, Optional, Set

from src.models import CheckIn, CheckInRecord
from src.utils.database import session_scope
from src.utils.timezone import DATE_FORMAT

logger = logging.getLogger(__name__)


class CheckInManager:
    """Read access to check-ins, plus recording for the check-in collaborator."""

    def __init__(self, session_factory=None):
        self._session_scope = session_factory or session_scope

    def has_check_in(self, person_id: str, check_in_date: date) -> bool:
        with self._session_scope() as session:
            return (
                session.query(CheckIn.id)
                .filter(CheckIn.person_id == person_id, CheckIn.check_in_date == check_in_date)
                .first()
                is not None
            )

    def find_checked_in_person_ids(
        self, person_ids: Iterable[str], check_in_date: date
    ) -> Set[str]:
        """Subset of person_ids that have a check-in on the date."""
        person_ids = list(person_ids)
        if not person_ids:
            return set()

        with self._session_scope() as session:
            rows = (
                session.query(CheckIn.person_id)
                .filter(CheckIn.person_id.in_(person_ids), CheckIn.check_in_date == check_in_date)
                .all()
            )
            return {row.person_id for row in rows}

    def get_history(
        self, person_id: str, start_date: date, end_date: date
    ) -> List[CheckInRecord]:
        """Check-ins with start_date <= date < end_date, oldest first."""
        with self._session_scope() as session:
            rows = (
                session.query(CheckIn.check_in_date, CheckIn.readiness_score)
                .filter(
                    CheckIn.person_id == person_id,
                    CheckIn.check_in_date >= start_date,
                    CheckIn.check_in_date < end_date,
                )
                .order_by(CheckIn.check_in_date.asc())
                .all()
            )
            return [
                CheckInRecord(
                    date=row.check_in_date.strftime(DATE_FORMAT),
                    readiness_score=row.readiness_score,
                )
                for row in rows
            ]

    def record_check_in(
        self,
        company_id: str,
        person_id: str,
        check_in_date: date,
        readiness_score: Optional[float] = None,
    ) -> str:
        """Store a check-in and resolve a missed record for the same date, if any."""
        from src.managers.missed_check_in_manager import MissedCheckInManager

        with self._session_scope() as session:
            check_in = CheckIn(
                company_id=company_id,
                person_id=person_id,
                check_in_date=check_in_date,
                readiness_score=readiness_score,
            )
            session.add(check_in)
            session.flush()
            check_in_id = check_in.id

        MissedCheckInManager(self._session_scope).resolve(person_id, check_in_date, check_in_id)
        return check_in_id

    def get_histories(
        self, person_ids: Iterable[str], start_date: date, end_date: date
    ) -> Dict[str, List[CheckInRecord]]:
        """Batch variant of get_history keyed by person_id, newest first."""
        person_ids = list(person_ids)
        result: Dict[str, List[CheckInRecord]] = {person_id: [] for person_id in person_ids}
        if not person_ids:
            return result

        with self._session_scope() as session:
            rows = (
                session.query(CheckIn.person_id, CheckIn.check_in_date, CheckIn.readiness_score)
                .filter(
                    CheckIn.person_id.in_(person_ids),
                    CheckIn.check_in_date >= start_date,
                    CheckIn.check_in_date < end_date,
                )
                .order_by(CheckIn.check_in_date.desc())
                .all()
            )

        for row in rows:
            result[row.person_id].append(
                CheckInRecord(
                    date=row.check_in_date.strftime(DATE_FORMAT),
                    readiness_score=row.readiness_score,
                )
            )
        return result
