"""Missed check-in storage: existence checks, history and idempotent inserts."""

import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from sqlalchemy.exc import IntegrityError

from src.models import MissedCheckIn, MissedCheckInDTO
from src.utils.database import session_scope

logger = logging.getLogger(__name__)


class MissedCheckInManager:
    """Reads and writes missed check-in records.

    Records are unique on (person_id, missed_date). Inserts that lose a race
    against another sweep hit the unique constraint and are counted as skipped.
    """

    def __init__(self, session_factory=None):
        self._session_scope = session_factory or session_scope

    def find_existing_for_date(self, person_ids: Iterable[str], missed_date: date) -> Set[str]:
        """Subset of person_ids that already have a record for the date."""
        person_ids = list(person_ids)
        if not person_ids:
            return set()

        with self._session_scope() as session:
            rows = (
                session.query(MissedCheckIn.person_id)
                .filter(
                    MissedCheckIn.person_id.in_(person_ids),
                    MissedCheckIn.missed_date == missed_date,
                )
                .all()
            )
            return {row.person_id for row in rows}

    def get_history(self, person_id: str, start_date: date, end_date: date) -> List[date]:
        """Missed dates with start_date <= date < end_date, oldest first."""
        with self._session_scope() as session:
            rows = (
                session.query(MissedCheckIn.missed_date)
                .filter(
                    MissedCheckIn.person_id == person_id,
                    MissedCheckIn.missed_date >= start_date,
                    MissedCheckIn.missed_date < end_date,
                )
                .order_by(MissedCheckIn.missed_date.asc())
                .all()
            )
            return [row.missed_date for row in rows]

    def get_histories(
        self, person_ids: Iterable[str], start_date: date, end_date: date
    ) -> Dict[str, List[date]]:
        """Batch variant of get_history keyed by person_id, newest first."""
        person_ids = list(person_ids)
        result: Dict[str, List[date]] = {person_id: [] for person_id in person_ids}
        if not person_ids:
            return result

        with self._session_scope() as session:
            rows = (
                session.query(MissedCheckIn.person_id, MissedCheckIn.missed_date)
                .filter(
                    MissedCheckIn.person_id.in_(person_ids),
                    MissedCheckIn.missed_date >= start_date,
                    MissedCheckIn.missed_date < end_date,
                )
                .order_by(MissedCheckIn.missed_date.desc())
                .all()
            )

        for row in rows:
            result[row.person_id].append(row.missed_date)
        return result

    def create_many(self, records: List[Dict[str, Any]]) -> Tuple[List[MissedCheckInDTO], int]:
        """Insert records, skipping any (person_id, missed_date) already stored.

        Args:
            records: Column values for MissedCheckIn rows

        Returns:
            Tuple of (created DTOs, number skipped as duplicates)
        """
        created: List[MissedCheckInDTO] = []
        skipped = 0

        # One transaction per record so a duplicate only discards itself
        for values in records:
            try:
                with self._session_scope() as session:
                    record = MissedCheckIn(**values)
                    session.add(record)
                    session.flush()
                    dto = MissedCheckInDTO.from_orm(record)
                created.append(dto)
            except IntegrityError:
                skipped += 1
                logger.info(
                    f"Missed check-in already recorded for person {values.get('person_id')} "
                    f"on {values.get('missed_date')}, skipping"
                )

        return created, skipped

    def list_for_person(self, person_id: str, limit: int = 50) -> List[MissedCheckInDTO]:
        with self._session_scope() as session:
            records = (
                session.query(MissedCheckIn)
                .filter(MissedCheckIn.person_id == person_id)
                .order_by(MissedCheckIn.missed_date.desc())
                .limit(limit)
                .all()
            )
            return [MissedCheckInDTO.from_orm(record) for record in records]

    def list_for_company(
        self, company_id: str, missed_date: Optional[date] = None, unresolved_only: bool = False
    ) -> List[MissedCheckInDTO]:
        with self._session_scope() as session:
            query = session.query(MissedCheckIn).filter(MissedCheckIn.company_id == company_id)
            if missed_date is not None:
                query = query.filter(MissedCheckIn.missed_date == missed_date)
            if unresolved_only:
                query = query.filter(MissedCheckIn.resolved_at.is_(None))
            records = query.order_by(MissedCheckIn.missed_date.desc()).all()
            return [MissedCheckInDTO.from_orm(record) for record in records]

    def resolve(self, person_id: str, missed_date: date, check_in_id: str) -> bool:
        """Mark the miss for (person, date) as resolved by a late check-in."""
        with self._session_scope() as session:
            record = (
                session.query(MissedCheckIn)
                .filter(
                    MissedCheckIn.person_id == person_id,
                    MissedCheckIn.missed_date == missed_date,
                    MissedCheckIn.resolved_at.is_(None),
                )
                .first()
            )
            if record is None:
                return False

            record.resolved_by_check_in_id = check_in_id
            record.resolved_at = datetime.now(timezone.utc)

        logger.info(f"Resolved missed check-in for person {person_id} on {missed_date}")
        return True
