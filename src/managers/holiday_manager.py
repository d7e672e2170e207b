"""Holiday storage: lookup queries for the holiday oracle plus CRUD."""

import logging
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import and_, extract

from src.models import Holiday
from src.utils.cache_manager import HolidayCacheStore, get_holiday_cache
from src.utils.database import session_scope

logger = logging.getLogger(__name__)


class HolidayManager:
    """Reads and writes company holidays.

    Every write invalidates the company's entries in the holiday cache so the
    oracle never serves a stale answer after an edit.
    """

    def __init__(self, session_factory=None, cache: Optional[HolidayCacheStore] = None):
        self._session_scope = session_factory or session_scope
        self._cache = cache

    @property
    def cache(self) -> HolidayCacheStore:
        if self._cache is None:
            self._cache = get_holiday_cache()
        return self._cache

    # Lookup queries

    def find_exact(self, company_id: str, holiday_date: date) -> Optional[str]:
        """Name of a holiday stored on exactly this date, or None."""
        with self._session_scope() as session:
            holiday = (
                session.query(Holiday)
                .filter(Holiday.company_id == company_id, Holiday.date == holiday_date)
                .order_by(Holiday.created_at.asc())
                .first()
            )
            return holiday.name if holiday else None

    def find_recurring(self, company_id: str, month: int, day: int) -> Optional[str]:
        """Name of a recurring holiday on this month/day in any year, or None."""
        with self._session_scope() as session:
            holiday = (
                session.query(Holiday)
                .filter(
                    and_(
                        Holiday.company_id == company_id,
                        Holiday.is_recurring.is_(True),
                        extract("month", Holiday.date) == month,
                        extract("day", Holiday.date) == day,
                    )
                )
                .order_by(Holiday.created_at.asc())
                .first()
            )
            return holiday.name if holiday else None

    def list_exact_in_range(
        self, company_id: str, start_date: date, end_date: date
    ) -> List[Tuple[date, str]]:
        """(date, name) of holidays stored inside [start_date, end_date]."""
        with self._session_scope() as session:
            rows = (
                session.query(Holiday.date, Holiday.name)
                .filter(
                    Holiday.company_id == company_id,
                    Holiday.date >= start_date,
                    Holiday.date <= end_date,
                )
                .order_by(Holiday.date.asc())
                .all()
            )
            return [(row.date, row.name) for row in rows]

    def list_recurring(self, company_id: str) -> List[Tuple[date, str]]:
        """(stored date, name) of every recurring holiday of the company."""
        with self._session_scope() as session:
            rows = (
                session.query(Holiday.date, Holiday.name)
                .filter(Holiday.company_id == company_id, Holiday.is_recurring.is_(True))
                .all()
            )
            return [(row.date, row.name) for row in rows]

    # CRUD

    def list_holidays(self, company_id: str, year: Optional[int] = None) -> List[Dict[str, Any]]:
        with self._session_scope() as session:
            query = session.query(Holiday).filter(Holiday.company_id == company_id)
            if year is not None:
                query = query.filter(
                    (Holiday.is_recurring.is_(True)) | (extract("year", Holiday.date) == year)
                )
            return [holiday.to_dict() for holiday in query.order_by(Holiday.date.asc()).all()]

    def get_holiday(self, company_id: str, holiday_id: str) -> Optional[Dict[str, Any]]:
        with self._session_scope() as session:
            holiday = self._get(session, company_id, holiday_id)
            return holiday.to_dict() if holiday else None

    def create_holiday(
        self, company_id: str, name: str, holiday_date: date, is_recurring: bool = False
    ) -> Dict[str, Any]:
        with self._session_scope() as session:
            holiday = Holiday(
                company_id=company_id,
                name=name,
                date=holiday_date,
                is_recurring=is_recurring,
            )
            session.add(holiday)
            session.flush()
            result = holiday.to_dict()

        self.cache.invalidate_for_company(company_id)
        logger.info(f"Created holiday {name} on {holiday_date} for company {company_id}")
        return result

    def update_holiday(
        self, company_id: str, holiday_id: str, updates: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        """Apply name/date/is_recurring updates. Returns None if not found."""
        with self._session_scope() as session:
            holiday = self._get(session, company_id, holiday_id)
            if holiday is None:
                return None

            for field_name in ("name", "date", "is_recurring"):
                if updates.get(field_name) is not None:
                    setattr(holiday, field_name, updates[field_name])
            session.flush()
            result = holiday.to_dict()

        self.cache.invalidate_for_company(company_id)
        logger.info(f"Updated holiday {holiday_id} for company {company_id}")
        return result

    def delete_holiday(self, company_id: str, holiday_id: str) -> bool:
        with self._session_scope() as session:
            holiday = self._get(session, company_id, holiday_id)
            if holiday is None:
                return False
            session.delete(holiday)

        self.cache.invalidate_for_company(company_id)
        logger.info(f"Deleted holiday {holiday_id} for company {company_id}")
        return True

    @staticmethod
    def _get(session, company_id: str, holiday_id: str) -> Optional[Holiday]:
        return (
            session.query(Holiday)
            .filter(Holiday.id == holiday_id, Holiday.company_id == company_id)
            .first()
        )
