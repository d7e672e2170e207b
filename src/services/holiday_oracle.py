"""Company holiday lookups with a per-company invalidated cache."""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Optional, Set, Union

from src.managers.holiday_manager import HolidayManager
from src.models.dtos import HolidayCheck, NOT_A_HOLIDAY
from src.utils.cache_manager import HolidayCacheStore, get_holiday_cache
from src.utils.timezone import DATE_FORMAT, get_timezone, parse_date_str

logger = logging.getLogger(__name__)

DateInput = Union[str, date]


def _as_date(value: DateInput) -> date:
    return value if isinstance(value, date) else parse_date_str(value)


class HolidayOracle:
    """Answers "is this date a holiday for this company".

    Single-date lookups go through the cache: exact-date match first, then a
    recurring match on month and day. Concurrent misses for the same key may
    both query storage; both compute the same answer, so the last write wins.
    """

    def __init__(
        self,
        holiday_manager: Optional[HolidayManager] = None,
        cache: Optional[HolidayCacheStore] = None,
    ):
        self.cache = cache if cache is not None else get_holiday_cache()
        self.holiday_manager = holiday_manager or HolidayManager(cache=self.cache)

    def is_holiday(self, company_id: str, date_str: str) -> HolidayCheck:
        cached = self.cache.get(company_id, date_str)
        if cached is not None:
            return cached

        lookup_date = parse_date_str(date_str)

        name = self.holiday_manager.find_exact(company_id, lookup_date)
        if name is None:
            name = self.holiday_manager.find_recurring(company_id, lookup_date.month, lookup_date.day)

        result = HolidayCheck(is_holiday=True, holiday_name=name) if name is not None else NOT_A_HOLIDAY
        self.cache.put(company_id, date_str, result)
        return result

    def invalidate(self, company_id: str) -> int:
        """Drop every cached date of one company."""
        return self.cache.invalidate_for_company(company_id)

    def build_holiday_date_set(
        self, company_id: str, start_date: DateInput, end_date: DateInput, timezone_name: str
    ) -> Set[str]:
        """
        All holiday dates (YYYY-MM-DD) in [start_date, end_date] for the company.

        Both dates are company-local calendar dates. The exact-date and
        recurring queries run in parallel and bypass the single-date cache.
        """
        # Unknown zones fail here rather than producing a silently wrong calendar
        get_timezone(timezone_name)

        start = _as_date(start_date)
        end = _as_date(end_date)
        if end < start:
            return set()

        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="holiday-range") as executor:
            exact_future = executor.submit(
                self.holiday_manager.list_exact_in_range, company_id, start, end
            )
            recurring_future = executor.submit(self.holiday_manager.list_recurring, company_id)
            exact_rows = exact_future.result()
            recurring_rows = recurring_future.result()

        dates = {holiday_date.strftime(DATE_FORMAT) for holiday_date, _ in exact_rows}

        for stored_date, name in recurring_rows:
            for year in range(start.year, end.year + 1):
                try:
                    occurrence = stored_date.replace(year=year)
                except ValueError:
                    # Feb 29 in a non-leap year
                    continue
                if start <= occurrence <= end:
                    dates.add(occurrence.strftime(DATE_FORMAT))

        logger.debug(f"Holiday set for company {company_id} {start}..{end}: {len(dates)} dates")
        return dates


# Singleton instance
_holiday_oracle: Optional[HolidayOracle] = None


def get_holiday_oracle() -> HolidayOracle:
    """Get or create the global holiday oracle."""
    global _holiday_oracle

    if _holiday_oracle is None:
        _holiday_oracle = HolidayOracle()

    return _holiday_oracle


def invalidate_holiday_cache(company_id: str) -> int:
    """Invalidate one company's cached holiday lookups."""
    return get_holiday_oracle().invalidate(company_id)
