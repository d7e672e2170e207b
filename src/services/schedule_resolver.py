"""Schedule resolution: merge a person's overrides with the team default.

Fallback tiers for the check-in window:
    1. person override (both fields, or one field combined with the team's other field)
    2. team pair, when the merged window is not ordered
    3. configured safe default, when the team pair itself is unusable
"""

import logging
import re
from typing import FrozenSet, Iterable, Optional, Union

from config.settings import settings
from src.models.dtos import EffectiveSchedule, PersonScheduleOverride, TeamSchedule
from src.utils.timezone import time_to_minutes

logger = logging.getLogger(__name__)

_TIME_RE = re.compile(r"^([01][0-9]|2[0-3]):[0-5][0-9]$")

WorkDaysInput = Union[str, Iterable[int], None]


def parse_work_days(value: WorkDaysInput) -> Optional[FrozenSet[int]]:
    """Parse a CSV of weekday codes ("1,3,5") into a frozenset.

    Returns None for a missing or blank value. Codes outside 0..6 are dropped
    with a warning.
    """
    if value is None:
        return None

    if isinstance(value, str):
        tokens = [token.strip() for token in value.split(",") if token.strip()]
    else:
        tokens = list(value)

    days = set()
    for token in tokens:
        try:
            day = int(token)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring invalid work day code: {token!r}")
            continue
        if 0 <= day <= 6:
            days.add(day)
        else:
            logger.warning(f"Ignoring out-of-range work day code: {day}")

    return frozenset(days) if days else None


def is_valid_time(value: Optional[str]) -> bool:
    return bool(value) and bool(_TIME_RE.match(value))


def is_end_time_after_start(start: Optional[str], end: Optional[str]) -> bool:
    """True when both times are well formed and end is strictly after start."""
    if not is_valid_time(start) or not is_valid_time(end):
        return False
    return time_to_minutes(end) > time_to_minutes(start)


def is_time_within_window(current: str, start: str, end: str) -> bool:
    """Inclusive window check. A window whose end precedes its start spans midnight."""
    current_minutes = time_to_minutes(current)
    start_minutes = time_to_minutes(start)
    end_minutes = time_to_minutes(end)

    if start_minutes <= end_minutes:
        return start_minutes <= current_minutes <= end_minutes
    return current_minutes >= start_minutes or current_minutes <= end_minutes


class ScheduleResolver:
    """Computes the effective schedule for a worker.

    Args:
        default_start: Safe default window start, used when the team window is unusable
        default_end: Safe default window end
        default_work_days: Safe default work days, used when neither person nor team has any
    """

    def __init__(
        self,
        default_start: Optional[str] = None,
        default_end: Optional[str] = None,
        default_work_days: WorkDaysInput = None,
    ):
        config = settings.eligibility
        self.default_start = default_start or config.default_check_in_start
        self.default_end = default_end or config.default_check_in_end
        self.default_work_days = (
            parse_work_days(default_work_days)
            or parse_work_days(config.default_work_days)
            or frozenset({1, 2, 3, 4, 5})
        )

    def effective_schedule(
        self, person: Optional[PersonScheduleOverride], team: Optional[TeamSchedule]
    ) -> EffectiveSchedule:
        """Merge the person's override with the team default."""
        override = person or PersonScheduleOverride()

        work_days = self._resolve_work_days(override, team)
        start, end, used_fallback = self._resolve_window(override, team)

        return EffectiveSchedule(
            work_days=work_days,
            check_in_start=start,
            check_in_end=end,
            used_fallback=used_fallback,
        )

    def is_work_day(
        self,
        weekday: int,
        person: Optional[PersonScheduleOverride],
        team: Optional[TeamSchedule],
    ) -> bool:
        """True when the weekday code (0=Sunday) is in the effective work days."""
        return weekday in self.effective_schedule(person, team).work_days

    def _resolve_work_days(
        self, override: PersonScheduleOverride, team: Optional[TeamSchedule]
    ) -> FrozenSet[int]:
        if override.work_days:
            return frozenset(override.work_days)
        if team is not None and team.work_days:
            return frozenset(team.work_days)

        logger.warning("No work days on person or team; using default work days")
        return self.default_work_days

    def _team_window(self, team: Optional[TeamSchedule]):
        """Team pair, or the safe default when the team pair is unusable."""
        if team is not None and is_end_time_after_start(team.check_in_start, team.check_in_end):
            return team.check_in_start, team.check_in_end, False

        if team is not None:
            logger.warning(
                f"Team window {team.check_in_start}-{team.check_in_end} is invalid; "
                f"using default {self.default_start}-{self.default_end}"
            )
        else:
            logger.warning(
                f"No team schedule; using default window {self.default_start}-{self.default_end}"
            )
        return self.default_start, self.default_end, True

    def _resolve_window(self, override: PersonScheduleOverride, team: Optional[TeamSchedule]):
        team_start, team_end, team_fallback = self._team_window(team)

        if override.check_in_start is None and override.check_in_end is None:
            return team_start, team_end, team_fallback

        start = override.check_in_start if override.check_in_start is not None else team_start
        end = override.check_in_end if override.check_in_end is not None else team_end

        if is_end_time_after_start(start, end):
            # A complete override does not depend on the substituted default
            borrowed = override.check_in_start is None or override.check_in_end is None
            return start, end, team_fallback and borrowed

        logger.info(
            f"Override window {start}-{end} is not ordered; falling back to {team_start}-{team_end}"
        )
        return team_start, team_end, True


_default_resolver: Optional[ScheduleResolver] = None


def get_schedule_resolver() -> ScheduleResolver:
    """Get or create the shared resolver built from settings."""
    global _default_resolver
    if _default_resolver is None:
        _default_resolver = ScheduleResolver()
    return _default_resolver


def effective_schedule(
    person: Optional[PersonScheduleOverride], team: Optional[TeamSchedule]
) -> EffectiveSchedule:
    """Merge a person's override with the team default using the shared resolver."""
    return get_schedule_resolver().effective_schedule(person, team)


def is_work_day(
    weekday: int, person: Optional[PersonScheduleOverride], team: Optional[TeamSchedule]
) -> bool:
    return get_schedule_resolver().is_work_day(weekday, person, team)
