"""Data Transfer Objects (DTOs) for schedule and eligibility data.

These DTOs copy data out of SQLAlchemy objects while the session is still
active, so the resolver, evaluator and snapshot service can work on plain
values after the session is closed.
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional, Dict, Any, FrozenSet


@dataclass(frozen=True)
class TeamSchedule:
    """Team default schedule. Work days are weekday codes, 0=Sunday."""
    work_days: FrozenSet[int]
    check_in_start: str
    check_in_end: str

    @classmethod
    def from_orm(cls, team):
        """Create DTO from SQLAlchemy Team object.

        Must be called while the session is still active!
        """
        if team is None:
            return None

        from src.services.schedule_resolver import parse_work_days

        return cls(
            work_days=parse_work_days(team.work_days) or frozenset(),
            check_in_start=team.check_in_start,
            check_in_end=team.check_in_end,
        )


@dataclass(frozen=True)
class PersonScheduleOverride:
    """Per-person schedule override. Each field is independently nullable;
    None means "inherit from team"."""
    work_days: Optional[FrozenSet[int]] = None
    check_in_start: Optional[str] = None
    check_in_end: Optional[str] = None

    @classmethod
    def from_orm(cls, person):
        """Create DTO from SQLAlchemy Person object."""
        if person is None:
            return cls()

        from src.services.schedule_resolver import parse_work_days

        return cls(
            work_days=parse_work_days(person.work_days),
            check_in_start=person.check_in_start or None,
            check_in_end=person.check_in_end or None,
        )


@dataclass(frozen=True)
class EffectiveSchedule:
    """Schedule after merging a person's override with the team default."""
    work_days: FrozenSet[int]
    check_in_start: str
    check_in_end: str
    used_fallback: bool = False

    @property
    def window_description(self) -> str:
        from src.utils.timezone import format_time_12h

        return f"{format_time_12h(self.check_in_start)} - {format_time_12h(self.check_in_end)}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'work_days': sorted(self.work_days),
            'check_in_start': self.check_in_start,
            'check_in_end': self.check_in_end,
            'window_description': self.window_description,
            'used_fallback': self.used_fallback,
        }


@dataclass(frozen=True)
class HolidayCheck:
    """Result of a single-date holiday lookup."""
    is_holiday: bool
    holiday_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {'is_holiday': self.is_holiday, 'holiday_name': self.holiday_name}


NOT_A_HOLIDAY = HolidayCheck(is_holiday=False, holiday_name=None)


@dataclass
class CheckInRecord:
    """A prior check-in as seen by the snapshot service."""
    date: str  # YYYY-MM-DD
    readiness_score: Optional[float] = None


@dataclass
class WorkerContext:
    """Everything the evaluator and snapshot service need to know about one worker."""
    person_id: str
    company_id: str
    team_id: Optional[str]
    role: Optional[str]
    team_assigned_at: Optional[datetime]
    override: PersonScheduleOverride
    team: Optional[TeamSchedule]
    person_name: Optional[str] = None
    team_name: Optional[str] = None
    team_leader_id: Optional[str] = None
    team_leader_name: Optional[str] = None

    @classmethod
    def from_orm(cls, person):
        """Create DTO from a Person whose team relationship is loaded."""
        if person is None:
            return None

        team = person.team
        if team is not None and not team.is_active:
            team = None
        leader = team.leader if team is not None else None

        return cls(
            person_id=person.id,
            company_id=person.company_id,
            team_id=team.id if team is not None else None,
            role=person.role.value if person.role else None,
            team_assigned_at=person.team_assigned_at,
            override=PersonScheduleOverride.from_orm(person),
            team=TeamSchedule.from_orm(team),
            person_name=person.full_name,
            team_name=team.name if team is not None else None,
            team_leader_id=leader.id if leader else None,
            team_leader_name=leader.full_name if leader else None,
        )


@dataclass
class StateSnapshot:
    """Point-in-time capture of a worker's history when a miss is detected.

    Numeric fields are None when there is no data to compute them from.
    """
    day_of_week: int
    week_of_month: int
    worker_role_at_miss: Optional[str] = None
    check_in_streak_before: Optional[int] = None
    recent_readiness_avg: Optional[float] = None
    days_since_last_check_in: Optional[int] = None
    days_since_last_miss: Optional[int] = None
    misses_in_last_30d: Optional[int] = None
    misses_in_last_60d: Optional[int] = None
    misses_in_last_90d: Optional[int] = None
    is_first_miss_in_30d: bool = True
    is_increasing_frequency: bool = False
    baseline_completion_rate: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'day_of_week': self.day_of_week,
            'week_of_month': self.week_of_month,
            'worker_role_at_miss': self.worker_role_at_miss,
            'check_in_streak_before': self.check_in_streak_before,
            'recent_readiness_avg': self.recent_readiness_avg,
            'days_since_last_check_in': self.days_since_last_check_in,
            'days_since_last_miss': self.days_since_last_miss,
            'misses_in_last_30d': self.misses_in_last_30d,
            'misses_in_last_60d': self.misses_in_last_60d,
            'misses_in_last_90d': self.misses_in_last_90d,
            'is_first_miss_in_30d': self.is_first_miss_in_30d,
            'is_increasing_frequency': self.is_increasing_frequency,
            'baseline_completion_rate': self.baseline_completion_rate,
        }


@dataclass
class MissedCheckInDTO:
    """DTO for MissedCheckIn model."""
    id: str
    person_id: str
    company_id: str
    missed_date: date
    schedule_window: Optional[str] = None
    team_id: Optional[str] = None
    team_leader_id_at_miss: Optional[str] = None
    team_leader_name_at_miss: Optional[str] = None
    snapshot: Dict[str, Any] = field(default_factory=dict)
    resolved_by_check_in_id: Optional[str] = None
    resolved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_orm(cls, record):
        """Create DTO from SQLAlchemy MissedCheckIn object."""
        if record is None:
            return None

        return cls(
            id=record.id,
            person_id=record.person_id,
            company_id=record.company_id,
            missed_date=record.missed_date,
            schedule_window=record.schedule_window,
            team_id=record.team_id,
            team_leader_id_at_miss=record.team_leader_id_at_miss,
            team_leader_name_at_miss=record.team_leader_name_at_miss,
            snapshot=record.snapshot_dict(),
            resolved_by_check_in_id=record.resolved_by_check_in_id,
            resolved_at=record.resolved_at,
            created_at=record.created_at,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'id': self.id,
            'person_id': self.person_id,
            'company_id': self.company_id,
            'missed_date': self.missed_date.isoformat() if self.missed_date else None,
            'schedule_window': self.schedule_window,
            'team_id': self.team_id,
            'team_leader_id_at_miss': self.team_leader_id_at_miss,
            'team_leader_name_at_miss': self.team_leader_name_at_miss,
            'snapshot': self.snapshot,
            'resolved_by_check_in_id': self.resolved_by_check_in_id,
            'resolved_at': self.resolved_at.isoformat() if self.resolved_at else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

