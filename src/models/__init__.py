"""Models package for the check-in eligibility engine."""

# Import base first
from .base import Base

# Import all model classes for easy access
from .company import Company
from .team import Team
from .person import Person, PersonRole
from .holiday import Holiday
from .check_in import CheckIn
from .missed_check_in import MissedCheckIn, SNAPSHOT_FIELDS

# Import DTOs
from .dtos import (
    TeamSchedule,
    PersonScheduleOverride,
    EffectiveSchedule,
    HolidayCheck,
    NOT_A_HOLIDAY,
    CheckInRecord,
    WorkerContext,
    StateSnapshot,
    MissedCheckInDTO,
)

# Export all models and DTOs
__all__ = [
    # ORM Models
    "Base",
    "Company",
    "Team",
    "Person",
    "PersonRole",
    "Holiday",
    "CheckIn",
    "MissedCheckIn",
    "SNAPSHOT_FIELDS",
    # DTOs
    "TeamSchedule",
    "PersonScheduleOverride",
    "EffectiveSchedule",
    "HolidayCheck",
    "NOT_A_HOLIDAY",
    "CheckInRecord",
    "WorkerContext",
    "StateSnapshot",
    "MissedCheckInDTO",
]
