"""Pydantic validation models for API requests."""

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional
from datetime import datetime


TIME_PATTERN = r"^([01][0-9]|2[0-3]):[0-5][0-9]$"
WORK_DAYS_PATTERN = r"^[0-6](,[0-6])*$"


def _validate_window(start: Optional[str], end: Optional[str]):
    """Reject windows whose end is not strictly after the start."""
    if start and end and end <= start:
        raise ValueError("check_in_end must be after check_in_start")


class HolidayCreateRequest(BaseModel):
    """Validation for creating a company holiday."""

    name: str = Field(..., min_length=1, max_length=255, description="Holiday name")
    date: str = Field(..., description="Holiday date in YYYY-MM-DD format")
    is_recurring: bool = Field(
        default=False, description="Repeat on the same month/day every year"
    )

    @field_validator("date")
    @classmethod
    def validate_date_format(cls, v: str) -> str:
        """Validate date format is YYYY-MM-DD."""
        try:
            datetime.strptime(v, "%Y-%m-%d")
        except ValueError:
            raise ValueError("Date must be in YYYY-MM-DD format")
        return v

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be blank")
        return v

    model_config = {
        "json_schema_extra": {
            "example": {"name": "Christmas Day", "date": "2026-12-25", "is_recurring": True}
        }
    }


class HolidayUpdateRequest(BaseModel):
    """Validation for updating a company holiday. All fields optional."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    date: Optional[str] = Field(default=None, description="YYYY-MM-DD")
    is_recurring: Optional[bool] = None

    @field_validator("date")
    @classmethod
    def validate_date_format(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        try:
            datetime.strptime(v, "%Y-%m-%d")
        except ValueError:
            raise ValueError("Date must be in YYYY-MM-DD format")
        return v


class HolidayCalendarRequest(BaseModel):
    """Validation for the holiday calendar range query."""

    start: str = Field(..., description="Range start in YYYY-MM-DD format")
    end: str = Field(..., description="Range end in YYYY-MM-DD format (inclusive)")

    @field_validator("start", "end")
    @classmethod
    def validate_date_format(cls, v: str) -> str:
        try:
            datetime.strptime(v, "%Y-%m-%d")
        except ValueError:
            raise ValueError("Date must be in YYYY-MM-DD format")
        return v

    @model_validator(mode="after")
    def validate_date_range(self):
        """Validate end is not before start and the range is bounded."""
        start_date = datetime.strptime(self.start, "%Y-%m-%d").date()
        end_date = datetime.strptime(self.end, "%Y-%m-%d").date()
        if end_date < start_date:
            raise ValueError("end must not be before start")
        if (end_date - start_date).days > 366:
            raise ValueError("Range cannot exceed 366 days")
        return self


class TeamScheduleRequest(BaseModel):
    """Validation for a team's default check-in schedule."""

    work_days: str = Field(
        ..., pattern=WORK_DAYS_PATTERN, description="CSV of weekday codes, 0=Sunday"
    )
    check_in_start: str = Field(..., pattern=TIME_PATTERN)
    check_in_end: str = Field(..., pattern=TIME_PATTERN)

    @model_validator(mode="after")
    def validate_window(self):
        _validate_window(self.check_in_start, self.check_in_end)
        return self

    model_config = {
        "json_schema_extra": {
            "example": {
                "work_days": "1,2,3,4,5",
                "check_in_start": "06:00",
                "check_in_end": "10:00",
            }
        }
    }


class PersonScheduleOverrideRequest(BaseModel):
    """Validation for a per-person schedule override.

    Each field is optional; when both times are given the window must be
    ordered. A single time is checked against the team at read time.
    """

    work_days: Optional[str] = Field(default=None, pattern=WORK_DAYS_PATTERN)
    check_in_start: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    check_in_end: Optional[str] = Field(default=None, pattern=TIME_PATTERN)

    @model_validator(mode="after")
    def validate_window(self):
        _validate_window(self.check_in_start, self.check_in_end)
        return self


class CheckInSubmitRequest(BaseModel):
    """Validation for a worker's daily check-in submission."""

    readiness_score: Optional[float] = Field(default=None, ge=0, le=100)
