"""Missed check-in model with its point-in-time state snapshot."""

import uuid
from sqlalchemy import (
    Column,
    String,
    Integer,
    Float,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    UniqueConstraint,
)
from datetime import datetime, timezone

from .base import Base


SNAPSHOT_FIELDS = (
    "day_of_week",
    "week_of_month",
    "worker_role_at_miss",
    "check_in_streak_before",
    "recent_readiness_avg",
    "days_since_last_check_in",
    "days_since_last_miss",
    "misses_in_last_30d",
    "misses_in_last_60d",
    "misses_in_last_90d",
    "is_first_miss_in_30d",
    "is_increasing_frequency",
    "baseline_completion_rate",
)


class MissedCheckIn(Base):
    """A detected missed check-in, one per (person, date).

    Created by the missed check-in sweep and never recomputed. Only the
    resolution columns are written afterwards, by the check-in collaborator
    when a late check-in for the same date arrives.
    """

    __tablename__ = "missed_check_ins"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    company_id = Column(String(36), ForeignKey("companies.id"), nullable=False)
    person_id = Column(String(36), ForeignKey("persons.id"), nullable=False)
    team_id = Column(String(36), ForeignKey("teams.id"), nullable=True)
    missed_date = Column(Date, nullable=False)
    schedule_window = Column(String(50), nullable=True)  # e.g. "6:00 AM - 10:00 AM"

    # Team leader at the time of the miss
    team_leader_id_at_miss = Column(String(36), nullable=True)
    team_leader_name_at_miss = Column(String(255), nullable=True)

    # State snapshot (all nullable: no history means NULL, not 0)
    worker_role_at_miss = Column(String(50), nullable=True)
    day_of_week = Column(Integer, nullable=True)
    week_of_month = Column(Integer, nullable=True)
    days_since_last_check_in = Column(Integer, nullable=True)
    days_since_last_miss = Column(Integer, nullable=True)
    check_in_streak_before = Column(Integer, nullable=True)
    recent_readiness_avg = Column(Float, nullable=True)
    misses_in_last_30d = Column(Integer, nullable=True)
    misses_in_last_60d = Column(Integer, nullable=True)
    misses_in_last_90d = Column(Integer, nullable=True)
    baseline_completion_rate = Column(Float, nullable=True)
    is_first_miss_in_30d = Column(Boolean, nullable=True)
    is_increasing_frequency = Column(Boolean, nullable=True)

    # Resolution (written by the check-in collaborator)
    resolved_by_check_in_id = Column(String(36), ForeignKey("check_ins.id"), nullable=True)
    resolved_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)

    __table_args__ = (
        UniqueConstraint("person_id", "missed_date", name="uq_missed_check_in_person_date"),
        Index("idx_missed_company_date", "company_id", "missed_date"),
    )

    def snapshot_dict(self):
        """Return the embedded state snapshot as a plain dict."""
        return {name: getattr(self, name) for name in SNAPSHOT_FIELDS}

    def __repr__(self):
        return f"<MissedCheckIn(person_id={self.person_id}, date={self.missed_date}, resolved={self.resolved_at is not None})>"
