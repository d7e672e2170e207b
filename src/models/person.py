"""Person model with optional per-person schedule overrides."""

import enum
import uuid
from sqlalchemy import Column, String, Boolean, DateTime, Enum, ForeignKey, Index
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from .base import Base


class PersonRole(enum.Enum):
    """Person role enumeration."""

    WORKER = "WORKER"
    TEAM_LEAD = "TEAM_LEAD"
    SUPERVISOR = "SUPERVISOR"
    WHS = "WHS"
    ADMIN = "ADMIN"


class Person(Base):
    """A person belonging to a company, optionally assigned to a team.

    The work_days / check_in_start / check_in_end columns are overrides: each
    one is independently nullable and NULL means "inherit from team".
    """

    __tablename__ = "persons"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    company_id = Column(String(36), ForeignKey("companies.id"), nullable=False)
    team_id = Column(String(36), ForeignKey("teams.id"), nullable=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    role = Column(Enum(PersonRole), default=PersonRole.WORKER, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    team_assigned_at = Column(DateTime(timezone=True), nullable=True)

    # Schedule overrides
    work_days = Column(String(20), nullable=True)
    check_in_start = Column(String(5), nullable=True)
    check_in_end = Column(String(5), nullable=True)

    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    team = relationship("Team", foreign_keys=[team_id], back_populates="members")

    __table_args__ = (
        Index("idx_person_company_team", "company_id", "team_id", "is_active"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self):
        return f"<Person(id={self.id}, name={self.full_name}, team_id={self.team_id})>"
