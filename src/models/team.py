"""Team model with the default check-in schedule."""

import uuid
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from .base import Base


class Team(Base):
    """A team of workers sharing a default check-in schedule.

    Attributes:
        work_days: CSV of weekday codes, 0=Sunday .. 6=Saturday (e.g. "1,2,3,4,5")
        check_in_start: Window start, zero-padded "HH:MM" in company-local time
        check_in_end: Window end, strictly after check_in_start
        leader_id: Team leader, captured on missed check-in records
    """

    __tablename__ = "teams"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    company_id = Column(String(36), ForeignKey("companies.id"), nullable=False)
    name = Column(String(255), nullable=False)
    work_days = Column(String(20), nullable=False, default="1,2,3,4,5")
    check_in_start = Column(String(5), nullable=False, default="06:00")
    check_in_end = Column(String(5), nullable=False, default="10:00")
    is_active = Column(Boolean, default=True, nullable=False)
    leader_id = Column(String(36), ForeignKey("persons.id", use_alter=True, name="fk_team_leader_id"), nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    company = relationship("Company", back_populates="teams")
    leader = relationship("Person", foreign_keys=[leader_id], post_update=True)
    members = relationship(
        "Person", foreign_keys="Person.team_id", back_populates="team"
    )

    __table_args__ = (Index("idx_team_company_active", "company_id", "is_active"),)

    def __repr__(self):
        return (
            f"<Team(id={self.id}, name={self.name}, work_days={self.work_days}, "
            f"window={self.check_in_start}-{self.check_in_end})>"
        )
