"""Daily check-in model."""

import uuid
from sqlalchemy import (
    Column,
    String,
    Float,
    Date,
    DateTime,
    ForeignKey,
    Index,
    UniqueConstraint,
)
from datetime import datetime, timezone

from .base import Base


class CheckIn(Base):
    """A worker's daily wellness check-in.

    readiness_score is produced by the check-in collaborator's scorer and is
    treated as an opaque number here.
    """

    __tablename__ = "check_ins"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    company_id = Column(String(36), ForeignKey("companies.id"), nullable=False)
    person_id = Column(String(36), ForeignKey("persons.id"), nullable=False)
    check_in_date = Column(Date, nullable=False)  # company-local calendar date
    readiness_score = Column(Float, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("person_id", "check_in_date", name="uq_check_in_person_date"),
        Index("idx_check_in_company_date", "company_id", "check_in_date"),
    )

    def __repr__(self):
        return f"<CheckIn(person_id={self.person_id}, date={self.check_in_date}, score={self.readiness_score})>"
