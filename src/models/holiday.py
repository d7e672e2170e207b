"""Company holiday model."""

import uuid
from sqlalchemy import Column, String, Boolean, Date, DateTime, ForeignKey, Index
from datetime import datetime, timezone

from .base import Base


class Holiday(Base):
    """A company holiday.

    Recurring holidays (is_recurring=True) match the same month/day in every
    year; the year of `date` is ignored for them. One-off holidays match
    `date` exactly.
    """

    __tablename__ = "holidays"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    company_id = Column(String(36), ForeignKey("companies.id"), nullable=False)
    name = Column(String(255), nullable=False)
    date = Column(Date, nullable=False)
    is_recurring = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index("idx_holiday_company_date", "company_id", "date"),
        Index("idx_holiday_company_recurring", "company_id", "is_recurring"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "company_id": self.company_id,
            "name": self.name,
            "date": self.date.isoformat() if self.date else None,
            "is_recurring": self.is_recurring,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Holiday(name={self.name}, date={self.date}, recurring={self.is_recurring})>"
