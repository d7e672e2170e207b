"""Company (tenant) model."""

import uuid
from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from config.settings import settings

from .base import Base


class Company(Base):
    """A tenant. Its IANA timezone drives every calendar decision for its workers."""

    __tablename__ = "companies"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    timezone = Column(String(64), nullable=False, default=lambda: settings.eligibility.default_timezone)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    teams = relationship("Team", back_populates="company")

    def __repr__(self):
        return f"<Company(id={self.id}, name={self.name}, timezone={self.timezone})>"
