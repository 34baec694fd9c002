"""Availability exception model definitions."""

import enum

from sqlalchemy import Column, Date, DateTime, Integer, String, Text, Time, UniqueConstraint, func

from tarot_scheduling.database import Base


class ExceptionType(str, enum.Enum):
    BLOCKED = "blocked"
    CUSTOM_HOURS = "custom_hours"


class AvailabilityException(Base):
    """Date-specific override of a provider's weekly availability."""
    __tablename__ = "availability_exceptions"
    __table_args__ = (
        UniqueConstraint("provider_id", "exception_date", name="uq_availability_exceptions_provider_date"),
    )

    id = Column(Integer, primary_key=True)
    provider_id = Column(Integer, nullable=False, index=True)
    exception_date = Column(Date, nullable=False)
    exception_type = Column(String(50), nullable=False)
    start_time = Column(Time, nullable=True)
    end_time = Column(Time, nullable=True)
    reason = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    @property
    def is_blocked(self) -> bool:
        return self.exception_type == ExceptionType.BLOCKED.value
