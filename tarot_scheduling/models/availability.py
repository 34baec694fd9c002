"""Weekly availability model definitions."""

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, Time, UniqueConstraint, func

from tarot_scheduling.database import Base


SUNDAY = 0
SATURDAY = 6


class WeeklyAvailability(Base):
    """Recurring working window of a provider for one day of the week."""
    __tablename__ = "weekly_availability"
    __table_args__ = (
        UniqueConstraint("provider_id", "day_of_week", name="uq_weekly_availability_provider_day"),
        CheckConstraint(
            f"day_of_week BETWEEN {SUNDAY} AND {SATURDAY}",
            name="ck_weekly_availability_day_of_week",
        ),
    )

    id = Column(Integer, primary_key=True)
    provider_id = Column(Integer, nullable=False, index=True)
    day_of_week = Column(Integer, nullable=False)  # 0=Sunday .. 6=Saturday
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
