import os
from datetime import date, datetime, time
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from tarot_scheduling.database import Base  # noqa: E402
from tarot_scheduling.models.availability import WeeklyAvailability  # noqa: E402
from tarot_scheduling.models.reservation import Reservation  # noqa: E402

from sample_data import CLIENT_ID, PROVIDER_ID, SCHEDULING_TABLES, SUNDAY_NOON  # noqa: E402


class FixedClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(SUNDAY_NOON)


@pytest.fixture
def scheduling_db():
    engine = create_engine('sqlite:///:memory:')
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine, tables=SCHEDULING_TABLES)

    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine, tables=SCHEDULING_TABLES)
        engine.dispose()


@pytest.fixture
def add_weekly(scheduling_db):
    def _add_weekly(day_of_week: int, start: time, end: time, provider_id: int = PROVIDER_ID, is_active: bool = True):
        availability = WeeklyAvailability(
            provider_id=provider_id,
            day_of_week=day_of_week,
            start_time=start,
            end_time=end,
            is_active=is_active,
        )
        scheduling_db.add(availability)
        scheduling_db.commit()
        scheduling_db.refresh(availability)
        return availability

    return _add_weekly


@pytest.fixture
def add_reservation(scheduling_db):
    def _add_reservation(
        session_date: date,
        session_time: time,
        duration_minutes: int = 60,
        status: str = 'pending',
        provider_id: int = PROVIDER_ID,
        client_id: int = CLIENT_ID,
    ):
        reservation = Reservation(
            provider_id=provider_id,
            client_id=client_id,
            client_email='client@example.com',
            session_date=session_date,
            session_time=session_time,
            duration_minutes=duration_minutes,
            service_type='tarot_reading',
            status=status,
            price_amount=Decimal('49.80'),
            payment_status='pending',
            meeting_link='https://meet.google.com/abc-defg-hij',
        )
        scheduling_db.add(reservation)
        scheduling_db.commit()
        scheduling_db.refresh(reservation)
        return reservation

    return _add_reservation
