import logging
from datetime import time

from sqlalchemy.orm import Session

from tarot_scheduling.models.availability import SATURDAY, SUNDAY, WeeklyAvailability
from tarot_scheduling.services.errors import InvalidDayOfWeek, InvalidRange, NotFound

logger = logging.getLogger(__name__)


def set_weekly_availability(
    db: Session,
    provider_id: int,
    day_of_week: int,
    start_time: time,
    end_time: time,
) -> WeeklyAvailability:
    """Create or replace the provider's window for one day of the week."""
    if not SUNDAY <= day_of_week <= SATURDAY:
        raise InvalidDayOfWeek()
    if start_time >= end_time:
        raise InvalidRange()

    availability = db.query(WeeklyAvailability).filter(
        WeeklyAvailability.provider_id == provider_id,
        WeeklyAvailability.day_of_week == day_of_week,
    ).first()

    if availability:
        availability.start_time = start_time
        availability.end_time = end_time
        availability.is_active = True
    else:
        availability = WeeklyAvailability(
            provider_id=provider_id,
            day_of_week=day_of_week,
            start_time=start_time,
            end_time=end_time,
            is_active=True,
        )
        db.add(availability)

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(availability)
    logger.info('Provider %s availability for day %s set to %s-%s', provider_id, day_of_week, start_time, end_time)
    return availability


def get_weekly_availability(db: Session, provider_id: int) -> list[WeeklyAvailability]:
    return db.query(WeeklyAvailability).filter(
        WeeklyAvailability.provider_id == provider_id,
        WeeklyAvailability.is_active.is_(True),
    ).order_by(WeeklyAvailability.day_of_week.asc()).all()


def remove_weekly_availability(db: Session, provider_id: int, availability_id: int) -> None:
    availability = db.query(WeeklyAvailability).filter(
        WeeklyAvailability.id == availability_id,
        WeeklyAvailability.provider_id == provider_id,
        WeeklyAvailability.is_active.is_(True),
    ).first()

    if not availability:
        raise NotFound('Availability not found.')

    availability.is_active = False
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info('Provider %s deactivated availability %s', provider_id, availability_id)
