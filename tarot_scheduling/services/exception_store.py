import logging
from datetime import date, time

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tarot_scheduling.models.exception import AvailabilityException, ExceptionType
from tarot_scheduling.services.collaborators import Clock, system_clock
from tarot_scheduling.services.errors import DuplicateException, InvalidRange, NotFound, PastDate

logger = logging.getLogger(__name__)


def add_exception(
    db: Session,
    provider_id: int,
    exception_date: date,
    exception_type: ExceptionType,
    start_time: time | None = None,
    end_time: time | None = None,
    reason: str | None = None,
    clock: Clock = system_clock,
) -> AvailabilityException:
    """Block a date or give it custom hours.

    Checks run in a fixed order: past date, then the custom window, then
    the one-exception-per-date rule.
    """
    exception_type = ExceptionType(exception_type)

    if exception_date < clock().date():
        raise PastDate()

    if exception_type is ExceptionType.CUSTOM_HOURS:
        if start_time is None or end_time is None or start_time >= end_time:
            raise InvalidRange()
    else:
        start_time = None
        end_time = None

    existing = db.query(AvailabilityException).filter(
        AvailabilityException.provider_id == provider_id,
        AvailabilityException.exception_date == exception_date,
    ).first()
    if existing:
        raise DuplicateException()

    exception = AvailabilityException(
        provider_id=provider_id,
        exception_date=exception_date,
        exception_type=exception_type.value,
        start_time=start_time,
        end_time=end_time,
        reason=reason,
    )
    db.add(exception)

    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise DuplicateException() from exc
    except Exception:
        db.rollback()
        raise

    db.refresh(exception)
    logger.info('Provider %s added %s exception on %s', provider_id, exception_type.value, exception_date)
    return exception


def get_exceptions_in_range(
    db: Session,
    provider_id: int,
    start_date: date,
    end_date: date,
) -> list[AvailabilityException]:
    return db.query(AvailabilityException).filter(
        AvailabilityException.provider_id == provider_id,
        AvailabilityException.exception_date >= start_date,
        AvailabilityException.exception_date <= end_date,
    ).order_by(AvailabilityException.exception_date.asc()).all()


def get_upcoming_exceptions(
    db: Session,
    provider_id: int,
    clock: Clock = system_clock,
) -> list[AvailabilityException]:
    return db.query(AvailabilityException).filter(
        AvailabilityException.provider_id == provider_id,
        AvailabilityException.exception_date >= clock().date(),
    ).order_by(AvailabilityException.exception_date.asc()).all()


def remove_exception(db: Session, provider_id: int, exception_id: int) -> None:
    exception = db.query(AvailabilityException).filter(
        AvailabilityException.id == exception_id,
        AvailabilityException.provider_id == provider_id,
    ).first()

    if not exception:
        raise NotFound('Exception not found.')

    db.delete(exception)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info('Provider %s removed exception %s', provider_id, exception_id)
